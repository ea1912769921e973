"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support (TEST_DATABASE_URL, in-memory SQLite)
- Table definitions for the activity ledger and drill sessions
"""
import logging
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, Float, String, Date, DateTime, Boolean, JSON, Text, Index, UniqueConstraint, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import os

from momentum_engine.core.config import settings

logger = logging.getLogger("momentum")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if _engine is not None:
        _engine.dispose()

    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        _engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


def dispose_engine() -> None:
    """Drop the current engine so the next call re-reads configuration (tests)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)

    Commits on success, rolls back on any exception.
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def reset_database():
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This is destructive! Only use in tests.
    """
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


# Append-only activity ledger. Momentum is always recomputed from these rows.
activity_records = Table(
    'activity_records',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('activity_type', String(50), nullable=False),
    Column('payload', JSON, nullable=False),
    Column('idempotency_key', String(255), unique=True, nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    # Composite index for the progress read: (user_id, created_at)
    Index('idx_activity_records_user_created', 'user_id', 'created_at'),
    Index('idx_activity_records_user_type', 'user_id', 'activity_type'),
)

# Drill sessions; written once at submission, replayed by session_id
drill_sessions = Table(
    'drill_sessions',
    metadata,
    Column('session_id', String(64), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('artifact_id', String(100), nullable=False),
    Column('scenario_ids', JSON, nullable=False),
    Column('scenario_source', String(20), nullable=False),  # persisted | built_in
    Column('catalog_key', String(100), nullable=True),
    Column('answers', JSON, nullable=False),
    Column('score', Integer, nullable=False),
    Column('momentum_awarded', Integer, nullable=False, server_default='0'),
    Column('is_first_play', Boolean, nullable=False),
    Column('play_day', Date, nullable=False),
    Column('play_number', Integer, nullable=False),
    Column('previous_momentum', Float, nullable=False),
    Column('new_momentum', Float, nullable=False),
    Column('milestone', Integer, nullable=True),
    Column('no_momentum_reason', String(50), nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    # Serializes the per-artifact daily play limit at the storage layer
    UniqueConstraint('user_id', 'artifact_id', 'play_day', 'play_number', name='uq_drill_sessions_play_slot'),
    Index('idx_drill_sessions_user_day', 'user_id', 'play_day'),
    Index('idx_drill_sessions_user_created', 'user_id', 'created_at'),
)

# Artifacts ("cheat codes") and their saturating power counter
artifacts = Table(
    'artifacts',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('owner_id', String(100), nullable=True),
    Column('title', Text, nullable=False),
    Column('power', Integer, nullable=False, server_default='0'),
    Column('last_used_at', DateTime(timezone=True), nullable=True),
    Column('onboarding_catalog_key', String(100), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_artifacts_owner', 'owner_id'),
)

# Persisted drill scenarios generated for an artifact
drill_scenarios = Table(
    'drill_scenarios',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('artifact_id', String(100), nullable=False),
    Column('owner_id', String(100), nullable=True),
    Column('situation', Text, nullable=False),
    Column('current_thought', Text, nullable=False),
    Column('options', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_drill_scenarios_artifact', 'artifact_id'),
)

# Minimal user profile: only what momentum gating consults
user_profiles = Table(
    'user_profiles',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('onboarding_completed', Boolean, nullable=False, server_default='0'),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# One row per applied power increment that carries a grant key, written in the
# same transaction as the artifact update
power_grants = Table(
    'power_grants',
    metadata,
    Column('grant_key', String(255), primary_key=True),
    Column('artifact_id', String(100), nullable=False),
    Column('delta', Integer, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
)
