"""
momentum_engine/features/ledger/store.py

Activity ledger and drill-session storage.

InMemoryLedgerStore is the default for development and tests;
SqlLedgerStore (store_sql.py) has the same interface and is selected when a
database is configured and reachable. Services never know which one they
talk to.
"""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from momentum_engine.core.config import settings
from momentum_engine.core.errors import NotFoundError
from momentum_engine.models.activity import ActivityRecord, ActivityType
from momentum_engine.models.artifact import Artifact, MAX_POWER
from momentum_engine.models.drill import DrillScenario, DrillSession
from momentum_engine.models.user import UserProfile

logger = logging.getLogger("momentum")


def new_activity(
    user_id: str,
    activity_type: ActivityType,
    created_at: datetime,
    *,
    metadata: Optional[dict] = None,
    idempotency_key: Optional[str] = None,
) -> ActivityRecord:
    """Build an ActivityRecord with a fresh id and a UTC timestamp."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ActivityRecord(
        id=str(uuid4()),
        user_id=user_id,
        activity_type=activity_type,
        created_at=created_at.astimezone(timezone.utc),
        metadata=metadata or {},
        idempotency_key=idempotency_key,
    )


class InMemoryLedgerStore:
    """
    Process-local ledger. All mutations hold a single lock, which also makes
    increment_power and insert_session atomic.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._activities: List[ActivityRecord] = []
        self._activity_keys: Dict[str, str] = {}
        self._sessions: Dict[str, DrillSession] = {}
        self._play_slots: set = set()
        self._artifacts: Dict[str, Artifact] = {}
        self._scenarios: Dict[str, DrillScenario] = {}
        self._profiles: Dict[str, UserProfile] = {}
        self._power_grants: set = set()

    # Activity ledger ---------------------------------------------------
    def append_activity(self, record: ActivityRecord) -> bool:
        """
        Append a record. Returns False (and appends nothing) when a record
        with the same idempotency_key already exists.
        """
        with self._lock:
            if record.idempotency_key:
                if record.idempotency_key in self._activity_keys:
                    return False
                self._activity_keys[record.idempotency_key] = record.id
            self._activities.append(record)
            return True

    def list_activities(
        self,
        user_id: str,
        *,
        activity_types: Optional[Iterable[str]] = None,
        until: Optional[datetime] = None,
    ) -> List[ActivityRecord]:
        """User's records ordered by created_at, optionally filtered."""
        types = set(activity_types) if activity_types else None
        with self._lock:
            records = [
                r for r in self._activities
                if r.user_id == user_id
                and (types is None or r.activity_type in types)
                and (until is None or r.created_at <= until)
            ]
        return sorted(records, key=lambda r: r.created_at)

    def has_activity_key(self, idempotency_key: str) -> bool:
        with self._lock:
            return idempotency_key in self._activity_keys

    # Drill sessions ----------------------------------------------------
    def get_session(self, session_id: str) -> Optional[DrillSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def count_sessions(self, user_id: str, artifact_id: str, play_day: date) -> int:
        with self._lock:
            return sum(
                1 for s in self._sessions.values()
                if s.user_id == user_id and s.artifact_id == artifact_id and s.play_day == play_day
            )

    def insert_session(self, session: DrillSession) -> bool:
        """
        Insert a session. Returns False if the session_id exists or the
        (user, artifact, day, play_number) slot is already taken.
        """
        slot = (session.user_id, session.artifact_id, session.play_day, session.play_number)
        with self._lock:
            if session.session_id in self._sessions or slot in self._play_slots:
                return False
            self._sessions[session.session_id] = session
            self._play_slots.add(slot)
            return True

    def list_sessions(self, user_id: str, limit: int = 10) -> List[DrillSession]:
        with self._lock:
            sessions = [s for s in self._sessions.values() if s.user_id == user_id]
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions[:limit]

    # Artifacts ---------------------------------------------------------
    def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        with self._lock:
            return self._artifacts.get(artifact_id)

    def save_artifact(self, artifact: Artifact) -> Artifact:
        with self._lock:
            self._artifacts[artifact.id] = artifact
        return artifact

    def increment_power(self, artifact_id: str, delta: int, now: datetime, grant_key: Optional[str] = None) -> int:
        """
        Raise power by delta, clamped. With a grant_key the increment is
        applied at most once; a repeated key returns the current power.
        """
        with self._lock:
            artifact = self._artifacts.get(artifact_id)
            if artifact is None:
                raise NotFoundError(f"artifact {artifact_id} not found")
            if grant_key is not None:
                if grant_key in self._power_grants:
                    return artifact.power
                self._power_grants.add(grant_key)
            power = min(MAX_POWER, artifact.power + delta)
            self._artifacts[artifact_id] = artifact.model_copy(update={"power": power, "last_used_at": now})
            return power

    # Scenarios ---------------------------------------------------------
    def get_scenarios(self, scenario_ids: Iterable[str]) -> Dict[str, DrillScenario]:
        with self._lock:
            return {sid: self._scenarios[sid] for sid in scenario_ids if sid in self._scenarios}

    def list_scenarios(self, artifact_id: str) -> List[DrillScenario]:
        with self._lock:
            scenarios = [s for s in self._scenarios.values() if s.artifact_id == artifact_id]
        return sorted(scenarios, key=lambda s: s.id)

    def save_scenario(self, scenario: DrillScenario) -> DrillScenario:
        with self._lock:
            self._scenarios[scenario.id] = scenario
        return scenario

    # Profiles ----------------------------------------------------------
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            return self._profiles.get(user_id)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            self._profiles[profile.user_id] = profile
        return profile


# ============================================================================
# Store selection
# ============================================================================

_store = None


def get_ledger_store():
    """
    Pick the ledger implementation.

    - LEDGER_BACKEND=memory: always in-memory
    - LEDGER_BACKEND=sql: always SQL (connection errors surface on first use)
    - LEDGER_BACKEND=auto: SQL if a database URL is configured and reachable,
      otherwise in-memory
    """
    from momentum_engine.core.database import check_connection, get_database_url

    backend = settings.LEDGER_BACKEND
    if backend == "memory":
        return InMemoryLedgerStore()

    if backend == "sql" or get_database_url():
        from momentum_engine.features.ledger.store_sql import SqlLedgerStore

        if backend == "sql":
            return SqlLedgerStore()
        if check_connection():
            return SqlLedgerStore()
        logger.warning("[ledger] database unavailable, falling back to in-memory store")

    return InMemoryLedgerStore()


def get_store():
    """Process-wide ledger store singleton."""
    global _store
    if _store is None:
        _store = get_ledger_store()
    return _store


def set_store(store) -> None:
    global _store
    _store = store


def reset_store() -> None:
    """Forget the current store. FOR TESTING ONLY."""
    global _store
    _store = None
