"""
momentum_engine/features/ledger/store_sql.py

SQL-backed ledger store with the same interface as InMemoryLedgerStore.

- Append-only activity records with idempotency via a unique key
- Drill sessions with a unique (user, artifact, day, play_number) slot
- Atomic, clamped artifact power updates in a single UPDATE, applied at
  most once per grant key

SQLAlchemy errors other than integrity violations are raised as
DependencyError so callers fail closed.
"""

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from momentum_engine.core.database import (
    activity_records,
    artifacts,
    drill_scenarios,
    drill_sessions,
    get_db_session,
    power_grants,
    user_profiles,
)
from momentum_engine.core.errors import DependencyError, NotFoundError
from momentum_engine.models.activity import ActivityRecord
from momentum_engine.models.artifact import Artifact, MAX_POWER
from momentum_engine.models.drill import DrillOption, DrillScenario, DrillSession, ScenarioSource
from momentum_engine.models.user import UserProfile


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _unavailable(operation: str, exc: Exception) -> DependencyError:
    return DependencyError(f"ledger store unavailable during {operation}: {exc.__class__.__name__}")


def _activity_from_row(row) -> ActivityRecord:
    return ActivityRecord(
        id=row.id,
        user_id=row.user_id,
        activity_type=row.activity_type,
        created_at=_as_utc(row.created_at),
        metadata=row.payload or {},
        idempotency_key=row.idempotency_key,
    )


def _session_from_row(row) -> DrillSession:
    return DrillSession(
        session_id=row.session_id,
        user_id=row.user_id,
        artifact_id=row.artifact_id,
        scenario_ids=list(row.scenario_ids or []),
        source=ScenarioSource(kind=row.scenario_source, catalog_key=row.catalog_key),
        answers=list(row.answers),
        score=row.score,
        momentum_awarded=row.momentum_awarded,
        is_first_play=row.is_first_play,
        play_day=row.play_day,
        play_number=row.play_number,
        previous_momentum=row.previous_momentum,
        new_momentum=row.new_momentum,
        milestone=row.milestone,
        no_momentum_reason=row.no_momentum_reason,
        created_at=_as_utc(row.created_at),
    )


def _artifact_from_row(row) -> Artifact:
    return Artifact(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        power=row.power,
        last_used_at=_as_utc(row.last_used_at),
        onboarding_catalog_key=row.onboarding_catalog_key,
    )


def _scenario_from_row(row) -> DrillScenario:
    return DrillScenario(
        id=row.id,
        artifact_id=row.artifact_id,
        owner_id=row.owner_id,
        situation=row.situation,
        current_thought=row.current_thought,
        options=tuple(DrillOption(**option) for option in row.options),
    )


class SqlLedgerStore:
    """SQL ledger store. Each call runs in its own short transaction."""

    # Activity ledger ---------------------------------------------------
    def append_activity(self, record: ActivityRecord) -> bool:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(activity_records).values(
                        id=record.id,
                        user_id=record.user_id,
                        activity_type=record.activity_type,
                        payload=dict(record.metadata),
                        idempotency_key=record.idempotency_key,
                        created_at=record.created_at,
                    )
                )
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            raise _unavailable("append_activity", e) from e
        return True

    def list_activities(
        self,
        user_id: str,
        *,
        activity_types: Optional[Iterable[str]] = None,
        until: Optional[datetime] = None,
    ) -> List[ActivityRecord]:
        stmt = select(activity_records).where(activity_records.c.user_id == user_id)
        if activity_types:
            stmt = stmt.where(activity_records.c.activity_type.in_(list(activity_types)))
        if until is not None:
            stmt = stmt.where(activity_records.c.created_at <= until)
        stmt = stmt.order_by(activity_records.c.created_at.asc())
        try:
            with get_db_session() as session:
                rows = session.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise _unavailable("list_activities", e) from e
        return [_activity_from_row(row) for row in rows]

    def has_activity_key(self, idempotency_key: str) -> bool:
        stmt = select(activity_records.c.id).where(activity_records.c.idempotency_key == idempotency_key)
        try:
            with get_db_session() as session:
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise _unavailable("has_activity_key", e) from e

    # Drill sessions ----------------------------------------------------
    def get_session(self, session_id: str) -> Optional[DrillSession]:
        stmt = select(drill_sessions).where(drill_sessions.c.session_id == session_id)
        try:
            with get_db_session() as session:
                row = session.execute(stmt).first()
        except SQLAlchemyError as e:
            raise _unavailable("get_session", e) from e
        return _session_from_row(row) if row else None

    def count_sessions(self, user_id: str, artifact_id: str, play_day: date) -> int:
        stmt = select(func.count()).select_from(drill_sessions).where(
            drill_sessions.c.user_id == user_id,
            drill_sessions.c.artifact_id == artifact_id,
            drill_sessions.c.play_day == play_day,
        )
        try:
            with get_db_session() as session:
                return int(session.execute(stmt).scalar() or 0)
        except SQLAlchemyError as e:
            raise _unavailable("count_sessions", e) from e

    def insert_session(self, drill: DrillSession) -> bool:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(drill_sessions).values(
                        session_id=drill.session_id,
                        user_id=drill.user_id,
                        artifact_id=drill.artifact_id,
                        scenario_ids=list(drill.scenario_ids),
                        scenario_source=drill.source.kind,
                        catalog_key=drill.source.catalog_key,
                        answers=list(drill.answers),
                        score=drill.score,
                        momentum_awarded=drill.momentum_awarded,
                        is_first_play=drill.is_first_play,
                        play_day=drill.play_day,
                        play_number=drill.play_number,
                        previous_momentum=drill.previous_momentum,
                        new_momentum=drill.new_momentum,
                        milestone=drill.milestone,
                        no_momentum_reason=drill.no_momentum_reason,
                        created_at=drill.created_at,
                    )
                )
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            raise _unavailable("insert_session", e) from e
        return True

    def list_sessions(self, user_id: str, limit: int = 10) -> List[DrillSession]:
        stmt = (
            select(drill_sessions)
            .where(drill_sessions.c.user_id == user_id)
            .order_by(drill_sessions.c.created_at.desc())
            .limit(limit)
        )
        try:
            with get_db_session() as session:
                rows = session.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise _unavailable("list_sessions", e) from e
        return [_session_from_row(row) for row in rows]

    # Artifacts ---------------------------------------------------------
    def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        stmt = select(artifacts).where(artifacts.c.id == artifact_id)
        try:
            with get_db_session() as session:
                row = session.execute(stmt).first()
        except SQLAlchemyError as e:
            raise _unavailable("get_artifact", e) from e
        return _artifact_from_row(row) if row else None

    def save_artifact(self, artifact: Artifact) -> Artifact:
        values = dict(
            owner_id=artifact.owner_id,
            title=artifact.title,
            power=artifact.power,
            last_used_at=artifact.last_used_at,
            onboarding_catalog_key=artifact.onboarding_catalog_key,
        )
        try:
            with get_db_session() as session:
                updated = session.execute(
                    update(artifacts).where(artifacts.c.id == artifact.id).values(**values)
                )
                if updated.rowcount == 0:
                    session.execute(insert(artifacts).values(id=artifact.id, **values))
        except SQLAlchemyError as e:
            raise _unavailable("save_artifact", e) from e
        return artifact

    def increment_power(self, artifact_id: str, delta: int, now: datetime, grant_key: Optional[str] = None) -> int:
        """
        Clamp in the database so concurrent increments never exceed MAX_POWER.

        With a grant_key, the power_grants row and the update commit together,
        so a key is applied at most once and a repeat returns current power.
        """
        raised = artifacts.c.power + delta
        stmt = (
            update(artifacts)
            .where(artifacts.c.id == artifact_id)
            .values(power=case((raised > MAX_POWER, MAX_POWER), else_=raised), last_used_at=now)
            .returning(artifacts.c.power)
        )
        try:
            with get_db_session() as session:
                if grant_key is not None:
                    seen = session.execute(
                        select(power_grants.c.grant_key).where(power_grants.c.grant_key == grant_key)
                    ).first()
                    if seen is not None:
                        return self._current_power(session, artifact_id)
                    session.execute(
                        insert(power_grants).values(
                            grant_key=grant_key, artifact_id=artifact_id, delta=delta, created_at=now
                        )
                    )
                power = session.execute(stmt).scalar_one_or_none()
                if power is None:
                    raise NotFoundError(f"artifact {artifact_id} not found")
        except IntegrityError:
            # A concurrent call committed the same grant first
            return self._read_power(artifact_id)
        except SQLAlchemyError as e:
            raise _unavailable("increment_power", e) from e
        return int(power)

    def _read_power(self, artifact_id: str) -> int:
        try:
            with get_db_session() as session:
                return self._current_power(session, artifact_id)
        except SQLAlchemyError as e:
            raise _unavailable("increment_power", e) from e

    @staticmethod
    def _current_power(session, artifact_id: str) -> int:
        power = session.execute(select(artifacts.c.power).where(artifacts.c.id == artifact_id)).scalar_one_or_none()
        if power is None:
            raise NotFoundError(f"artifact {artifact_id} not found")
        return int(power)

    # Scenarios ---------------------------------------------------------
    def get_scenarios(self, scenario_ids: Iterable[str]) -> Dict[str, DrillScenario]:
        ids = list(scenario_ids)
        if not ids:
            return {}
        stmt = select(drill_scenarios).where(drill_scenarios.c.id.in_(ids))
        try:
            with get_db_session() as session:
                rows = session.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise _unavailable("get_scenarios", e) from e
        return {row.id: _scenario_from_row(row) for row in rows}

    def list_scenarios(self, artifact_id: str) -> List[DrillScenario]:
        stmt = (
            select(drill_scenarios)
            .where(drill_scenarios.c.artifact_id == artifact_id)
            .order_by(drill_scenarios.c.id.asc())
        )
        try:
            with get_db_session() as session:
                rows = session.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise _unavailable("list_scenarios", e) from e
        return [_scenario_from_row(row) for row in rows]

    def save_scenario(self, scenario: DrillScenario) -> DrillScenario:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(drill_scenarios).values(
                        id=scenario.id,
                        artifact_id=scenario.artifact_id,
                        owner_id=scenario.owner_id,
                        situation=scenario.situation,
                        current_thought=scenario.current_thought,
                        options=[option.model_dump() for option in scenario.options],
                    )
                )
        except SQLAlchemyError as e:
            raise _unavailable("save_scenario", e) from e
        return scenario

    # Profiles ----------------------------------------------------------
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        stmt = select(user_profiles).where(user_profiles.c.user_id == user_id)
        try:
            with get_db_session() as session:
                row = session.execute(stmt).first()
        except SQLAlchemyError as e:
            raise _unavailable("get_profile", e) from e
        if row is None:
            return None
        return UserProfile(
            user_id=row.user_id,
            onboarding_completed=bool(row.onboarding_completed),
            created_at=_as_utc(row.created_at),
        )

    def save_profile(self, profile: UserProfile) -> UserProfile:
        values = {"onboarding_completed": profile.onboarding_completed}
        if profile.created_at is not None:
            values["created_at"] = profile.created_at
        try:
            with get_db_session() as session:
                updated = session.execute(
                    update(user_profiles).where(user_profiles.c.user_id == profile.user_id).values(**values)
                )
                if updated.rowcount == 0:
                    session.execute(insert(user_profiles).values(user_id=profile.user_id, **values))
        except SQLAlchemyError as e:
            raise _unavailable("save_profile", e) from e
        return profile
