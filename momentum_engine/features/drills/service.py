"""
Drill Service

Submission flow for one drill session:

1. Validate shape (3 scenario ids, 3 answers) and resolve the artifact and
   its scenarios. Nothing is written before this succeeds.
2. Replay: a client-supplied session_id that is already stored returns the
   stored result unchanged.
3. Under a per-(user, UTC day) lock: score, read momentum, check the award
   gate and onboarding, insert the session row in a free play slot.
4. Append the award and practice records and grant the practice power, all
   keyed by session_id.

A crash between steps 3 and 4 is repaired by the next replay of the same
session_id; the keys keep the repair from double counting. Submissions
without a session_id get one derived from their play slot, so each one is a
new play; clients that retry must send their own session_id.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import NAMESPACE_URL, uuid5

from momentum_engine.core.config import settings
from momentum_engine.core.errors import ConflictError, NotFoundError, PermissionError, ValidationError
from momentum_engine.core.locks import get_keyed_lock
from momentum_engine.core.logging import log_event
from momentum_engine.features.artifacts.power import ArtifactPowerTracker
from momentum_engine.features.drills import scorer
from momentum_engine.features.drills.award_gate import AwardGate, utc_day
from momentum_engine.features.drills.catalog import ScenarioCatalog
from momentum_engine.features.ledger.store import get_store, new_activity
from momentum_engine.features.momentum import milestones
from momentum_engine.features.momentum.scoring_engine import MomentumScoringEngine
from momentum_engine.features.users import service as users
from momentum_engine.models.activity import ACCRUAL_ACTIVITY, ActivityRecord
from momentum_engine.models.artifact import Artifact
from momentum_engine.models.drill import (
    SCENARIOS_PER_SESSION,
    DrillScenario,
    DrillSession,
    DrillSessionResult,
    DrillSubmission,
)


def derive_session_id(
    user_id: str, artifact_id: str, scenario_ids: Sequence[str], play_day, play_number: int
) -> str:
    """Stable id for the play slot a submission without an id lands in."""
    natural_key = "|".join(
        [user_id, artifact_id, ",".join(scenario_ids), play_day.isoformat(), str(play_number)]
    )
    return str(uuid5(NAMESPACE_URL, f"drill-session:{natural_key}"))


def award_key(session_id: str) -> str:
    return f"drill-award:{session_id}"


def practice_key(session_id: str) -> str:
    return f"drill-practice:{session_id}"


class DrillService:
    def __init__(self, store=None, locks=None):
        self._store = store
        self.locks = locks or get_keyed_lock()

    @property
    def store(self):
        return self._store or get_store()

    # Reads -------------------------------------------------------------
    def get_scenarios(self, user_id: str, artifact_id: str, now: Optional[datetime] = None) -> List[DrillScenario]:
        now = _normalize(now)
        artifact = self._load_artifact(user_id, artifact_id)
        return ScenarioCatalog(self.store).pick(user_id, artifact, now)

    def list_sessions(self, user_id: str, limit: int = 10) -> List[DrillSession]:
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return self.store.list_sessions(user_id, limit)

    # Submission --------------------------------------------------------
    def submit_session(self, submission: DrillSubmission, now: Optional[datetime] = None) -> DrillSessionResult:
        now = _normalize(now)
        store = self.store
        self._validate_shape(submission)

        artifact = self._load_artifact(submission.user_id, submission.artifact_id)
        scenarios, source = ScenarioCatalog(store).resolve(submission.user_id, artifact, submission.scenario_ids)

        play_day = utc_day(now)
        client_session_id = submission.session_id
        if client_session_id:
            replay = self._replay(client_session_id, submission.user_id)
            if replay is not None:
                return replay

        with self.locks.hold(("drill", submission.user_id, play_day)):
            if client_session_id:
                replay = self._replay(client_session_id, submission.user_id)
                if replay is not None:
                    return replay

            score = scorer.score(scenarios, submission.answers)
            session = self._insert_scored_session(submission, artifact, score, source, play_day, now)
            if session is None:
                # Lost the insert to a concurrent submission of the same id
                return self._replay(client_session_id, submission.user_id)

            self._apply_side_effects(session)

        log_event(
            "info",
            "drill.submitted",
            user_id=session.user_id,
            artifact_id=session.artifact_id,
            session_id=session.session_id,
            extra={
                "score": session.score,
                "momentum_awarded": session.momentum_awarded,
                "reason": session.no_momentum_reason,
                "play_number": session.play_number,
                "milestone": session.milestone,
            },
        )
        return session.to_result()

    # Internal helpers -------------------------------------------------
    def _validate_shape(self, submission: DrillSubmission) -> None:
        if not submission.user_id:
            raise ValidationError("user_id is required")
        if not submission.artifact_id:
            raise ValidationError("artifact_id is required")
        if len(submission.scenario_ids) != SCENARIOS_PER_SESSION:
            raise ValidationError(f"expected {SCENARIOS_PER_SESSION} scenario ids, got {len(submission.scenario_ids)}")
        if len(set(submission.scenario_ids)) != SCENARIOS_PER_SESSION:
            raise ValidationError("scenario ids must be distinct")
        if len(submission.answers) != SCENARIOS_PER_SESSION:
            raise ValidationError(f"expected {SCENARIOS_PER_SESSION} answers, got {len(submission.answers)}")

    def _load_artifact(self, user_id: str, artifact_id: str) -> Artifact:
        artifact = self.store.get_artifact(artifact_id)
        if artifact is None:
            raise NotFoundError(f"artifact {artifact_id} not found")
        if not artifact.accessible_by(user_id):
            raise PermissionError("artifact belongs to another user")
        return artifact

    def _replay(self, session_id: str, user_id: str) -> Optional[DrillSessionResult]:
        existing = self.store.get_session(session_id)
        if existing is None:
            return None
        if existing.user_id != user_id:
            raise PermissionError("session belongs to another user")
        self._apply_side_effects(existing)
        log_event("info", "drill.replayed", user_id=user_id, session_id=session_id)
        return existing.to_result(replayed=True)

    def _insert_scored_session(
        self,
        submission: DrillSubmission,
        artifact: Artifact,
        score: int,
        source,
        play_day,
        now: datetime,
    ) -> Optional[DrillSession]:
        """
        Gate, build and insert the session row. Returns None when the
        client's session_id was inserted concurrently; raises ConflictError
        when the play slot kept being taken.
        """
        store = self.store
        gate = AwardGate(store)
        onboarded = users.is_onboarded(submission.user_id, store)

        for _ in range(settings.GATE_MAX_RETRIES):
            history = store.list_activities(submission.user_id, until=now)
            previous = MomentumScoringEngine.compute(history, now)
            eligibility = gate.check_eligibility(submission.user_id, artifact.id, now)

            play_number = eligibility.plays_today + 1
            session_id = submission.session_id or derive_session_id(
                submission.user_id, artifact.id, submission.scenario_ids, play_day, play_number
            )
            awards = eligibility.can_earn and onboarded and (score > 0 or submission.is_first_play)
            momentum_awarded = (
                MomentumScoringEngine.accrual_increment(previous.activity_count + 1) if awards else 0
            )

            planned = _planned_records(submission.user_id, artifact.id, session_id, momentum_awarded, now)
            current = MomentumScoringEngine.compute(history + planned, now)

            session = DrillSession(
                session_id=session_id,
                user_id=submission.user_id,
                artifact_id=artifact.id,
                scenario_ids=list(submission.scenario_ids) if source.kind == "persisted" else [],
                source=source,
                answers=list(submission.answers),
                score=score,
                momentum_awarded=momentum_awarded,
                is_first_play=submission.is_first_play,
                play_day=play_day,
                play_number=play_number,
                previous_momentum=previous.progress,
                new_momentum=current.progress,
                milestone=milestones.detect(previous.progress, current.progress, settings.MILESTONE_POLICY),
                no_momentum_reason=eligibility.reason if onboarded else None,
                created_at=now,
            )
            if store.insert_session(session):
                if not awards and onboarded and eligibility.reason:
                    log_event(
                        "info",
                        "momentum.denied",
                        user_id=session.user_id,
                        artifact_id=artifact.id,
                        session_id=session_id,
                        extra={"reason": eligibility.reason, "plays_today": eligibility.plays_today},
                    )
                return session
            if submission.session_id and store.get_session(submission.session_id) is not None:
                return None

        log_event(
            "warning",
            "drill.slot_conflict",
            user_id=submission.user_id,
            artifact_id=artifact.id,
            session_id=submission.session_id,
            error_code="conflict",
        )
        raise ConflictError("could not reserve a play slot; retry the submission")

    def _apply_side_effects(self, session: DrillSession) -> None:
        """Append the session's records and grant its power once. Safe to repeat."""
        store = self.store
        for record in _planned_records(
            session.user_id, session.artifact_id, session.session_id, session.momentum_awarded, session.created_at
        ):
            appended = store.append_activity(record)
            if record.activity_type != ACCRUAL_ACTIVITY:
                ArtifactPowerTracker(store).record_use(
                    session.artifact_id,
                    settings.DRILL_PRACTICE_POWER_DELTA,
                    session.created_at,
                    grant_key=record.idempotency_key,
                )
            elif appended:
                log_event(
                    "info",
                    "momentum.awarded",
                    user_id=session.user_id,
                    artifact_id=session.artifact_id,
                    session_id=session.session_id,
                    extra={"momentum_awarded": session.momentum_awarded, "new_momentum": session.new_momentum},
                )


def _planned_records(
    user_id: str, artifact_id: str, session_id: str, momentum_awarded: int, now: datetime
) -> List[ActivityRecord]:
    records = []
    if momentum_awarded > 0:
        records.append(
            new_activity(
                user_id,
                ACCRUAL_ACTIVITY,
                now,
                metadata={"source": "drill_session", "session_id": session_id, "artifact_id": artifact_id},
                idempotency_key=award_key(session_id),
            )
        )
    records.append(
        new_activity(
            user_id,
            "artifact_practiced",
            now,
            metadata={"session_id": session_id, "artifact_id": artifact_id},
            idempotency_key=practice_key(session_id),
        )
    )
    return records


def _normalize(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


drill_service = DrillService()
