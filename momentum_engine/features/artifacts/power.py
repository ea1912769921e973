"""
Artifact power: a saturating 0..100 counter per artifact.

Power never decays and has no daily cap. Each confirmed use adds `delta`,
clamped at 100, and stamps last_used_at. Drill practice adds a flat delta;
logged real-world uses follow a front-loaded curve.
"""

from datetime import datetime, timezone
from typing import Optional

from momentum_engine.core.errors import NotFoundError, PermissionError, ValidationError
from momentum_engine.core.logging import log_event
from momentum_engine.features.ledger.store import new_activity
from momentum_engine.models.artifact import Artifact

# (uses up to and including, gain per use); beyond the last bound LATE_USE_GAIN
USE_GAIN_CURVE = ((3, 20), (6, 10), (10, 5))
LATE_USE_GAIN = 2


def use_power_gain(prior_uses: int) -> int:
    """Power gained by the next logged use after `prior_uses` earlier ones."""
    use_number = prior_uses + 1
    for upper, gain in USE_GAIN_CURVE:
        if use_number <= upper:
            return gain
    return LATE_USE_GAIN


class ArtifactPowerTracker:
    def __init__(self, store):
        self.store = store

    def record_use(
        self,
        artifact_id: str,
        delta: int,
        now: Optional[datetime] = None,
        grant_key: Optional[str] = None,
    ) -> int:
        """Atomically raise power by delta (clamped at 100). Returns new power.

        A grant_key makes the increment apply at most once, so callers can
        repeat it after a failure.
        """
        if delta < 0:
            raise ValidationError("delta must not be negative")
        now = now or datetime.now(timezone.utc)
        power = self.store.increment_power(artifact_id, delta, now, grant_key=grant_key)
        log_event(
            "info",
            "artifact.power_updated",
            artifact_id=artifact_id,
            extra={"delta": delta, "power": power, "grant_key": grant_key},
        )
        return power

    def log_use(
        self,
        user_id: str,
        artifact_id: str,
        *,
        delta: Optional[int] = None,
        now: Optional[datetime] = None,
        idempotency_key: Optional[str] = None,
    ) -> Artifact:
        """
        A user confirmed using an artifact outside a drill.

        Appends an artifact_used activity (which keeps momentum from decaying)
        and raises power. Keys are scoped to the user. Repeating a key
        re-applies only what the earlier call did not finish.
        """
        if delta is not None and delta < 0:
            raise ValidationError("delta must not be negative")
        now = now or datetime.now(timezone.utc)
        artifact = self.store.get_artifact(artifact_id)
        if artifact is None:
            raise NotFoundError(f"artifact {artifact_id} not found")
        if not artifact.accessible_by(user_id):
            raise PermissionError("artifact belongs to another user")

        use_key = use_key_for(user_id, idempotency_key) if idempotency_key else None
        if delta is None:
            prior = [
                r for r in self.store.list_activities(user_id, activity_types=["artifact_used"])
                if r.metadata.get("artifact_id") == artifact_id
                and (use_key is None or r.idempotency_key != use_key)
            ]
            delta = use_power_gain(len(prior))

        record = new_activity(
            user_id,
            "artifact_used",
            now,
            metadata={"artifact_id": artifact_id, "delta": delta},
            idempotency_key=use_key,
        )
        appended = self.store.append_activity(record)
        if appended or use_key is not None:
            self.record_use(artifact_id, delta, now, grant_key=use_key)
        return self.store.get_artifact(artifact_id)


def use_key_for(user_id: str, idempotency_key: str) -> str:
    return f"artifact-use:{user_id}:{idempotency_key}"
