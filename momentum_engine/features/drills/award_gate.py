"""
Award eligibility for drill sessions.

Two checks, in order; only the first failing one is reported:
1. daily_code_limit: the user already played this artifact
   DAILY_PLAYS_PER_ARTIFACT times today (UTC day).
2. daily_cap: the user's accrued momentum gain today already reached
   DAILY_MOMENTUM_CAP. New accounts are exempt for their first
   DAILY_CAP_GRACE_DAYS days; a user with no known signup time is not.

Store errors propagate. The gate never guesses a count.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from momentum_engine.core.config import settings
from momentum_engine.features.momentum.scoring_engine import MomentumScoringEngine
from momentum_engine.models.activity import ACCRUAL_ACTIVITY
from momentum_engine.models.drill import AwardEligibility


def utc_day(now: datetime) -> date:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).date()


def utc_day_start(now: datetime) -> datetime:
    return datetime.combine(utc_day(now), time.min, tzinfo=timezone.utc)


class AwardGate:
    def __init__(
        self,
        store,
        plays_per_artifact: Optional[int] = None,
        daily_cap: Optional[int] = None,
        grace_days: Optional[int] = None,
    ):
        self.store = store
        self.plays_per_artifact = settings.DAILY_PLAYS_PER_ARTIFACT if plays_per_artifact is None else plays_per_artifact
        self.daily_cap = settings.DAILY_MOMENTUM_CAP if daily_cap is None else daily_cap
        self.grace_days = settings.DAILY_CAP_GRACE_DAYS if grace_days is None else grace_days

    def plays_today(self, user_id: str, artifact_id: str, now: datetime) -> int:
        return self.store.count_sessions(user_id, artifact_id, utc_day(now))

    def daily_gain(self, user_id: str, now: datetime) -> float:
        """Base progress accrued since the start of the UTC day."""
        day_start = utc_day_start(now)
        accruals = self.store.list_activities(user_id, activity_types=[ACCRUAL_ACTIVITY], until=now)
        total = len(accruals)
        before_today = sum(1 for r in accruals if r.created_at < day_start)
        return (
            MomentumScoringEngine.base_progress_for(total)
            - MomentumScoringEngine.base_progress_for(before_today)
        )

    def daily_cap_active(self, user_id: str, now: datetime) -> bool:
        profile = self.store.get_profile(user_id)
        if profile is None or profile.created_at is None:
            return True
        signed_up = profile.created_at
        if signed_up.tzinfo is None:
            signed_up = signed_up.replace(tzinfo=timezone.utc)
        return (now - signed_up).days >= self.grace_days

    def check_eligibility(self, user_id: str, artifact_id: str, now: datetime) -> AwardEligibility:
        plays = self.plays_today(user_id, artifact_id, now)
        if plays >= self.plays_per_artifact:
            return AwardEligibility(can_earn=False, reason="daily_code_limit", plays_today=plays, daily_gain=0.0)

        gain = self.daily_gain(user_id, now)
        if gain >= self.daily_cap and self.daily_cap_active(user_id, now):
            return AwardEligibility(can_earn=False, reason="daily_cap", plays_today=plays, daily_gain=gain)

        return AwardEligibility(can_earn=True, reason=None, plays_today=plays, daily_gain=gain)
