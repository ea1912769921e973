"""
Momentum Scoring Engine

Pure, deterministic computation of momentum from the activity ledger.
No external calls, no randomness, no side effects.

Scoring philosophy:
- Only conversation_completed records accrue progress
- Accrual is tiered: events 1-3 add 10 each, 4-10 add 5 each, 11+ add 2 each
- Any activity (conversations, practice, logged uses) keeps decay away
- After 24h of inactivity, every full 24h window costs 5 points
- Final progress clamped to 0..100

Decay is never stored; it is recomputed from the last activity on every read.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from momentum_engine.models.activity import ActivityRecord
from momentum_engine.models.momentum import MomentumState


class MomentumScoringEngine:
    """Pure deterministic momentum scoring."""

    # Accrual tiers: (events in tier, points per event)
    FIRST_TIER_EVENTS = 3
    FIRST_TIER_POINTS = 10.0
    SECOND_TIER_EVENTS = 7
    SECOND_TIER_POINTS = 5.0
    LATE_POINTS = 2.0

    # Decay
    DECAY_WINDOW_HOURS = 24.0
    DECAY_PER_WINDOW = 5.0

    MIN_PROGRESS = 0.0
    MAX_PROGRESS = 100.0

    @staticmethod
    def compute(history: Iterable[ActivityRecord], now: Optional[datetime] = None) -> MomentumState:
        """
        Compute momentum from a user's activity history.

        Args:
            history: all of the user's activity records, any order
            now: evaluation time (UTC); defaults to the current time

        Returns:
            MomentumState with progress, base, decay and last activity
        """
        now = _as_utc(now or datetime.now(timezone.utc))
        records = list(history)

        activity_count = sum(1 for r in records if r.is_accrual)
        last_activity_at = max((_as_utc(r.created_at) for r in records), default=None)

        base = MomentumScoringEngine.base_progress_for(activity_count)
        hours = MomentumScoringEngine._hours_since(last_activity_at, now)
        decay = MomentumScoringEngine.decay_for_hours(hours)
        progress = MomentumScoringEngine._clamp(base - decay)

        state = MomentumState(
            progress=progress,
            activity_count=activity_count,
            base_progress=base,
            decay=decay,
            last_activity_at=last_activity_at,
            hours_until_next_decay=MomentumScoringEngine._hours_until_next_decay(hours),
            computed_at=now,
        )
        state.validate()
        return state

    @staticmethod
    def base_progress_for(activity_count: int) -> float:
        """Closed-form tiered accrual for n accrual events. Unbounded."""
        n = max(0, activity_count)
        first = min(n, MomentumScoringEngine.FIRST_TIER_EVENTS)
        second = min(max(n - MomentumScoringEngine.FIRST_TIER_EVENTS, 0), MomentumScoringEngine.SECOND_TIER_EVENTS)
        late = max(n - MomentumScoringEngine.FIRST_TIER_EVENTS - MomentumScoringEngine.SECOND_TIER_EVENTS, 0)
        return (
            first * MomentumScoringEngine.FIRST_TIER_POINTS
            + second * MomentumScoringEngine.SECOND_TIER_POINTS
            + late * MomentumScoringEngine.LATE_POINTS
        )

    @staticmethod
    def accrual_increment(activity_number: int) -> int:
        """Points the n-th accrual event (1-based) adds to base progress."""
        if activity_number <= 0:
            return 0
        if activity_number <= MomentumScoringEngine.FIRST_TIER_EVENTS:
            return int(MomentumScoringEngine.FIRST_TIER_POINTS)
        if activity_number <= MomentumScoringEngine.FIRST_TIER_EVENTS + MomentumScoringEngine.SECOND_TIER_EVENTS:
            return int(MomentumScoringEngine.SECOND_TIER_POINTS)
        return int(MomentumScoringEngine.LATE_POINTS)

    @staticmethod
    def decay_for_hours(hours: Optional[float]) -> float:
        """
        Decay after `hours` of inactivity, 0 inside the first window.

        None (no activity ever) and negative hours (records from the future
        under clock skew) both mean no decay.
        """
        if hours is None or hours < MomentumScoringEngine.DECAY_WINDOW_HOURS:
            return 0.0
        windows = math.floor(hours / MomentumScoringEngine.DECAY_WINDOW_HOURS)
        return windows * MomentumScoringEngine.DECAY_PER_WINDOW

    @staticmethod
    def _hours_since(last_activity_at: Optional[datetime], now: datetime) -> Optional[float]:
        if last_activity_at is None:
            return None
        return (now - last_activity_at).total_seconds() / 3600.0

    @staticmethod
    def _hours_until_next_decay(hours: Optional[float]) -> float:
        if hours is None:
            return 0.0
        window = MomentumScoringEngine.DECAY_WINDOW_HOURS
        if hours < 0:
            # Future-dated activity: the first window starts at that timestamp
            return round(window - hours, 1)
        return round(window - (hours % window), 1)

    @staticmethod
    def _clamp(raw: float) -> float:
        return max(MomentumScoringEngine.MIN_PROGRESS, min(MomentumScoringEngine.MAX_PROGRESS, raw))


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
