"""
Momentum domain model.

Momentum answers: "Have I been showing up lately?"
It is a bounded 0..100 percentage recomputed from the activity ledger on
every read. Nothing here is stored.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional


MilestonePolicy = Literal["lowest", "highest"]


@dataclass(frozen=True)
class MomentumState:
    """
    Point-in-time momentum for a user.

    Attributes:
        progress: clamp(base_progress - decay, 0, 100)
        activity_count: number of accrual (conversation_completed) records
        base_progress: tiered accrual before decay, unbounded
        decay: points lost to inactivity, a multiple of the per-window decay
        last_activity_at: most recent record of any type, or None
        hours_until_next_decay: hours until the next decay step applies
        computed_at: the "now" this state was computed for
    """

    progress: float
    activity_count: int
    base_progress: float
    decay: float
    last_activity_at: Optional[datetime]
    hours_until_next_decay: float
    computed_at: datetime

    @property
    def is_decaying(self) -> bool:
        return self.decay > 0

    @property
    def display_progress(self) -> int:
        return int(math.floor(self.progress))

    def validate(self) -> None:
        """Ensure state is valid."""
        assert 0.0 <= self.progress <= 100.0, f"progress out of range: {self.progress}"
        assert self.activity_count >= 0, f"negative activity_count: {self.activity_count}"
        assert self.decay >= 0.0, f"negative decay: {self.decay}"
        expected = max(0.0, min(100.0, self.base_progress - self.decay))
        assert self.progress == expected, f"progress {self.progress} != clamp(base - decay) {expected}"
        if self.activity_count == 0 and self.last_activity_at is None:
            assert self.progress == 0.0, "empty history must have zero progress"

    def to_dict(self) -> dict:
        """Serialize to dict for JSON response."""
        return {
            "progress": round(self.progress, 1),
            "displayProgress": self.display_progress,
            "activityCount": self.activity_count,
            "baseProgress": round(self.base_progress, 1),
            "decay": round(self.decay, 1),
            "isDecaying": self.is_decaying,
            "hoursUntilNextDecay": self.hours_until_next_decay,
            "lastActivityAt": self.last_activity_at.isoformat() if self.last_activity_at else None,
            "computedAt": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class DailySummary:
    """Momentum plus today's gain against the per-user daily cap."""

    momentum: MomentumState
    daily_gain: float
    daily_cap: int
    daily_cap_active: bool = True

    @property
    def daily_cap_reached(self) -> bool:
        return self.daily_cap_active and self.daily_gain >= self.daily_cap

    def to_dict(self) -> dict:
        data = self.momentum.to_dict()
        data.update(
            {
                "dailyGain": round(self.daily_gain, 1),
                "dailyCap": self.daily_cap,
                "dailyCapActive": self.daily_cap_active,
                "dailyCapReached": self.daily_cap_reached,
            }
        )
        return data
