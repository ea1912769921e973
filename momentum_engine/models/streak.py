from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

StreakStatus = Literal["active", "at_risk", "broken", "none"]


@dataclass(frozen=True)
class StreakState:
    """
    Day-level activity streak derived from the ledger. UTC only.
    """

    user_id: str
    current_length: int = 0
    longest_length: int = 0
    last_active_day: Optional[date] = None
    active_today: bool = False
    status: StreakStatus = "none"

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "current_length": self.current_length,
            "longest_length": self.longest_length,
            "last_active_date": self.last_active_day.isoformat() if self.last_active_day else None,
            "active_today": self.active_today,
            "status": self.status,
        }
