from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from momentum_engine.features.ledger.store import get_store
from momentum_engine.models.activity import ActivityRecord
from momentum_engine.models.streak import StreakState


class StreakService:
    """Deterministic day-level streaks derived from the activity ledger.

    Any activity on a UTC day counts that day. Consecutive days extend the
    run; a missed day resets it to 1 on the next active day.
    """

    def __init__(self, store=None):
        self._store = store

    @property
    def store(self):
        return self._store or get_store()

    def get_state(self, user_id: str, now: Optional[datetime] = None) -> StreakState:
        now = now or datetime.now(timezone.utc)
        history = self.store.list_activities(user_id, until=now)
        return self.compute(user_id, history, now)

    @staticmethod
    def compute(user_id: str, history: Iterable[ActivityRecord], now: datetime) -> StreakState:
        days = _active_days(history)
        if not days:
            return StreakState(user_id=user_id)

        today = _normalize_day(now)
        runs = _runs(days)
        longest = max(length for _, length in runs)
        last_day, last_run = runs[-1]

        if last_day == today:
            status, current = "active", last_run
        elif last_day == today - timedelta(days=1):
            status, current = "at_risk", last_run
        else:
            status, current = "broken", 0

        return StreakState(
            user_id=user_id,
            current_length=current,
            longest_length=longest,
            last_active_day=last_day,
            active_today=last_day == today,
            status=status,
        )


def _normalize_day(moment: datetime) -> date:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


def _active_days(history: Iterable[ActivityRecord]) -> List[date]:
    return sorted({_normalize_day(r.created_at) for r in history})


def _runs(days: List[date]) -> List[tuple]:
    """(last day, length) for each run of consecutive days, oldest first."""
    runs: List[tuple] = []
    run_length = 0
    previous: Optional[date] = None
    for day in days:
        if previous is not None and day == previous + timedelta(days=1):
            run_length += 1
        else:
            if previous is not None:
                runs.append((previous, run_length))
            run_length = 1
        previous = day
    runs.append((previous, run_length))
    return runs


streak_service = StreakService()
