"""
Momentum Service

Reads the activity ledger and computes momentum on demand.
Nothing computed here is stored; every read reflects the ledger as of `now`.
"""

from datetime import datetime, time, timedelta, timezone
from typing import List, Optional

from momentum_engine.core.logging import log_event
from momentum_engine.features.drills.award_gate import AwardGate, utc_day
from momentum_engine.features.ledger.store import get_store, new_activity
from momentum_engine.features.momentum.scoring_engine import MomentumScoringEngine
from momentum_engine.models.activity import ACCRUAL_ACTIVITY, ActivityRecord
from momentum_engine.models.momentum import DailySummary, MomentumState


class MomentumService:
    """Ledger-backed momentum reads and accrual writes."""

    @staticmethod
    def get_momentum(user_id: str, now: Optional[datetime] = None, store=None) -> MomentumState:
        """
        Compute current momentum for a user.

        Store failures propagate as DependencyError; momentum is never
        reported as 0 because the ledger could not be read.
        """
        now = _normalize(now)
        store = store or get_store()
        history = store.list_activities(user_id, until=now)
        return MomentumScoringEngine.compute(history, now)

    @staticmethod
    def get_daily_summary(user_id: str, now: Optional[datetime] = None, store=None) -> DailySummary:
        now = _normalize(now)
        store = store or get_store()
        state = MomentumService.get_momentum(user_id, now, store)
        gate = AwardGate(store)
        return DailySummary(
            momentum=state,
            daily_gain=gate.daily_gain(user_id, now),
            daily_cap=gate.daily_cap,
            daily_cap_active=gate.daily_cap_active(user_id, now),
        )

    @staticmethod
    def get_weekly(user_id: str, now: Optional[datetime] = None, store=None) -> List[MomentumState]:
        """
        Momentum at the end of each of the last 7 UTC days, most recent first.

        Today's entry is evaluated at `now`, earlier days at 23:59:59.
        """
        now = _normalize(now)
        store = store or get_store()
        history = store.list_activities(user_id, until=now)
        today = utc_day(now)
        states = []
        for offset in range(7):
            day = today - timedelta(days=offset)
            as_of = now if offset == 0 else datetime.combine(day, time.max, tzinfo=timezone.utc)
            visible = [r for r in history if r.created_at <= as_of]
            states.append(MomentumScoringEngine.compute(visible, as_of))
        return states

    @staticmethod
    def record_conversation_completed(
        user_id: str,
        now: Optional[datetime] = None,
        idempotency_key: Optional[str] = None,
        store=None,
    ) -> ActivityRecord:
        """
        Append an accrual record for a finished coaching conversation.

        With an idempotency_key a retried call appends nothing.
        """
        now = _normalize(now)
        store = store or get_store()
        record = new_activity(
            user_id,
            ACCRUAL_ACTIVITY,
            now,
            metadata={"source": "conversation"},
            idempotency_key=f"conversation:{user_id}:{idempotency_key}" if idempotency_key else None,
        )
        appended = store.append_activity(record)
        log_event(
            "info",
            "momentum.conversation_recorded" if appended else "momentum.conversation_replayed",
            user_id=user_id,
            event_type=ACCRUAL_ACTIVITY,
        )
        return record


def _normalize(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
