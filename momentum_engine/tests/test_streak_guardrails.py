from datetime import datetime, timedelta, timezone

from momentum_engine.features.ledger.store import new_activity
from momentum_engine.features.streaks.service import StreakService


def _active(store, user_id, *moments):
    for moment in moments:
        store.append_activity(new_activity(user_id, "artifact_practiced", moment))


def test_no_activity_means_no_streak(store):
    state = StreakService(store).get_state("u0", datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert state.current_length == 0
    assert state.status == "none"
    assert state.last_active_day is None


def test_streak_not_increment_twice_same_day(store):
    now = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    _active(store, "u1", now - timedelta(hours=2), now - timedelta(hours=1))

    state = StreakService(store).get_state("u1", now)
    assert state.current_length == 1
    assert state.status == "active"
    assert state.active_today


def test_consecutive_days_extend_streak(store):
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    _active(store, "u2", start, start + timedelta(days=1), start + timedelta(days=2))

    state = StreakService(store).get_state("u2", start + timedelta(days=2, hours=1))
    assert state.current_length == 3
    assert state.longest_length == 3


def test_yesterday_keeps_streak_at_risk(store):
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    _active(store, "u3", start, start + timedelta(days=1))

    state = StreakService(store).get_state("u3", start + timedelta(days=2))
    assert state.current_length == 2
    assert state.status == "at_risk"
    assert not state.active_today


def test_missed_day_resets_to_one(store):
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    _active(store, "u4", start, start + timedelta(days=1), start + timedelta(days=3))

    state = StreakService(store).get_state("u4", start + timedelta(days=3, hours=1))
    assert state.current_length == 1
    assert state.longest_length == 2


def test_broken_streak_reports_zero(store):
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    _active(store, "u5", start, start + timedelta(days=1))

    state = StreakService(store).get_state("u5", start + timedelta(days=5))
    assert state.current_length == 0
    assert state.longest_length == 2
    assert state.status == "broken"
