"""
Drill submission tests.

Covers scoring, award gating, onboarding, idempotent replay, scenario
sources and failure handling of DrillService.submit_session.
"""

from datetime import timedelta

import pytest

from momentum_engine.core.errors import DependencyError, NotFoundError, PermissionError, ValidationError
from momentum_engine.features.drills.award_gate import utc_day_start
from momentum_engine.features.drills.service import DrillService
from momentum_engine.features.ledger.store import new_activity
from momentum_engine.models.drill import DrillSubmission
from momentum_engine.models.user import UserProfile

SCENARIOS = ["art-1-s1", "art-1-s2", "art-1-s3"]


def submission(answers=(0, 0, 1), session_id="sess-1", user_id="user-1", artifact_id="art-1", scenario_ids=None, **kw):
    return DrillSubmission(
        user_id=user_id,
        artifact_id=artifact_id,
        scenario_ids=list(scenario_ids or SCENARIOS),
        answers=list(answers),
        session_id=session_id,
        **kw,
    )


@pytest.fixture
def ready(store, make_artifact, onboarded):
    make_artifact(store)
    onboarded(store)
    return store


class TestAwarding:
    def test_first_session_from_zero_awards_first_tier(self, ready, now):
        result = DrillService(ready).submit_session(submission(answers=(0, 0, 1)), now)
        assert result.score == 2
        assert result.total_questions == 3
        assert result.momentum_awarded == 10
        assert result.previous_momentum == 0.0
        assert result.new_momentum == 10.0
        assert result.milestone is None
        assert result.no_momentum_reason is None
        assert not result.replayed

    def test_award_lands_in_ledger_and_power(self, ready, now):
        DrillService(ready).submit_session(submission(), now)
        accruals = ready.list_activities("user-1", activity_types=["conversation_completed"])
        practiced = ready.list_activities("user-1", activity_types=["artifact_practiced"])
        assert len(accruals) == 1
        assert accruals[0].metadata["source"] == "drill_session"
        assert accruals[0].metadata["session_id"] == "sess-1"
        assert len(practiced) == 1
        assert ready.get_artifact("art-1").power == 10

    def test_award_uses_current_tier(self, ready, now):
        for _ in range(3):
            ready.append_activity(new_activity("user-1", "conversation_completed", now - timedelta(days=1, hours=1)))
        result = DrillService(ready).submit_session(submission(), now)
        assert result.momentum_awarded == 5
        assert result.previous_momentum == 25.0  # 30 minus one decay window
        assert result.new_momentum == 35.0

    def test_milestone_reported_when_crossed(self, ready, now):
        for _ in range(2):
            ready.append_activity(new_activity("user-1", "conversation_completed", now - timedelta(hours=2)))
        result = DrillService(ready).submit_session(submission(), now)
        assert result.previous_momentum == 20.0
        assert result.new_momentum == 30.0
        assert result.milestone == 25

    def test_zero_score_awards_nothing(self, ready, now):
        result = DrillService(ready).submit_session(submission(answers=(1, 2, 3)), now)
        assert result.score == 0
        assert result.momentum_awarded == 0
        assert result.no_momentum_reason is None
        # Practice still counts for power
        assert ready.get_artifact("art-1").power == 10

    def test_zero_score_first_play_still_awards(self, ready, now):
        result = DrillService(ready).submit_session(submission(answers=(1, 2, 3), is_first_play=True), now)
        assert result.momentum_awarded == 10
        assert result.is_first_play


class TestGating:
    def test_fourth_play_same_artifact_is_limited(self, ready, now):
        service = DrillService(ready)
        results = [
            service.submit_session(submission(session_id=f"sess-{i}"), now + timedelta(minutes=i))
            for i in range(4)
        ]
        assert [r.no_momentum_reason for r in results] == [None, None, None, "daily_code_limit"]
        assert results[3].momentum_awarded == 0
        assert results[3].score == 2
        assert len(ready.list_sessions("user-1")) == 4

    def test_daily_cap(self, ready, now):
        for hour in range(3):
            ready.append_activity(new_activity("user-1", "conversation_completed", utc_day_start(now) + timedelta(hours=hour)))
        result = DrillService(ready).submit_session(submission(), now)
        assert result.momentum_awarded == 0
        assert result.no_momentum_reason == "daily_cap"
        assert result.new_momentum == result.previous_momentum

    def test_new_account_earns_past_daily_cap(self, store, make_artifact, now):
        make_artifact(store)
        store.save_profile(UserProfile(user_id="user-1", onboarding_completed=True, created_at=now - timedelta(hours=6)))
        for hour in range(3):
            store.append_activity(new_activity("user-1", "conversation_completed", utc_day_start(now) + timedelta(hours=hour)))
        result = DrillService(store).submit_session(submission(), now)
        assert result.no_momentum_reason is None
        assert result.momentum_awarded == 5

    def test_daily_cap_applies_once_account_is_three_days_old(self, store, make_artifact, now):
        make_artifact(store)
        store.save_profile(UserProfile(user_id="user-1", onboarding_completed=True, created_at=now - timedelta(days=3)))
        for hour in range(3):
            store.append_activity(new_activity("user-1", "conversation_completed", utc_day_start(now) + timedelta(hours=hour)))
        result = DrillService(store).submit_session(submission(), now)
        assert result.no_momentum_reason == "daily_cap"
        assert result.momentum_awarded == 0

    def test_not_onboarded_earns_nothing_and_reports_no_reason(self, store, make_artifact, now):
        make_artifact(store)
        service = DrillService(store)
        results = [
            service.submit_session(submission(session_id=f"sess-{i}"), now + timedelta(minutes=i))
            for i in range(4)
        ]
        assert all(r.momentum_awarded == 0 for r in results)
        assert all(r.no_momentum_reason is None for r in results)
        assert store.list_activities("user-1", activity_types=["conversation_completed"]) == []


class TestIdempotency:
    def test_replay_returns_original_result(self, ready, now):
        service = DrillService(ready)
        first = service.submit_session(submission(), now)
        second = service.submit_session(submission(answers=(3, 3, 3)), now + timedelta(minutes=5))
        assert second.replayed
        assert second.session_id == first.session_id
        assert second.score == first.score
        assert second.momentum_awarded == first.momentum_awarded
        assert second.new_momentum == first.new_momentum

    def test_replay_does_not_double_apply(self, ready, now):
        service = DrillService(ready)
        service.submit_session(submission(), now)
        service.submit_session(submission(), now)
        assert len(ready.list_activities("user-1", activity_types=["conversation_completed"])) == 1
        assert len(ready.list_sessions("user-1")) == 1
        assert ready.get_artifact("art-1").power == 10

    def test_submissions_without_session_id_are_separate_plays(self, ready, now):
        service = DrillService(ready)
        first = service.submit_session(submission(answers=(0, 0, 0), session_id=None), now)
        second = service.submit_session(submission(answers=(2, 2, 2), session_id=None), now + timedelta(minutes=1))
        assert not second.replayed
        assert second.session_id != first.session_id
        assert (first.score, second.score) == (3, 0)
        sessions = {s.session_id: s for s in ready.list_sessions("user-1")}
        assert sorted(s.play_number for s in sessions.values()) == [1, 2]
        assert sessions[second.session_id].answers == [2, 2, 2]

    def test_fourth_play_without_session_id_hits_code_limit(self, ready, now):
        service = DrillService(ready)
        results = [
            service.submit_session(submission(session_id=None), now + timedelta(minutes=i)) for i in range(4)
        ]
        assert [r.no_momentum_reason for r in results] == [None, None, None, "daily_code_limit"]
        assert len({r.session_id for r in results}) == 4

    def test_replay_repairs_lost_power_grant(self, ready, now, monkeypatch):
        original = ready.increment_power
        calls = {"n": 0}

        def fail_once(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise DependencyError("store went away")
            return original(*args, **kwargs)

        monkeypatch.setattr(ready, "increment_power", fail_once)
        service = DrillService(ready)
        with pytest.raises(DependencyError):
            service.submit_session(submission(), now)
        assert ready.get_artifact("art-1").power == 0

        result = service.submit_session(submission(), now)
        assert result.replayed
        assert ready.get_artifact("art-1").power == 10
        assert len(ready.list_activities("user-1", activity_types=["artifact_practiced"])) == 1

        service.submit_session(submission(), now)
        assert ready.get_artifact("art-1").power == 10

    def test_replay_repairs_interrupted_submission(self, ready, now, monkeypatch):
        service = DrillService(ready)
        original = DrillService._apply_side_effects
        calls = {"n": 0}

        def crash_once(self, session):
            calls["n"] += 1
            if calls["n"] == 1:
                raise DependencyError("store went away")
            return original(self, session)

        monkeypatch.setattr(DrillService, "_apply_side_effects", crash_once)
        with pytest.raises(DependencyError):
            service.submit_session(submission(), now)
        assert ready.list_activities("user-1") == []

        result = service.submit_session(submission(), now)
        assert result.replayed
        assert result.momentum_awarded == 10
        assert len(ready.list_activities("user-1", activity_types=["conversation_completed"])) == 1
        assert ready.get_artifact("art-1").power == 10

    def test_session_id_of_another_user_is_forbidden(self, store, make_artifact, onboarded, now):
        make_artifact(store, owner_id=None)
        onboarded(store, "user-1")
        onboarded(store, "user-2")
        DrillService(store).submit_session(submission(user_id="user-1"), now)
        with pytest.raises(PermissionError):
            DrillService(store).submit_session(submission(user_id="user-2"), now)


class TestValidation:
    @pytest.mark.parametrize(
        "scenario_ids,answers",
        [
            (SCENARIOS[:2], (0, 0, 0)),
            (SCENARIOS, (0, 0)),
            (SCENARIOS + ["extra"], (0, 0, 0, 0)),
            ([SCENARIOS[0]] * 3, (0, 0, 0)),
        ],
    )
    def test_wrong_shapes_rejected_before_writes(self, ready, now, scenario_ids, answers):
        with pytest.raises(ValidationError):
            DrillService(ready).submit_session(submission(scenario_ids=scenario_ids, answers=answers), now)
        assert ready.list_sessions("user-1") == []
        assert ready.list_activities("user-1") == []

    def test_unknown_artifact(self, ready, now):
        with pytest.raises(NotFoundError):
            DrillService(ready).submit_session(submission(artifact_id="nope"), now)

    def test_foreign_artifact(self, store, make_artifact, now):
        make_artifact(store, owner_id="user-2")
        with pytest.raises(PermissionError):
            DrillService(store).submit_session(submission(), now)

    def test_foreign_scenario(self, store, make_artifact, scenario_factory, now):
        make_artifact(store, owner_id=None, with_scenarios=False)
        store.save_scenario(scenario_factory("art-1-s1", "art-1", "user-2"))
        store.save_scenario(scenario_factory("art-1-s2", "art-1"))
        store.save_scenario(scenario_factory("art-1-s3", "art-1"))
        with pytest.raises(PermissionError):
            DrillService(store).submit_session(submission(), now)

    def test_scenario_from_other_artifact(self, ready, make_artifact, now):
        make_artifact(ready, artifact_id="art-2")
        ids = ["art-1-s1", "art-1-s2", "art-2-s1"]
        with pytest.raises(ValidationError):
            DrillService(ready).submit_session(submission(scenario_ids=ids), now)

    def test_unknown_scenario(self, ready, now):
        with pytest.raises(NotFoundError):
            DrillService(ready).submit_session(submission(scenario_ids=["art-1-s1", "art-1-s2", "ghost"]), now)

    def test_store_failure_propagates_without_writes(self, ready, now, monkeypatch):
        def unavailable(*args, **kwargs):
            raise DependencyError("ledger store unavailable")

        monkeypatch.setattr(ready, "list_activities", unavailable)
        with pytest.raises(DependencyError):
            DrillService(ready).submit_session(submission(), now)
        assert ready.list_sessions("user-1") == []


class TestBuiltInCatalog:
    def test_built_in_session_persists_empty_scenario_ids(self, store, make_artifact, onboarded, now):
        make_artifact(store, artifact_id="onb-1", owner_id="user-1", catalog_key="airball_laugh")
        onboarded(store)
        result = DrillService(store).submit_session(
            submission(artifact_id="onb-1", scenario_ids=["airball_1", "airball_2", "airball_3"], answers=(0, 0, 0)),
            now,
        )
        assert result.score == 3
        session = store.get_session(result.session_id)
        assert session.scenario_ids == []
        assert session.source.kind == "built_in"
        assert session.source.catalog_key == "airball_laugh"

    def test_unknown_built_in_scenario(self, store, make_artifact, now):
        make_artifact(store, artifact_id="onb-1", catalog_key="airball_laugh")
        with pytest.raises(NotFoundError):
            DrillService(store).submit_session(
                submission(artifact_id="onb-1", scenario_ids=["airball_1", "airball_2", "coach_1"]), now
            )

    def test_pick_rotates_by_day(self, store, make_artifact, now):
        make_artifact(store, artifact_id="onb-1", catalog_key="coach_yells")
        service = DrillService(store)
        today = [s.id for s in service.get_scenarios("user-1", "onb-1", now)]
        tomorrow = [s.id for s in service.get_scenarios("user-1", "onb-1", now + timedelta(days=1))]
        assert len(today) == 3
        assert len(set(today)) == 3
        assert today != tomorrow
        assert today == [s.id for s in service.get_scenarios("user-1", "onb-1", now)]

    def test_pick_rotates_after_a_play(self, store, make_artifact, onboarded, now):
        make_artifact(store, artifact_id="onb-1", catalog_key="coach_yells")
        onboarded(store)
        service = DrillService(store)
        first = [s.id for s in service.get_scenarios("user-1", "onb-1", now)]
        service.submit_session(submission(artifact_id="onb-1", scenario_ids=first, session_id=None), now)
        second = [s.id for s in service.get_scenarios("user-1", "onb-1", now)]
        assert len(set(second)) == 3
        assert second != first
