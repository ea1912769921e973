"""HTTP surface tests: envelopes, auth header, and error mapping."""

from fastapi.testclient import TestClient

from momentum_engine.main import app

client = TestClient(app)

SCENARIOS = ["art-1-s1", "art-1-s2", "art-1-s3"]
USER = {"X-User-Id": "user-1"}


def test_momentum_requires_user_header():
    resp = client.get("/v1/momentum")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "http_error"


def test_momentum_for_new_user_is_zero():
    resp = client.get("/v1/momentum", headers=USER)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["progress"] == 0.0
    assert data["lastActivityAt"] is None
    assert data["dailyCap"] == 25


def test_record_conversation_then_read():
    resp = client.post("/v1/momentum/conversations", headers=USER, json={"idempotency_key": "c1"})
    assert resp.status_code == 201
    assert resp.json()["data"]["progress"] == 10.0

    again = client.post("/v1/momentum/conversations", headers=USER, json={"idempotency_key": "c1"})
    assert again.json()["data"]["activityCount"] == 1

    weekly = client.get("/v1/momentum/weekly", headers=USER)
    assert len(weekly.json()["data"]) == 7


def test_submit_drill_session(store, make_artifact, onboarded):
    make_artifact(store)
    onboarded(store)
    body = {"artifact_id": "art-1", "scenario_ids": SCENARIOS, "answers": [0, 0, 1], "session_id": "api-1"}

    resp = client.post("/v1/drills/sessions", headers=USER, json=body)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["score"] == 2
    assert data["momentumAwarded"] == 10
    assert data["newMomentum"] == 10.0
    assert data["replayed"] is False

    replay = client.post("/v1/drills/sessions", headers=USER, json=body)
    assert replay.json()["data"]["replayed"] is True

    listed = client.get("/v1/drills/sessions", headers=USER)
    assert [s["sessionId"] for s in listed.json()["data"]] == ["api-1"]


def test_submissions_without_session_id_are_recorded_separately(store, make_artifact, onboarded):
    make_artifact(store)
    onboarded(store)
    first = client.post(
        "/v1/drills/sessions", headers=USER, json={"artifact_id": "art-1", "scenario_ids": SCENARIOS, "answers": [0, 0, 0]}
    )
    second = client.post(
        "/v1/drills/sessions", headers=USER, json={"artifact_id": "art-1", "scenario_ids": SCENARIOS, "answers": [2, 2, 2]}
    )
    assert [first.json()["data"]["score"], second.json()["data"]["score"]] == [3, 0]
    assert second.json()["data"]["replayed"] is False
    listed = client.get("/v1/drills/sessions", headers=USER).json()["data"]
    assert len(listed) == 2


def test_submit_wrong_arity_is_400(store, make_artifact):
    make_artifact(store)
    body = {"artifact_id": "art-1", "scenario_ids": SCENARIOS[:2], "answers": [0, 0]}
    resp = client.post("/v1/drills/sessions", headers=USER, json=body)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_submit_unknown_artifact_is_404():
    body = {"artifact_id": "ghost", "scenario_ids": SCENARIOS, "answers": [0, 0, 0]}
    resp = client.post("/v1/drills/sessions", headers=USER, json=body)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_submit_foreign_artifact_is_403(store, make_artifact):
    make_artifact(store, owner_id="user-2")
    body = {"artifact_id": "art-1", "scenario_ids": SCENARIOS, "answers": [0, 0, 0]}
    resp = client.post("/v1/drills/sessions", headers=USER, json=body)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "forbidden"


def test_get_scenarios_hides_categories(store, make_artifact):
    make_artifact(store, artifact_id="onb-1", catalog_key="miss_spiral")
    resp = client.get("/v1/drills/scenarios", headers=USER, params={"artifact_id": "onb-1"})
    assert resp.status_code == 200
    scenarios = resp.json()["data"]
    assert len(scenarios) == 3
    assert all(isinstance(option, str) for option in scenarios[0]["options"])


def test_log_artifact_use(store, make_artifact):
    make_artifact(store, power=95)
    resp = client.post("/v1/artifacts/art-1/use", headers=USER, json={"delta": 10})
    assert resp.status_code == 200
    assert resp.json()["data"]["power"] == 100

    fetched = client.get("/v1/artifacts/art-1", headers=USER)
    assert fetched.json()["data"]["power"] == 100


def test_log_artifact_use_without_body(store, make_artifact):
    make_artifact(store)
    resp = client.post("/v1/artifacts/art-1/use", headers=USER)
    assert resp.status_code == 200
    assert resp.json()["data"]["power"] == 20


def test_negative_delta_is_400(store, make_artifact):
    make_artifact(store)
    resp = client.post("/v1/artifacts/art-1/use", headers=USER, json={"delta": -1})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_streak_endpoint():
    client.post("/v1/momentum/conversations", headers=USER, json={})
    resp = client.get("/v1/streaks/current", headers=USER)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["current_length"] == 1
    assert data["status"] == "active"
