import logging

import pytest
from fastapi.testclient import TestClient

from practicehub.core.clock import get_clock
from practicehub.features.execution.schemas import ExecutionTransportFailure
from practicehub.features.execution.service import get_execution_client
from practicehub.main import app

from conftest import FakeExecutionClient


@pytest.fixture
def client(db, fake_client, clock):
    app.dependency_overrides[get_execution_client] = lambda: fake_client
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _register(client, username, password="secret123"):
    resp = client.post("/auth/register", json={"username": username, "password": password})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]


def _login(client, username, password="secret123"):
    resp = client.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _create_problem(client, admin_headers, **overrides):
    body = {
        "title": "Double it",
        "description": "Print twice the input.",
        "difficulty": "Easy",
        "test_cases": [
            {"input": "5", "expected_output": "10", "visibility": "public", "order_index": 0},
            {"input": "3", "expected_output": "6", "visibility": "hidden", "order_index": 2},
            {"input": "1", "expected_output": "2", "visibility": "hidden", "order_index": 0},
            {"input": "2", "expected_output": "4", "visibility": "hidden", "order_index": 1},
        ],
    }
    body.update(overrides)
    resp = client.post("/problems", json=body, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_register_login_and_profile(client):
    headers, user = _register(client, "alice")
    assert user["solved_count"] == 0
    assert user["role"] == "student"

    dup = client.post("/auth/register", json={"username": "alice", "password": "secret123"})
    assert dup.status_code == 409
    assert dup.json()["detail"]["error_code"] == "username_taken"

    bad = client.post("/auth/login", json={"username": "alice", "password": "nope"})
    assert bad.status_code == 401

    me = client.get("/auth/me", headers=_login(client, "alice"))
    assert me.json()["username"] == "alice"

    updated = client.put("/users/me", json={"username": "alice2"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["username"] == "alice2"
    _login(client, "alice2")


def test_authoring_requires_admin(client, seed):
    seed.user("admin", role="admin")
    admin_headers = _login(client, "admin")
    student_headers, _ = _register(client, "bob")

    denied = client.post("/problems", json={"title": "x", "difficulty": "Easy"}, headers=student_headers)
    assert denied.status_code == 403

    created = _create_problem(client, admin_headers)
    assert created["difficulty"] == "Easy"
    # only public cases are exposed
    assert [tc["input"] for tc in created["test_cases"]] == ["5"]

    renamed = client.put(f"/problems/{created['id']}", json={"title": "Twice"}, headers=admin_headers)
    assert renamed.json()["title"] == "Twice"

    assert client.delete(f"/problems/{created['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/problems/{created['id']}").status_code == 404


def test_submit_flow_updates_progress_and_leaderboard(client, seed, fake_client):
    seed.user("admin", role="admin")
    admin_headers = _login(client, "admin")
    problem = _create_problem(client, admin_headers)
    headers, user = _register(client, "alice")

    wrong = client.post("/submit", json={"problem_id": problem["id"], "code": "wrong", "language": "python"}, headers=headers)
    assert wrong.status_code == 200
    body = wrong.json()
    assert body["success"] is False
    assert (body["passed"], body["failed"], body["total"]) == (1, 1, 3)
    assert body["error"]["kind"] == "wrong_answer"

    ok = client.post("/submit", json={"problem_id": problem["id"], "code": "correct", "language": "py"}, headers=headers)
    assert ok.json()["success"] is True
    assert ok.json()["newly_solved"] is True

    listing = client.get("/problems", headers=headers).json()
    assert listing[0]["is_solved"] is True
    assert client.get("/problems").json()[0]["is_solved"] is False

    progress = client.get(f"/users/{user['id']}/progress", headers=headers).json()
    assert progress["solved"] == 1
    assert progress["score"] == 10
    assert progress["streak"] == 1
    assert progress["rank"] == 1

    assert client.get(f"/users/{user['id']}/streak", headers=headers).json()["streak"] == 1
    assert len(client.get(f"/users/{user['id']}/activity", headers=headers).json()) == 90
    badges = client.get(f"/users/{user['id']}/badges", headers=headers).json()
    assert any(b["key"] == "first_solve" and b["earned"] for b in badges)
    assert client.get(f"/users/{user['id']}/last-problem", headers=headers).json()["id"] == problem["id"]

    history = client.get("/submissions/me", headers=headers).json()
    assert [h["status"] for h in history] == ["accepted", "wrong_answer"]

    board = client.get("/leaderboard").json()
    assert board["entries"][0]["username"] == "alice"
    assert board["entries"][0]["rank"] == 1
    assert client.get("/leaderboard/me", headers=headers).json()["score"] == 10


def test_submit_error_mapping(client, seed):
    seed.user("admin", role="admin")
    admin_headers = _login(client, "admin")
    no_hidden = _create_problem(
        client,
        admin_headers,
        test_cases=[{"input": "1", "expected_output": "2", "visibility": "public", "order_index": 0}],
    )
    headers, _ = _register(client, "alice")

    resp = client.post("/submit", json={"problem_id": no_hidden["id"], "code": "x", "language": "python"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["detail"]["error_code"] == "configuration_error"

    resp = client.post("/submit", json={"problem_id": 9999, "code": "x", "language": "python"}, headers=headers)
    assert resp.status_code == 404

    resp = client.post("/submit", json={"problem_id": no_hidden["id"], "language": "python"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"]["error_code"] == "validation_error"

    unauthenticated = client.post("/submit", json={"problem_id": no_hidden["id"], "code": "x", "language": "python"})
    assert unauthenticated.status_code in (401, 403)


def test_transport_failure_maps_to_502(client, seed):
    seed.user("admin", role="admin")
    problem = _create_problem(client, _login(client, "admin"))
    headers, _ = _register(client, "alice")
    app.dependency_overrides[get_execution_client] = lambda: FakeExecutionClient(
        lambda code, stdin: ExecutionTransportFailure(reason="timeout")
    )

    resp = client.post("/submit", json={"problem_id": problem["id"], "code": "x", "language": "python"}, headers=headers)

    assert resp.status_code == 502
    assert resp.json()["detail"]["error_code"] == "execution_error"


def test_run_and_languages(client):
    headers, _ = _register(client, "alice")

    resp = client.post("/run", json={"code": "print(input())", "language": "python", "stdin": "4"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"output": "8\r\n", "success": True, "stderr": None, "exit_code": 0}

    langs = client.get("/run/languages").json()
    assert "python" in [lang["name"] for lang in langs["languages"]]


def test_companies_and_health(client, seed):
    acme = seed.company("Acme")
    seed.problem("Acme problem", company=acme)
    seed.problem("Other problem")

    companies = client.get("/companies").json()
    assert companies[0]["name"] == "Acme"
    assert companies[0]["problem_count"] == 1
    problems = client.get(f"/companies/{acme.id}/problems").json()
    assert [p["title"] for p in problems] == ["Acme problem"]
    assert client.get("/companies/999/problems").status_code == 404

    health = client.get("/healthz").json()
    assert health["status"] == "ok"


def test_problem_with_submissions_cannot_be_deleted(client, seed):
    seed.user("admin", role="admin")
    admin_headers = _login(client, "admin")
    problem = _create_problem(client, admin_headers)
    headers, _ = _register(client, "alice")
    client.post("/submit", json={"problem_id": problem["id"], "code": "correct", "language": "python"}, headers=headers)

    resp = client.delete(f"/problems/{problem['id']}", headers=admin_headers)

    assert resp.status_code == 409
    assert resp.json()["detail"]["error_code"] == "problem_in_use"
    assert client.get(f"/problems/{problem['id']}").status_code == 200


def test_store_failures_map_to_503(client, seed, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from practicehub.features.leaderboard import service as leaderboard_service
    from practicehub.features.progress import repository as progress_repository
    from practicehub.features.submissions.repository import submissions_repository

    headers, user = _register(client, "alice")

    def locked(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(progress_repository, "solved_rows", locked)
    monkeypatch.setattr(progress_repository, "unsolved_problems", locked)
    monkeypatch.setattr(leaderboard_service, "score_table", locked)
    monkeypatch.setattr(submissions_repository, "list_for_user", locked)

    for path in (
        f"/users/{user['id']}/progress",
        f"/users/{user['id']}/streak",
        f"/users/{user['id']}/last-problem",
        f"/users/{user['id']}/recommended",
        "/leaderboard",
        "/leaderboard/me",
        "/submissions/me",
    ):
        resp = client.get(path, headers=headers)
        assert resp.status_code == 503, path
        assert resp.json()["detail"]["error_code"] == "persistence_error"


def test_request_id_reaches_log_lines(client, caplog):
    caplog.set_level(logging.INFO, logger="request")

    resp = client.get("/healthz", headers={"X-Request-Id": "req-123"})

    assert resp.headers["X-Request-Id"] == "req-123"
    messages = [r.getMessage() for r in caplog.records if r.name == "request"]
    assert any("request.start request_id=req-123" in m for m in messages)
    assert any("request.end request_id=req-123" in m and "status=200" in m for m in messages)
