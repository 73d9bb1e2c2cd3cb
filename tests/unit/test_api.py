from __future__ import annotations

from typing import Dict

import pytest


def _login(client, username: str, password: str, role: str) -> Dict[str, str]:
    response = client.post("/api/login", json={"username": username, "password": password, "role": role})
    assert response.status_code == 200, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['data']['token']}"}


@pytest.fixture
def admin_headers(client) -> Dict[str, str]:
    return _login(client, "admin", "admin-pass", "admin")


@pytest.fixture
def alice_headers(client) -> Dict[str, str]:
    return _login(client, "alice", "contest", "participant")


def _create_sum_problem(client, headers) -> Dict:
    response = client.post("/api/problems", headers=headers, json={
        "title": "A+B",
        "description": "Add two numbers",
        "input": "Two integers",
        "output": "Their sum",
        "testCases": [{"input": "1 2", "output": "3"}, {"input": "5 7", "output": "12"}],
    })
    assert response.status_code == 201
    return response.get_json()["data"]


def _set_state(client, headers, state: str):
    return client.post("/api/contest/state", headers=headers, json={"state": state})


def test_login_failures(client, alice_headers) -> None:
    response = client.post("/api/login", json={"username": "alice", "password": "contest", "role": "participant"})
    assert response.status_code == 409
    assert response.get_json()["status"] == "error"

    response = client.post("/api/login", json={"username": "bob", "password": "bad", "role": "participant"})
    assert response.status_code == 401


def test_admin_routes_require_admin_token(client, alice_headers) -> None:
    assert client.get("/api/dashboard").status_code == 401
    assert client.get("/api/dashboard", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/dashboard", headers=alice_headers).status_code == 403


def test_problem_crud(client, admin_headers) -> None:
    created = _create_sum_problem(client, admin_headers)
    assert created["id"] == "p1"
    assert len(created["testCases"]) == 2

    listed = client.get("/api/problems").get_json()["data"]
    assert [p["id"] for p in listed] == ["p1"]
    assert "testCases" not in listed[0]

    response = client.put("/api/problems/p1", headers=admin_headers, json={
        "title": "A plus B", "testCases": [{"input": "2 2", "output": "4"}],
    })
    assert response.status_code == 200
    detail = client.get("/api/problems/p1", headers=admin_headers).get_json()["data"]
    assert detail["title"] == "A plus B"
    assert detail["testCases"] == [{"id": detail["testCases"][0]["id"], "input": "2 2", "output": "4"}]

    assert client.delete("/api/problems/p1", headers=admin_headers).status_code == 200
    assert client.delete("/api/problems/p1", headers=admin_headers).status_code == 404
    assert client.put("/api/problems/p1", headers=admin_headers, json={"title": "x"}).status_code == 404


def test_submission_flow(client, admin_headers, alice_headers) -> None:
    _create_sum_problem(client, admin_headers)

    response = client.post("/api/submit", headers=alice_headers, json={"problemId": "p1", "code": "SUM"})
    assert response.get_json() == {"success": False, "message": "대회가 진행 중이 아닙니다."}

    assert _set_state(client, admin_headers, "InProgress").status_code == 200

    response = client.post("/api/submit", headers=alice_headers, json={"problemId": "p1", "code": "PRINT 3"})
    assert response.get_json() == {"success": False, "message": "틀렸습니다 (TC 2/2 실패)"}

    response = client.post("/api/submit", headers=alice_headers, json={"problemId": "p1", "code": "SUM"})
    assert response.get_json() == {"success": True, "message": "정답입니다! (2/2 통과)"}

    status = client.get("/api/status/alice").get_json()["data"]
    assert status["score"] == 100
    assert status["currentProblem"] == 2

    alerts = client.get("/api/alerts").get_json()["data"]
    assert alerts[0]["type"] == "firstblood"

    dashboard = client.get("/api/dashboard", headers=admin_headers).get_json()["data"]
    assert dashboard["users"][0]["name"] == "alice"
    assert dashboard["totalProblems"] == 1
    assert dashboard["contestState"] == "InProgress"


def test_submit_unknown_problem(client, admin_headers, alice_headers) -> None:
    _set_state(client, admin_headers, "InProgress")
    response = client.post("/api/submit", headers=alice_headers, json={"problemId": "p7", "code": "SUM"})
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_unknown_user_status(client) -> None:
    response = client.get("/api/status/nobody")
    assert response.status_code == 404
    assert response.get_json()["message"] == "사용자 없음"


def test_invalid_state_changes(client, admin_headers) -> None:
    assert _set_state(client, admin_headers, "Paused").status_code == 400
    assert _set_state(client, admin_headers, "Finished").status_code == 409
    assert client.get("/api/contest/state").get_json()["data"]["state"] == "Waiting"


def test_finalize_requires_finished_contest(client, admin_headers, alice_headers) -> None:
    assert client.post("/api/rankings/finalize", headers=admin_headers).status_code == 409

    _set_state(client, admin_headers, "InProgress")
    _set_state(client, admin_headers, "Finished")
    response = client.post("/api/rankings/finalize", headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["data"] == [{"rank": 1, "name": "alice", "score": 0}]
    assert client.get("/api/rankings").get_json()["data"] == [{"rank": 1, "name": "alice", "score": 0}]


def test_kick_revokes_token(client, admin_headers, alice_headers, socket_client) -> None:
    socket_client.get_received()

    assert client.delete("/api/users/alice", headers=admin_headers).status_code == 200
    assert client.post("/api/logout", headers=alice_headers).status_code == 401
    assert client.delete("/api/users/alice", headers=admin_headers).status_code == 404

    received = socket_client.get_received()
    kicked = [msg for msg in received if msg["name"] == "userKicked"]
    assert kicked and kicked[0]["args"] == ["alice"]


def test_logout_then_login_again(client, alice_headers) -> None:
    assert client.post("/api/logout", headers=alice_headers).status_code == 200
    # The old token no longer works once logged out
    assert client.post("/api/logout", headers=alice_headers).status_code == 401
    _login(client, "alice", "contest", "participant")


def test_reset_only_outside_running_contest(client, admin_headers, alice_headers, socket_client) -> None:
    _set_state(client, admin_headers, "InProgress")
    assert client.post("/api/contest/reset", headers=admin_headers).status_code == 409

    _set_state(client, admin_headers, "Finished")
    socket_client.get_received()
    assert client.post("/api/contest/reset", headers=admin_headers).status_code == 200

    assert client.get("/api/status/alice").status_code == 404
    names = [msg["name"] for msg in socket_client.get_received()]
    assert "forceLogout" in names
    assert "contestStatusUpdate" in names


def test_socket_connect_receives_current_state(socket_client) -> None:
    received = socket_client.get_received()
    assert received[0]["name"] == "contestStatusUpdate"
    assert received[0]["args"] == ["Waiting"]


def test_sandbox_status(client, admin_headers, provider) -> None:
    data = client.get("/api/system/sandbox-status", headers=admin_headers).get_json()["data"]
    assert data["available"] is True
    provider.available = False
    data = client.get("/api/system/sandbox-status", headers=admin_headers).get_json()["data"]
    assert data["available"] is False
