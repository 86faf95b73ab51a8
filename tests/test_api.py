from starlette.requests import Request

from weblock.ui import render_dashboard


def receive_until(ws, predicate, limit=50):
    """Read pushes until one matches; returns everything read."""
    seen = []
    for _ in range(limit):
        message = ws.receive_json()
        seen.append(message)
        if predicate(message):
            return seen
    raise AssertionError(f"no matching message in {seen}")


def test_dashboard_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "SecureWebLock" in response.text
    assert "/ws" in response.text
    assert response.headers["content-type"].startswith("text/html")


def test_dashboard_title_is_escaped():
    request = Request({"type": "http", "method": "GET", "path": "/", "headers": []})
    response = render_dashboard(request, title="<b>Lab</b>")
    assert b"&lt;b&gt;Lab&lt;/b&gt;" in response.body
    assert b"<b>Lab</b>" not in response.body


def test_health_reports_local_only_mode(client):
    body = client.get("/api/health").json()
    assert body == {"status": "degraded", "backend": "memory", "connected": True, "persistent": False}


def test_add_list_delete_users(client):
    response = client.post("/api/users", json={"rfid": "1234", "name": "Alice"})
    assert response.status_code == 200
    assert response.json()["user"] == {"rfid": "1234", "name": "Alice"}
    assert client.get("/api/users").json() == {"users": {"1234": "Alice"}}

    client.post("/api/users", json={"rfid": "1234", "name": "Bob"})
    assert client.get("/api/users").json() == {"users": {"1234": "Bob"}}

    assert client.delete("/api/users/1234").status_code == 400
    assert client.delete("/api/users/1234", params={"confirm": "true"}).status_code == 200
    assert client.delete("/api/users/1234", params={"confirm": "true"}).status_code == 200
    assert client.get("/api/users").json() == {"users": {}}

    logs = [entry["message"] for entry in client.get("/api/logs").json()["logs"]]
    assert logs == [
        "User Deleted: RFID 1234",
        "User Deleted: RFID 1234",
        "User Added: RFID 1234 - Bob",
        "User Added: RFID 1234 - Alice",
    ]


def test_add_user_validation(client):
    response = client.post("/api/users", json={"rfid": "", "name": "Alice"})
    assert response.status_code == 400
    assert response.json()["detail"] == "RFID and Name cannot be empty."
    assert client.get("/api/logs").json() == {"logs": []}


def test_reject_policy_returns_conflict(settings, store):
    from fastapi.testclient import TestClient
    from weblock.main import create_app

    settings.USER_CONFLICT_POLICY = "reject"
    with TestClient(create_app(settings, store)) as client:
        assert client.post("/api/users", json={"rfid": "1", "name": "A"}).status_code == 200
        assert client.post("/api/users", json={"rfid": "1", "name": "B"}).status_code == 409


def test_logs_limit(client):
    for i in range(3):
        client.post("/api/users", json={"rfid": str(i), "name": f"user{i}"})
    logs = client.get("/api/logs", params={"limit": 2}).json()["logs"]
    assert [entry["message"] for entry in logs] == ["User Added: RFID 2 - user2", "User Added: RFID 1 - user1"]


def test_websocket_session_grant_and_relock(client):
    client.post("/api/users", json={"rfid": "1234", "name": "Alice"})

    with client.websocket_connect("/ws") as ws:
        first = ws.receive_json()
        assert first == {"type": "lock", "locked": True}
        receive_until(ws, lambda m: m["type"] == "users" and m["users"] == {"1234": "Alice"})

        ws.send_json({"action": "submit_rfid", "rfid": "1234"})
        receive_until(ws, lambda m: m == {"type": "lock", "locked": False})
        granted = receive_until(ws, lambda m: m["type"] == "toast")
        assert granted[-1]["description"] == "Access Granted: RFID 1234 - Alice"

        receive_until(ws, lambda m: m == {"type": "lock", "locked": True})
        relock = receive_until(ws, lambda m: m["type"] == "toast")
        assert relock[-1]["title"] == "Lock Re-engaged"


def test_websocket_sessions_have_independent_lock_state(client):
    with client.websocket_connect("/ws") as first:
        assert first.receive_json() == {"type": "lock", "locked": True}
        first.send_json({"action": "toggle_lock"})
        receive_until(first, lambda m: m == {"type": "lock", "locked": False})

        with client.websocket_connect("/ws") as second:
            assert second.receive_json() == {"type": "lock", "locked": True}


def test_websocket_unknown_rfid_and_bad_payload(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"action": "submit_rfid", "rfid": "9999"})
        denied = receive_until(ws, lambda m: m["type"] == "toast")
        assert denied[-1]["description"] == "Access Denied: Unknown RFID 9999"
        assert denied[-1]["variant"] == "destructive"

        ws.send_text("not json")
        bad = receive_until(ws, lambda m: m["type"] == "toast")
        assert bad[-1]["description"] == "Unsupported action."


def test_module_level_app_serves_with_default_config():
    from fastapi.testclient import TestClient

    from weblock.main import app

    with TestClient(app) as client:
        assert client.get("/api/health").status_code == 200
