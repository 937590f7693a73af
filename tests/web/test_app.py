"""Tests for application wiring: error responses, request ids and health."""

import asyncio

from fastapi.testclient import TestClient

from admin_panel.services import UserService
from database import MemStorage, set_storage
from rbac import UserRole
from web.middleware import REQUEST_ID_HEADER


class TestErrorResponses:
    """Tests for the JSON error envelope."""

    def test_not_found_envelope(self, client, auth):
        response = client.get("/api/users/9999", headers=auth["user"])
        body = response.json()

        assert response.status_code == 404
        assert body["error"] is True
        assert body["code"] == "NOT_FOUND"
        assert body["message"] == "User not found"
        assert body["details"] == {"user_id": 9999}
        assert "timestamp" in body
        assert body["request_id"] == response.headers[REQUEST_ID_HEADER]

    def test_guard_failure_envelope(self, client, auth):
        body = client.get("/api/users", headers=auth["user"]).json()
        assert body["code"] == "PERMISSION_DENIED"
        assert body["message"] == "Admin access required"

    def test_validation_envelope(self, client):
        response = client.post("/api/login", json={"username": "x"})
        assert response.status_code == 422
        errors = response.json()["details"]["validation_errors"]
        assert any("password" in e for e in errors)

    def test_unexpected_error(self, app, storage):
        @app.get("/api/boom")
        async def boom():
            raise RuntimeError("kaboom")

        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/api/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "kaboom" not in body["message"]


class TestRequestId:
    """Tests for request id propagation."""

    def test_generated(self, client):
        response = client.get("/api/health")
        assert len(response.headers[REQUEST_ID_HEADER]) == 36

    def test_echoed(self, client):
        response = client.get("/api/health", headers={REQUEST_ID_HEADER: "req-123"})
        assert response.headers[REQUEST_ID_HEADER] == "req-123"


class TestStartup:
    """Tests for the application lifespan."""

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["routes"]["complaints"] == "active"

    def test_owner_seeded_once(self, app, storage):
        with TestClient(app):
            pass
        # shutdown forgets the active backend
        set_storage(storage)
        with TestClient(app):
            pass

        owners = [u for u in storage.get_all_users() if u.username == "owner"]
        assert len(owners) == 1


class LoopTrackingStorage(MemStorage):
    """Records every public storage call and whether it ran on the event loop."""

    def __init__(self):
        super().__init__()
        self._calls = []

    def __getattribute__(self, name):
        attr = super().__getattribute__(name)
        if name.startswith("_") or not callable(attr):
            return attr

        calls = super().__getattribute__("_calls")

        def tracked(*args, **kwargs):
            try:
                asyncio.get_running_loop()
                on_loop = True
            except RuntimeError:
                on_loop = False
            calls.append((name, on_loop))
            return attr(*args, **kwargs)

        return tracked


class TestStorageOffLoop:
    """Storage work runs in worker threads, never on the event loop."""

    def test_http_and_chat_calls(self, app, storage):
        tracking = LoopTrackingStorage()
        UserService(tracking).create_user("alice", "password123")
        UserService(tracking).create_user("helper", "password123", role=UserRole.SUPPORT)
        set_storage(tracking)

        with TestClient(app) as test_client:
            tracking._calls.clear()

            login = test_client.post("/api/login", json={"username": "alice", "password": "password123"})
            token = login.json()["access_token"]
            headers = {"Authorization": f"Bearer {token}"}
            staff_token = test_client.post(
                "/api/login", json={"username": "helper", "password": "password123"}
            ).json()["access_token"]
            staff_headers = {"Authorization": f"Bearer {staff_token}"}

            assert test_client.get("/api/user", headers=headers).status_code == 200
            complaint = test_client.post(
                "/api/complaints",
                json={"title": "Spam", "description": "Spam everywhere"},
                headers=headers,
            ).json()
            test_client.patch(f"/api/complaints/{complaint['id']}/assign", headers=staff_headers)
            test_client.post(
                f"/api/complaints/{complaint['id']}/messages",
                json={"message": "over http"},
                headers=headers,
            )

            with test_client.websocket_connect(f"/ws/complaints?token={token}") as ws:
                ws.receive_json()
                ws.send_json({"complaint_id": complaint["id"], "text": "over the socket"})
                assert ws.receive_json()["type"] == "complaint_message"

            test_client.post("/api/logout", headers=headers)

        names = {name for name, _ in tracking._calls}
        assert {"get_session", "create_complaint", "create_complaint_message", "end_session"} <= names
        assert [name for name, on_loop in tracking._calls if on_loop] == []
