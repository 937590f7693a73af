"""
Tests for login session listings.
"""


class TestSessionRoutes:

    def test_active_sessions(self, client, auth, users):
        response = client.get("/api/sessions/active", headers=auth["admin"])
        assert response.status_code == 200
        user_ids = {s["user_id"] for s in response.json()}
        assert users["user"].id in user_ids
        assert all(s["is_active"] for s in response.json())

    def test_expired_after_logout(self, client, auth, users):
        client.post("/api/logout", headers=auth["user"])

        response = client.get("/api/sessions/expired", headers=auth["admin"])
        expired = [s for s in response.json() if s["user_id"] == users["user"].id]
        assert len(expired) == 1
        assert expired[0]["end_time"] is not None

    def test_non_admin_forbidden(self, client, auth):
        assert client.get("/api/sessions/active", headers=auth["support"]).status_code == 403
        assert client.get("/api/sessions/expired", headers=auth["user"]).status_code == 403

    def test_own_sessions(self, client, auth, users, login_as):
        login_as("alice")
        response = client.get("/api/sessions/user", headers=auth["user"])
        assert response.status_code == 200
        sessions = response.json()
        assert len(sessions) == 2
        assert {s["user_id"] for s in sessions} == {users["user"].id}
