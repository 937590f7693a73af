"""Tests for the complaint chat connection manager."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from admin_panel.models import User
from admin_panel.support.complaint_models import Complaint
from realtime import ConnectionManager, EventType, create_error_event
from realtime.connection_manager import WS_CLOSE_UNAUTHORIZED
from rbac import UserRole


def make_socket():
    socket = AsyncMock()
    socket.accept = AsyncMock()
    socket.send_json = AsyncMock()
    socket.close = AsyncMock()
    return socket


def make_user(user_id, role=UserRole.USER):
    return User(id=user_id, username=f"user{user_id}", password_hash="x", role=role)


def sent_types(socket):
    return [call.args[0]["type"] for call in socket.send_json.await_args_list]


@pytest.fixture
def manager():
    return ConnectionManager()


class TestConnect:
    """Tests for connecting and disconnecting."""

    @pytest.mark.asyncio
    async def test_connect_accepts_and_greets(self, manager):
        """Connect accepts the socket and sends the connected event."""
        socket = make_socket()
        await manager.connect(socket, make_user(1))

        socket.accept.assert_awaited_once()
        assert sent_types(socket) == ["connected"]
        assert manager.is_connected(1)

    @pytest.mark.asyncio
    async def test_second_connection_replaces_first(self, manager):
        """A new connection for the same user closes the old socket."""
        first, second = make_socket(), make_socket()
        await manager.connect(first, make_user(1))
        await manager.connect(second, make_user(1))

        first.close.assert_awaited_once()
        assert manager.get_connection_info(1).websocket is second

    @pytest.mark.asyncio
    async def test_disconnect_ignores_replaced_socket(self, manager):
        """Disconnect with a stale socket leaves the newer connection alone."""
        first, second = make_socket(), make_socket()
        await manager.connect(first, make_user(1))
        await manager.connect(second, make_user(1))

        assert await manager.disconnect(1, first) is False
        assert manager.is_connected(1)

        assert await manager.disconnect(1, second) is True
        assert not manager.is_connected(1)

    @pytest.mark.asyncio
    async def test_close_failure_is_tolerated(self, manager):
        socket = make_socket()
        socket.close.side_effect = RuntimeError("already closed")
        await manager.connect(socket, make_user(1))

        assert await manager.disconnect(1) is True

    @pytest.mark.asyncio
    async def test_disconnect_session_matches_login_session(self, manager):
        """Only the socket opened with the ended session is closed, with 4001."""
        socket = make_socket()
        await manager.connect(socket, make_user(1), session_id=7)

        assert await manager.disconnect_session(1, 8) is False
        assert manager.is_connected(1)

        assert await manager.disconnect_session(1, 7) is True
        socket.close.assert_awaited_once_with(code=WS_CLOSE_UNAUTHORIZED)
        assert not manager.is_connected(1)

    @pytest.mark.asyncio
    async def test_send_error(self, manager):
        socket = make_socket()
        await manager.send_error(socket, "Access denied")

        event = socket.send_json.await_args.args[0]
        assert event["type"] == "error"
        assert event["data"] == {"error": "Access denied"}


class TestBroadcast:
    """Tests for complaint-scoped fan-out."""

    @pytest.mark.asyncio
    async def test_recipients(self, manager):
        """Author, assignee and staff receive events; other users do not."""
        sockets = {uid: make_socket() for uid in (1, 2, 3, 4)}
        await manager.connect(sockets[1], make_user(1))
        await manager.connect(sockets[2], make_user(2))
        await manager.connect(sockets[3], make_user(3, UserRole.SUPPORT))
        await manager.connect(sockets[4], make_user(4, UserRole.MODERATOR))

        complaint = Complaint(id=9, user_id=1, title="t", description="d", assigned_to_id=3)
        delivered = await manager.broadcast_to_complaint(complaint, create_error_event("x"))

        assert delivered == 3
        assert sent_types(sockets[1])[-1] == "error"
        assert sent_types(sockets[2]) == ["connected"]
        assert sent_types(sockets[4])[-1] == "error"

    @pytest.mark.asyncio
    async def test_failed_send_is_skipped(self, manager):
        good, bad = make_socket(), make_socket()
        await manager.connect(good, make_user(1))
        await manager.connect(bad, make_user(2, UserRole.ADMIN))
        bad.send_json.side_effect = RuntimeError("gone")

        complaint = Complaint(id=1, user_id=1, title="t", description="d")
        assert await manager.broadcast_to_complaint(complaint, create_error_event("x")) == 1

    @pytest.mark.asyncio
    async def test_role_change_affects_fan_out(self, manager):
        """Promoting a connected user to staff widens what they receive."""
        socket = make_socket()
        await manager.connect(socket, make_user(2))
        complaint = Complaint(id=1, user_id=1, title="t", description="d")

        assert await manager.broadcast_to_complaint(complaint, create_error_event("x")) == 0
        manager.update_user_role(2, UserRole.SUPPORT)
        assert await manager.broadcast_to_complaint(complaint, create_error_event("x")) == 1


class TestKeepalive:
    """Tests for heartbeat and stale connection cleanup."""

    @pytest.mark.asyncio
    async def test_heartbeat(self, manager):
        socket = make_socket()
        await manager.connect(socket, make_user(1))

        assert await manager.heartbeat(1) is True
        assert sent_types(socket)[-1] == EventType.HEARTBEAT.value
        # Inbound frames are counted by the receive loop, not by the reply
        assert manager.get_connection_info(1).messages_received == 0

    @pytest.mark.asyncio
    async def test_cleanup_stale(self, manager):
        """Idle connections past the limit are closed and dropped."""
        idle, active = make_socket(), make_socket()
        await manager.connect(idle, make_user(1))
        await manager.connect(active, make_user(2))
        manager.get_connection_info(1).last_activity -= timedelta(seconds=600)

        assert await manager.cleanup_stale_connections(max_idle_seconds=300) == 1
        idle.close.assert_awaited_once()
        assert not manager.is_connected(1)
        assert manager.is_connected(2)

    @pytest.mark.asyncio
    async def test_stats(self, manager):
        await manager.connect(make_socket(), make_user(1))
        await manager.connect(make_socket(), make_user(2, UserRole.ADMIN))

        stats = manager.get_stats()
        assert stats["total_connections"] == 2
        assert stats["staff_connections"] == 1
        assert stats["messages_sent"] == 2
