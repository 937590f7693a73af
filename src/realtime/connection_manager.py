"""
WebSocket Connection Manager

Manages complaint chat connections and routes events to the users
entitled to see each complaint.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from fastapi import WebSocket

from admin_panel.models import User, utcnow
from admin_panel.support.complaint_models import Complaint
from rbac import UserRole, is_staff

from .events import (
    RealtimeEvent,
    create_connected_event,
    create_error_event,
    create_heartbeat_event,
)

logger = logging.getLogger(__name__)

# Close code for failed or revoked authentication
WS_CLOSE_UNAUTHORIZED = 4001


@dataclass
class ConnectionInfo:
    """Information about a WebSocket connection."""
    websocket: WebSocket
    user_id: int
    username: str
    user_role: UserRole
    session_id: Optional[int] = None
    connected_at: datetime = field(default_factory=utcnow)
    last_activity: datetime = field(default_factory=utcnow)

    # Stats
    messages_sent: int = 0
    messages_received: int = 0

    @property
    def is_staff(self) -> bool:
        return is_staff(self.user_role)

    def touch(self) -> None:
        self.last_activity = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "user_role": self.user_role.value,
            "session_id": self.session_id,
            "connected_at": self.connected_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "messages_sent": self.messages_sent,
            "messages_received": self.messages_received,
        }


class ConnectionManager:
    """
    Manages WebSocket connections for the complaint chat.

    Features:
    - One connection per user; a new connection replaces the old one
    - Complaint-scoped fan-out to the author, the assignee and staff
    - Heartbeat/keepalive
    - Stale connection cleanup
    """

    def __init__(self):
        # Active connections by user_id
        self._connections: Dict[int, ConnectionInfo] = {}

        self._lock = asyncio.Lock()

    async def connect(
        self,
        websocket: WebSocket,
        user: User,
        session_id: Optional[int] = None,
    ) -> ConnectionInfo:
        """
        Accept a new WebSocket connection and send the welcome event.

        ``session_id`` is the login session the socket authenticated with.
        """
        await websocket.accept()

        connection = ConnectionInfo(
            websocket=websocket,
            user_id=user.id,
            username=user.username,
            user_role=user.role,
            session_id=session_id,
        )

        async with self._lock:
            previous = self._connections.get(user.id)
            self._connections[user.id] = connection

        if previous is not None:
            logger.info(f"[WS] Replacing existing connection for user={user.id}")
            await self._close(previous)

        logger.info(f"[WS] Connected: user={user.id} role={user.role.value}")

        await self._send_to_connection(connection, create_connected_event(user.id, user.username))
        return connection

    async def disconnect(
        self,
        user_id: int,
        websocket: Optional[WebSocket] = None,
        code: int = 1000,
    ) -> bool:
        """
        Drop a user's connection.

        When ``websocket`` is given, only that exact socket is removed, so a
        handler winding down a replaced socket leaves the newer one alone.
        """
        async with self._lock:
            connection = self._connections.get(user_id)
            if connection is None:
                return False
            if websocket is not None and connection.websocket is not websocket:
                return False
            del self._connections[user_id]

        await self._close(connection, code)
        logger.info(f"[WS] Disconnected: user={user_id} code={code}")
        return True

    async def disconnect_session(self, user_id: int, session_id: int) -> bool:
        """Close the user's socket if it was opened with ``session_id``."""
        connection = self._connections.get(user_id)
        if connection is None or connection.session_id != session_id:
            return False
        return await self.disconnect(user_id, connection.websocket, code=WS_CLOSE_UNAUTHORIZED)

    async def _close(self, connection: ConnectionInfo, code: int = 1000) -> None:
        try:
            await connection.websocket.close(code=code)
        except Exception as e:
            # Socket already closed by the peer
            logger.debug(f"[WS] Close skipped for user={connection.user_id}: {e}")

    def update_user_role(self, user_id: int, role: UserRole) -> None:
        """Keep the cached role of a live connection in sync after a role change."""
        connection = self._connections.get(user_id)
        if connection is not None:
            connection.user_role = role

    # =========================================================================
    # SENDING
    # =========================================================================

    async def _send_to_connection(self, connection: ConnectionInfo, event: RealtimeEvent) -> bool:
        """Send event to a specific connection."""
        try:
            await connection.websocket.send_json(event.to_dict())
        except Exception as e:
            # The receive loop of that socket handles the disconnect
            logger.warning(f"[WS] Failed to send to user={connection.user_id}: {e}")
            return False
        connection.messages_sent += 1
        connection.touch()
        return True

    async def send_to_user(self, user_id: int, event: RealtimeEvent) -> bool:
        async with self._lock:
            connection = self._connections.get(user_id)

        if connection is None:
            return False
        return await self._send_to_connection(connection, event)

    def recipients_for(self, complaint: Complaint) -> List[ConnectionInfo]:
        """Connections entitled to events about ``complaint``."""
        participants = {complaint.user_id, complaint.assigned_to_id}
        return [
            connection for connection in self._connections.values()
            if connection.user_id in participants or connection.is_staff
        ]

    async def broadcast_to_complaint(self, complaint: Complaint, event: RealtimeEvent) -> int:
        """
        Send an event to the complaint author, its assignee and all staff.

        Returns the number of connections that received it.
        """
        async with self._lock:
            connections = self.recipients_for(complaint)

        delivered = 0
        for connection in connections:
            if await self._send_to_connection(connection, event):
                delivered += 1

        logger.debug(
            f"[WS] Complaint {complaint.id}: {event.event_type.value} "
            f"({delivered}/{len(connections)} clients)"
        )
        return delivered

    async def broadcast_events(self, complaint: Complaint, events: Iterable[RealtimeEvent]) -> None:
        for event in events:
            await self.broadcast_to_complaint(complaint, event)

    async def send_error(self, websocket: WebSocket, error: str) -> None:
        """Send an error event straight to a socket."""
        await websocket.send_json(create_error_event(error).to_dict())

    # =========================================================================
    # KEEPALIVE
    # =========================================================================

    def record_activity(self, user_id: int) -> None:
        connection = self._connections.get(user_id)
        if connection is not None:
            connection.messages_received += 1
            connection.touch()

    async def heartbeat(self, user_id: int) -> bool:
        """Answer a client heartbeat."""
        return await self.send_to_user(user_id, create_heartbeat_event())

    async def cleanup_stale_connections(self, max_idle_seconds: int = 300) -> int:
        """
        Clean up stale connections.

        Connections with no activity for max_idle_seconds are closed.
        """
        now = utcnow()
        async with self._lock:
            stale = [
                connection for connection in self._connections.values()
                if (now - connection.last_activity).total_seconds() > max_idle_seconds
            ]

        for connection in stale:
            await self.disconnect(connection.user_id, connection.websocket)
            logger.info(f"[WS] Cleaned up stale connection for user {connection.user_id}")

        return len(stale)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def get_connection_info(self, user_id: int) -> Optional[ConnectionInfo]:
        return self._connections.get(user_id)

    def is_connected(self, user_id: int) -> bool:
        return user_id in self._connections

    def get_stats(self) -> Dict[str, Any]:
        """Get connection statistics."""
        connections = list(self._connections.values())
        return {
            "total_connections": len(connections),
            "staff_connections": sum(1 for c in connections if c.is_staff),
            "messages_sent": sum(c.messages_sent for c in connections),
            "messages_received": sum(c.messages_received for c in connections),
        }


# Singleton instance
connection_manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """FastAPI dependency returning the process-wide connection manager."""
    return connection_manager
