"""
Real-Time Updates Module

WebSocket relay for complaint chats.

Features:
- One connection per user
- Complaint-scoped fan-out to the author, the assignee and staff
- Typed event system for consistent messaging

Usage:
    from realtime import connection_manager, create_complaint_message_event

    await connection_manager.broadcast_to_complaint(
        complaint,
        create_complaint_message_event(message),
    )

WebSocket Connection:
    Connect to: ws://host/ws/complaints?token=<access_token>

    Messages (client -> server):
    - {"complaint_id": 1, "text": "..."}
    - {"type": "heartbeat"}

    Events (server -> client):
    - {"id": "...", "type": "complaint_message", "data": {...}, "timestamp": "..."}
"""

from .events import (
    EventType,
    RealtimeEvent,
    create_complaint_message_event,
    create_connected_event,
    create_error_event,
    create_heartbeat_event,
    create_status_changed_event,
)
from .connection_manager import (
    ConnectionInfo,
    ConnectionManager,
    connection_manager,
    get_connection_manager,
)
from .websocket_routes import websocket_router

__all__ = [
    # Events
    "EventType",
    "RealtimeEvent",
    "create_complaint_message_event",
    "create_connected_event",
    "create_error_event",
    "create_heartbeat_event",
    "create_status_changed_event",
    # Connection manager
    "ConnectionInfo",
    "ConnectionManager",
    "connection_manager",
    "get_connection_manager",
    # Router
    "websocket_router",
]
