"""
Real-Time Event Models

Defines event types and structures for the complaint chat WebSocket.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from admin_panel.models import utcnow
from admin_panel.support.complaint_models import Complaint, ComplaintMessage


class EventType(str, Enum):
    """Types of real-time events."""
    # Connection events
    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"

    # Complaint events
    COMPLAINT_MESSAGE = "complaint_message"
    COMPLAINT_STATUS_CHANGED = "complaint_status_changed"

    ERROR = "error"


@dataclass
class RealtimeEvent:
    """
    Event sent to connected WebSocket clients.

    Wire format: {"id", "type", "data", "timestamp"}.
    """
    id: UUID = field(default_factory=uuid4)
    event_type: EventType = EventType.HEARTBEAT
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": str(self.id),
            "type": self.event_type.value,
            "data": self.data,
            "timestamp": self.created_at.isoformat(),
        }


# Convenience functions for creating common events

def create_connected_event(user_id: int, username: Optional[str] = None) -> RealtimeEvent:
    return RealtimeEvent(
        event_type=EventType.CONNECTED,
        data={
            "message": "Connected to complaint chat",
            "user_id": user_id,
            "username": username,
        },
    )


def create_heartbeat_event() -> RealtimeEvent:
    return RealtimeEvent(
        event_type=EventType.HEARTBEAT,
        data={"timestamp": utcnow().isoformat()},
    )


def create_complaint_message_event(message: ComplaintMessage) -> RealtimeEvent:
    """A chat or system message was added to a complaint."""
    return RealtimeEvent(
        event_type=EventType.COMPLAINT_MESSAGE,
        data={
            "complaint_id": message.complaint_id,
            "message": message.to_dict(),
        },
    )


def create_status_changed_event(complaint: Complaint, changed_by: Optional[int] = None) -> RealtimeEvent:
    """A complaint moved to a new status or assignee."""
    return RealtimeEvent(
        event_type=EventType.COMPLAINT_STATUS_CHANGED,
        data={
            "complaint_id": complaint.id,
            "status": complaint.status.value,
            "assigned_to_id": complaint.assigned_to_id,
            "changed_by": changed_by,
            "complaint": complaint.to_dict(),
        },
    )


def create_error_event(error: str) -> RealtimeEvent:
    return RealtimeEvent(
        event_type=EventType.ERROR,
        data={"error": error},
    )
