"""
Complaint Models

Data models for the complaint (support ticket) system.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from ..errors import ConflictError
from ..models.common import utcnow


class ComplaintStatus(str, Enum):
    """Status of a complaint."""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES: FrozenSet[ComplaintStatus] = frozenset({
    ComplaintStatus.RESOLVED,
    ComplaintStatus.REJECTED,
})

# Allowed source states for each lifecycle operation
ASSIGNABLE_FROM = frozenset({ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS})
RESOLVABLE_FROM = frozenset({ComplaintStatus.IN_PROGRESS})
REJECTABLE_FROM = frozenset({ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS})

# System message texts
MSG_CREATED = "Ticket created"
MSG_ASSIGNED = "Ticket assigned to staff"
MSG_RESOLVED = "Ticket resolved"
MSG_REJECTED = "Ticket rejected"


@dataclass
class ComplaintMessage:
    """Chat message on a complaint."""
    id: int
    complaint_id: int
    user_id: Optional[int]
    message: str
    is_system_message: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "complaint_id": self.complaint_id,
            "user_id": self.user_id,
            "message": self.message,
            "is_system_message": self.is_system_message,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Complaint:
    """
    Complaint filed by a user, optionally against another user.

    Lifecycle:
        PENDING -> IN_PROGRESS -> RESOLVED
        PENDING | IN_PROGRESS -> REJECTED
    """
    id: int
    user_id: Optional[int]
    title: str
    description: str
    target_user_id: Optional[int] = None
    status: ComplaintStatus = ComplaintStatus.PENDING
    assigned_to_id: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)
    resolved_at: Optional[datetime] = None

    @property
    def is_closed(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _require_status(self, allowed: FrozenSet[ComplaintStatus], action: str) -> None:
        if self.status not in allowed:
            raise ConflictError(
                f"Cannot {action} a complaint in status {self.status.value}",
                details={"status": self.status.value},
            )

    def assign(self, staff_id: int) -> None:
        """Assign to a staff member and move to IN_PROGRESS."""
        self._require_status(ASSIGNABLE_FROM, "assign")
        self.assigned_to_id = staff_id
        self.status = ComplaintStatus.IN_PROGRESS

    def resolve(self) -> None:
        """Mark as resolved."""
        self._require_status(RESOLVABLE_FROM, "resolve")
        self.status = ComplaintStatus.RESOLVED
        self.resolved_at = utcnow()

    def reject(self) -> None:
        """Mark as rejected."""
        self._require_status(REJECTABLE_FROM, "reject")
        self.status = ComplaintStatus.REJECTED
        self.resolved_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "target_user_id": self.target_user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "assigned_to_id": self.assigned_to_id,
            "created_at": self.created_at.isoformat(),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
