"""
Support Module for Admin Panel

Complaint (support ticket) management:
- Creation against another user or the service itself
- Assignment to staff
- Resolve / reject workflow
- Per-complaint chat with system messages
"""

from .complaint_models import (
    Complaint,
    ComplaintMessage,
    ComplaintStatus,
    TERMINAL_STATUSES,
)
from .complaint_service import ComplaintService, ComplaintUpdate

__all__ = [
    "Complaint",
    "ComplaintMessage",
    "ComplaintStatus",
    "TERMINAL_STATUSES",
    "ComplaintService",
    "ComplaintUpdate",
]
