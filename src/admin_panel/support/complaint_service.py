"""
Complaint Service

Business logic for the complaint lifecycle and its chat.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from rbac import (
    can_close_complaint,
    can_post_to_complaint,
    can_view_complaint,
    is_staff,
)

from ..errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from ..models import User
from .complaint_models import (
    MSG_ASSIGNED,
    MSG_CREATED,
    MSG_REJECTED,
    MSG_RESOLVED,
    Complaint,
    ComplaintMessage,
)

if TYPE_CHECKING:
    from database.storage import Storage

logger = logging.getLogger(__name__)


@dataclass
class ComplaintUpdate:
    """A complaint after a state change, with the system message it produced."""
    complaint: Complaint
    message: ComplaintMessage


class ComplaintService:
    """
    Service for managing complaints.

    Provides:
    - Complaint creation
    - Assignment, resolution and rejection
    - Chat messages
    - Visibility-filtered listings
    """

    def __init__(self, storage: "Storage"):
        self.storage = storage

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def _require(self, complaint_id: int) -> Complaint:
        complaint = self.storage.get_complaint(complaint_id)
        if complaint is None:
            raise NotFoundError("Complaint not found", details={"complaint_id": complaint_id})
        return complaint

    def get_complaint(self, complaint_id: int, actor: User) -> Complaint:
        """Get a complaint the actor is allowed to see."""
        complaint = self._require(complaint_id)
        if not can_view_complaint(actor, complaint):
            raise PermissionDeniedError("Access denied")
        return complaint

    def get_messages(self, complaint_id: int, actor: User) -> List[ComplaintMessage]:
        """Chat history of a complaint, oldest first."""
        complaint = self.get_complaint(complaint_id, actor)
        return self.storage.get_complaint_messages(complaint.id)

    def list_for(self, actor: User) -> List[Complaint]:
        """Staff see every complaint. Others see complaints they filed or are assigned."""
        if is_staff(actor):
            return self.storage.get_all_complaints()
        return self.storage.get_user_complaints(actor.id)

    def list_own(self, actor: User) -> List[Complaint]:
        return self.storage.get_user_complaints(actor.id)

    def pending(self, actor: User) -> List[Complaint]:
        if not is_staff(actor):
            raise PermissionDeniedError("Staff access required")
        return self.storage.get_pending_complaints()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create_complaint(
        self,
        author: User,
        title: str,
        description: str,
        target_user_id: Optional[int] = None,
    ) -> ComplaintUpdate:
        """
        File a new complaint.

        The complaint starts PENDING and its chat opens with a system message.

        Raises:
            NotFoundError: target user does not exist
            InvalidRequestError: author filed against themselves
        """
        if target_user_id is not None:
            if target_user_id == author.id:
                raise InvalidRequestError("Cannot file a complaint against yourself")
            if self.storage.get_user(target_user_id) is None:
                raise NotFoundError("Target user not found", details={"user_id": target_user_id})

        complaint = self.storage.create_complaint(
            user_id=author.id,
            title=title,
            description=description,
            target_user_id=target_user_id,
        )
        message = self.storage.create_complaint_message(
            complaint.id, author.id, MSG_CREATED, is_system_message=True
        )

        logger.info(f"Created complaint {complaint.id} by user {author.id}")
        return ComplaintUpdate(complaint=complaint, message=message)

    def assign_complaint(self, complaint_id: int, staff: User) -> ComplaintUpdate:
        """Assign a complaint to the acting staff member."""
        if not is_staff(staff):
            raise PermissionDeniedError("Staff access required")

        complaint = self._require(complaint_id)
        complaint.assign(staff.id)
        return self._save_with_message(complaint, staff, MSG_ASSIGNED, "assigned")

    def resolve_complaint(self, complaint_id: int, staff: User) -> ComplaintUpdate:
        complaint = self._require(complaint_id)
        self._check_can_close(staff, complaint)
        complaint.resolve()
        return self._save_with_message(complaint, staff, MSG_RESOLVED, "resolved")

    def reject_complaint(self, complaint_id: int, staff: User) -> ComplaintUpdate:
        complaint = self._require(complaint_id)
        self._check_can_close(staff, complaint)
        complaint.reject()
        return self._save_with_message(complaint, staff, MSG_REJECTED, "rejected")

    def _check_can_close(self, staff: User, complaint: Complaint) -> None:
        if not is_staff(staff):
            raise PermissionDeniedError("Staff access required")
        if not can_close_complaint(staff, complaint):
            raise PermissionDeniedError("Only the assignee or an admin can close this complaint")

    def _save_with_message(
        self,
        complaint: Complaint,
        actor: User,
        text: str,
        verb: str,
    ) -> ComplaintUpdate:
        complaint = self.storage.save_complaint(complaint)
        message = self.storage.create_complaint_message(
            complaint.id, actor.id, text, is_system_message=True
        )
        logger.info(f"Complaint {complaint.id} {verb} by user {actor.id}")
        return ComplaintUpdate(complaint=complaint, message=message)

    # =========================================================================
    # CHAT
    # =========================================================================

    def post_message(self, complaint_id: int, actor: User, text: Optional[str]) -> ComplaintMessage:
        """
        Add a chat message to a complaint.

        Raises:
            NotFoundError: complaint does not exist
            PermissionDeniedError: actor is neither the author nor staff
            InvalidRequestError: text is empty after stripping
        """
        complaint = self._require(complaint_id)
        if not can_post_to_complaint(actor, complaint):
            raise PermissionDeniedError("Access denied")

        text = (text or "").strip()
        if not text:
            raise InvalidRequestError("Message text is required")

        return self.storage.create_complaint_message(complaint.id, actor.id, text)
