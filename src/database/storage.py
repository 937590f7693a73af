"""
Storage interface.

Every backend exposes the same key-value style operations over users,
login sessions, complaints and complaint messages. Services depend on this
interface only.
"""

from abc import ABC, abstractmethod
from typing import Any, FrozenSet, List, Optional

from admin_panel.errors import NotFoundError
from admin_panel.models import LoginSession, User
from admin_panel.support.complaint_models import Complaint, ComplaintMessage
from rbac import UserRole, coerce_role

# Fields a caller may change through update_user
UPDATABLE_USER_FIELDS: FrozenSet[str] = frozenset({
    "display_name",
    "avatar_url",
    "password_hash",
    "role",
    "is_premium",
    "is_verified",
    "is_blocked",
    "last_login_at",
})

STATUS_FLAGS: FrozenSet[str] = frozenset({"is_premium", "is_verified", "is_blocked"})


def normalize_user_changes(changes: dict) -> dict:
    """Reject unknown fields and coerce the role value."""
    unknown = set(changes) - UPDATABLE_USER_FIELDS
    if unknown:
        raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")
    if "role" in changes:
        changes = {**changes, "role": coerce_role(changes["role"])}
    return changes


class Storage(ABC):
    """Abstract storage backend."""

    # =========================================================================
    # USERS
    # =========================================================================

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def create_user(
        self,
        username: str,
        password_hash: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create a user. Raises ConflictError if the username is taken."""

    @abstractmethod
    def update_user(self, user_id: int, **changes: Any) -> User:
        """Apply field changes. Raises NotFoundError if the user is missing."""

    def update_user_role(self, user_id: int, role: UserRole) -> User:
        return self.update_user(user_id, role=role)

    def update_user_status(self, user_id: int, **flags: Optional[bool]) -> User:
        """Update the premium, verified and blocked flags. None values are skipped."""
        unknown = set(flags) - STATUS_FLAGS
        if unknown:
            raise ValueError(f"Not a status flag: {', '.join(sorted(unknown))}")
        changes = {name: value for name, value in flags.items() if value is not None}
        if not changes:
            user = self.get_user(user_id)
            if user is None:
                raise NotFoundError("User not found")
            return user
        return self.update_user(user_id, **changes)

    def verify_user(self, user_id: int) -> User:
        return self.update_user(user_id, is_verified=True)

    @abstractmethod
    def delete_user(self, user_id: int) -> None:
        """Delete a user. Missing ids are ignored."""

    @abstractmethod
    def get_all_users(self) -> List[User]:
        ...

    @abstractmethod
    def get_staff_users(self) -> List[User]:
        """Users whose role is not USER."""

    # =========================================================================
    # LOGIN SESSIONS
    # =========================================================================

    @abstractmethod
    def create_session(self, user_id: int) -> LoginSession:
        ...

    @abstractmethod
    def get_session(self, session_id: int) -> Optional[LoginSession]:
        ...

    @abstractmethod
    def end_session(self, session_id: int) -> LoginSession:
        """Close a session. Raises NotFoundError if it does not exist."""

    @abstractmethod
    def get_user_sessions(self, user_id: int) -> List[LoginSession]:
        ...

    @abstractmethod
    def get_active_sessions(self) -> List[LoginSession]:
        ...

    @abstractmethod
    def get_expired_sessions(self) -> List[LoginSession]:
        ...

    def end_user_sessions(self, user_id: int) -> int:
        """End every active session of a user. Returns how many were ended."""
        ended = 0
        for session in self.get_user_sessions(user_id):
            if session.is_active:
                self.end_session(session.id)
                ended += 1
        return ended

    # =========================================================================
    # COMPLAINTS
    # =========================================================================

    @abstractmethod
    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        ...

    @abstractmethod
    def create_complaint(
        self,
        user_id: int,
        title: str,
        description: str,
        target_user_id: Optional[int] = None,
    ) -> Complaint:
        ...

    @abstractmethod
    def save_complaint(self, complaint: Complaint) -> Complaint:
        """Persist a modified complaint. Raises NotFoundError if it is missing."""

    @abstractmethod
    def get_user_complaints(self, user_id: int) -> List[Complaint]:
        """Complaints authored by or assigned to the user."""

    @abstractmethod
    def get_all_complaints(self) -> List[Complaint]:
        ...

    @abstractmethod
    def get_pending_complaints(self) -> List[Complaint]:
        ...

    # =========================================================================
    # COMPLAINT MESSAGES
    # =========================================================================

    @abstractmethod
    def get_complaint_messages(self, complaint_id: int) -> List[ComplaintMessage]:
        """Messages of a complaint, oldest first."""

    @abstractmethod
    def create_complaint_message(
        self,
        complaint_id: int,
        user_id: Optional[int],
        message: str,
        is_system_message: bool = False,
    ) -> ComplaintMessage:
        ...

    def close(self) -> None:
        """Release backend resources."""
