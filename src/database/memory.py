"""
In-memory storage backend.

Dict maps keyed by serial integer ids. Records are copied on the way in and
out so callers never mutate stored state without saving it. A re-entrant lock
guards the maps and id counters; routes call storage from worker threads.
"""

import copy
import dataclasses
import logging
import threading
from typing import Any, Dict, List, Optional

from admin_panel.errors import ConflictError, NotFoundError
from admin_panel.models import LoginSession, User, utcnow
from admin_panel.support.complaint_models import (
    Complaint,
    ComplaintMessage,
    ComplaintStatus,
)
from rbac import UserRole, coerce_role

from .storage import Storage, normalize_user_changes

logger = logging.getLogger(__name__)


class MemStorage(Storage):
    """Storage backed by process memory. Data is lost on restart."""

    def __init__(self):
        self._users: Dict[int, User] = {}
        self._sessions: Dict[int, LoginSession] = {}
        self._complaints: Dict[int, Complaint] = {}
        self._messages: Dict[int, ComplaintMessage] = {}

        self._next_user_id = 1
        self._next_session_id = 1
        self._next_complaint_id = 1
        self._next_message_id = 1

        self._lock = threading.RLock()

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.copy(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return copy.copy(user)
            return None

    def create_user(
        self,
        username: str,
        password_hash: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        with self._lock:
            if self.get_user_by_username(username) is not None:
                raise ConflictError("Username already exists", details={"username": username})

            user = User(
                id=self._next_user_id,
                username=username,
                password_hash=password_hash,
                display_name=display_name or None,
                role=coerce_role(role),
            )
            self._next_user_id += 1
            self._users[user.id] = user
        logger.debug("User stored", extra={"user_id": user.id})
        return copy.copy(user)

    def update_user(self, user_id: int, **changes: Any) -> User:
        changes = normalize_user_changes(changes)
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User not found")

            updated = dataclasses.replace(user, **changes)
            self._users[user_id] = updated
            return copy.copy(updated)

    def delete_user(self, user_id: int) -> None:
        """Remove a user with their sessions; complaints and messages keep a null reference."""
        with self._lock:
            if self._users.pop(user_id, None) is None:
                return

            for session_id in [s.id for s in self._sessions.values() if s.user_id == user_id]:
                del self._sessions[session_id]

            for complaint in self._complaints.values():
                if complaint.user_id == user_id:
                    complaint.user_id = None
                if complaint.target_user_id == user_id:
                    complaint.target_user_id = None
                if complaint.assigned_to_id == user_id:
                    complaint.assigned_to_id = None

            for message in self._messages.values():
                if message.user_id == user_id:
                    message.user_id = None

    def get_all_users(self) -> List[User]:
        with self._lock:
            return [copy.copy(u) for u in self._users.values()]

    def get_staff_users(self) -> List[User]:
        with self._lock:
            return [copy.copy(u) for u in self._users.values() if u.role != UserRole.USER]

    # =========================================================================
    # LOGIN SESSIONS
    # =========================================================================

    def create_session(self, user_id: int) -> LoginSession:
        with self._lock:
            session = LoginSession(id=self._next_session_id, user_id=user_id)
            self._next_session_id += 1
            self._sessions[session.id] = session
            return copy.copy(session)

    def get_session(self, session_id: int) -> Optional[LoginSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.copy(session) if session else None

    def end_session(self, session_id: int) -> LoginSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError("Session not found")
            session.end()
            return copy.copy(session)

    def end_user_sessions(self, user_id: int) -> int:
        with self._lock:
            return super().end_user_sessions(user_id)

    def get_user_sessions(self, user_id: int) -> List[LoginSession]:
        with self._lock:
            return [copy.copy(s) for s in self._sessions.values() if s.user_id == user_id]

    def get_active_sessions(self) -> List[LoginSession]:
        with self._lock:
            return [copy.copy(s) for s in self._sessions.values() if s.is_active]

    def get_expired_sessions(self) -> List[LoginSession]:
        with self._lock:
            return [copy.copy(s) for s in self._sessions.values() if not s.is_active]

    # =========================================================================
    # COMPLAINTS
    # =========================================================================

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        with self._lock:
            complaint = self._complaints.get(complaint_id)
            return copy.copy(complaint) if complaint else None

    def create_complaint(
        self,
        user_id: int,
        title: str,
        description: str,
        target_user_id: Optional[int] = None,
    ) -> Complaint:
        with self._lock:
            complaint = Complaint(
                id=self._next_complaint_id,
                user_id=user_id,
                title=title,
                description=description,
                target_user_id=target_user_id,
            )
            self._next_complaint_id += 1
            self._complaints[complaint.id] = complaint
            return copy.copy(complaint)

    def save_complaint(self, complaint: Complaint) -> Complaint:
        with self._lock:
            if complaint.id not in self._complaints:
                raise NotFoundError("Complaint not found")
            self._complaints[complaint.id] = copy.copy(complaint)
            return copy.copy(complaint)

    def get_user_complaints(self, user_id: int) -> List[Complaint]:
        with self._lock:
            return [
                copy.copy(c) for c in self._complaints.values()
                if c.user_id == user_id or c.assigned_to_id == user_id
            ]

    def get_all_complaints(self) -> List[Complaint]:
        with self._lock:
            return [copy.copy(c) for c in self._complaints.values()]

    def get_pending_complaints(self) -> List[Complaint]:
        with self._lock:
            return [
                copy.copy(c) for c in self._complaints.values()
                if c.status == ComplaintStatus.PENDING
            ]

    # =========================================================================
    # COMPLAINT MESSAGES
    # =========================================================================

    def get_complaint_messages(self, complaint_id: int) -> List[ComplaintMessage]:
        with self._lock:
            messages = [m for m in self._messages.values() if m.complaint_id == complaint_id]
        messages.sort(key=lambda m: (m.created_at, m.id))
        return [copy.copy(m) for m in messages]

    def create_complaint_message(
        self,
        complaint_id: int,
        user_id: Optional[int],
        message: str,
        is_system_message: bool = False,
    ) -> ComplaintMessage:
        with self._lock:
            record = ComplaintMessage(
                id=self._next_message_id,
                complaint_id=complaint_id,
                user_id=user_id,
                message=message,
                is_system_message=is_system_message,
                created_at=utcnow(),
            )
            self._next_message_id += 1
            self._messages[record.id] = record
            return copy.copy(record)
