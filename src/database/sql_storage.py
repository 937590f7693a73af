"""
SQLAlchemy storage backend.

Implements the Storage interface on top of the ORM records in
database.models. Every call runs in its own transaction and returns plain
domain dataclasses, never ORM instances.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from admin_panel.errors import ConflictError, NotFoundError
from admin_panel.models import LoginSession, User, utcnow
from admin_panel.support.complaint_models import (
    Complaint,
    ComplaintMessage,
    ComplaintStatus,
)
from rbac import UserRole, coerce_role

from .connection import build_engine, build_session_factory, session_scope
from .models import (
    Base,
    ComplaintMessageRecord,
    ComplaintRecord,
    SessionRecord,
    UserRecord,
)
from .storage import Storage, normalize_user_changes

logger = logging.getLogger(__name__)


# =============================================================================
# RECORD MAPPING
# =============================================================================

def _user_from_record(record: UserRecord) -> User:
    return User(
        id=record.id,
        username=record.username,
        password_hash=record.password,
        display_name=record.display_name,
        avatar_url=record.avatar_url,
        role=coerce_role(record.role),
        is_premium=bool(record.is_premium),
        is_verified=bool(record.is_verified),
        is_blocked=bool(record.is_blocked),
        created_at=record.created_at,
        last_login_at=record.last_login_at,
    )


def _session_from_record(record: SessionRecord) -> LoginSession:
    return LoginSession(
        id=record.id,
        user_id=record.user_id,
        start_time=record.start_time,
        end_time=record.end_time,
        is_active=bool(record.is_active),
    )


def _complaint_from_record(record: ComplaintRecord) -> Complaint:
    return Complaint(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        description=record.description,
        target_user_id=record.target_user_id,
        status=ComplaintStatus(record.status),
        assigned_to_id=record.assigned_to_id,
        created_at=record.created_at,
        resolved_at=record.resolved_at,
    )


def _message_from_record(record: ComplaintMessageRecord) -> ComplaintMessage:
    return ComplaintMessage(
        id=record.id,
        complaint_id=record.complaint_id,
        user_id=record.user_id,
        message=record.message,
        is_system_message=bool(record.is_system_message),
        created_at=record.created_at,
    )


class DatabaseStorage(Storage):
    """Storage persisted through SQLAlchemy."""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None, create_schema: bool = True):
        self._engine = build_engine(url, echo)
        self._session_factory = build_session_factory(self._engine)
        if create_schema:
            Base.metadata.create_all(self._engine)

    def _scope(self):
        return session_scope(self._session_factory)

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id: int) -> Optional[User]:
        with self._scope() as session:
            record = session.get(UserRecord, user_id)
            return _user_from_record(record) if record else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._scope() as session:
            record = session.execute(
                select(UserRecord).where(UserRecord.username == username)
            ).scalar_one_or_none()
            return _user_from_record(record) if record else None

    def create_user(
        self,
        username: str,
        password_hash: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        if self.get_user_by_username(username) is not None:
            raise ConflictError("Username already exists", details={"username": username})

        try:
            with self._scope() as session:
                record = UserRecord(
                    username=username,
                    password=password_hash,
                    display_name=display_name or None,
                    role=coerce_role(role).value,
                    created_at=utcnow(),
                )
                session.add(record)
                session.flush()
                return _user_from_record(record)
        except IntegrityError as exc:
            raise ConflictError("Username already exists", details={"username": username}) from exc

    def update_user(self, user_id: int, **changes: Any) -> User:
        changes = normalize_user_changes(changes)
        with self._scope() as session:
            record = session.get(UserRecord, user_id)
            if record is None:
                raise NotFoundError("User not found")
            for name, value in changes.items():
                if name == "password_hash":
                    record.password = value
                elif name == "role":
                    record.role = value.value
                else:
                    setattr(record, name, value)
            session.flush()
            return _user_from_record(record)

    def delete_user(self, user_id: int) -> None:
        with self._scope() as session:
            record = session.get(UserRecord, user_id)
            if record is not None:
                session.delete(record)

    def get_all_users(self) -> List[User]:
        with self._scope() as session:
            records = session.execute(select(UserRecord).order_by(UserRecord.id)).scalars().all()
            return [_user_from_record(r) for r in records]

    def get_staff_users(self) -> List[User]:
        with self._scope() as session:
            records = session.execute(
                select(UserRecord)
                .where(UserRecord.role != UserRole.USER.value)
                .order_by(UserRecord.id)
            ).scalars().all()
            return [_user_from_record(r) for r in records]

    # =========================================================================
    # LOGIN SESSIONS
    # =========================================================================

    def create_session(self, user_id: int) -> LoginSession:
        with self._scope() as session:
            record = SessionRecord(user_id=user_id, start_time=utcnow(), is_active=True)
            session.add(record)
            session.flush()
            return _session_from_record(record)

    def get_session(self, session_id: int) -> Optional[LoginSession]:
        with self._scope() as session:
            record = session.get(SessionRecord, session_id)
            return _session_from_record(record) if record else None

    def end_session(self, session_id: int) -> LoginSession:
        with self._scope() as session:
            record = session.get(SessionRecord, session_id)
            if record is None:
                raise NotFoundError("Session not found")
            if record.is_active:
                record.is_active = False
                record.end_time = utcnow()
            session.flush()
            return _session_from_record(record)

    def get_user_sessions(self, user_id: int) -> List[LoginSession]:
        return self._select_sessions(SessionRecord.user_id == user_id)

    def get_active_sessions(self) -> List[LoginSession]:
        return self._select_sessions(SessionRecord.is_active.is_(True))

    def get_expired_sessions(self) -> List[LoginSession]:
        return self._select_sessions(SessionRecord.is_active.is_(False))

    def _select_sessions(self, condition) -> List[LoginSession]:
        with self._scope() as session:
            records = session.execute(
                select(SessionRecord).where(condition).order_by(SessionRecord.id)
            ).scalars().all()
            return [_session_from_record(r) for r in records]

    # =========================================================================
    # COMPLAINTS
    # =========================================================================

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        with self._scope() as session:
            record = session.get(ComplaintRecord, complaint_id)
            return _complaint_from_record(record) if record else None

    def create_complaint(
        self,
        user_id: int,
        title: str,
        description: str,
        target_user_id: Optional[int] = None,
    ) -> Complaint:
        with self._scope() as session:
            record = ComplaintRecord(
                user_id=user_id,
                title=title,
                description=description,
                target_user_id=target_user_id,
                status=ComplaintStatus.PENDING.value,
                created_at=utcnow(),
            )
            session.add(record)
            session.flush()
            logger.debug("Complaint stored", extra={"complaint_id": record.id})
            return _complaint_from_record(record)

    def save_complaint(self, complaint: Complaint) -> Complaint:
        with self._scope() as session:
            record = session.get(ComplaintRecord, complaint.id)
            if record is None:
                raise NotFoundError("Complaint not found")
            record.title = complaint.title
            record.description = complaint.description
            record.target_user_id = complaint.target_user_id
            record.status = complaint.status.value
            record.assigned_to_id = complaint.assigned_to_id
            record.resolved_at = complaint.resolved_at
            session.flush()
            return _complaint_from_record(record)

    def get_user_complaints(self, user_id: int) -> List[Complaint]:
        return self._select_complaints(
            or_(ComplaintRecord.user_id == user_id, ComplaintRecord.assigned_to_id == user_id)
        )

    def get_all_complaints(self) -> List[Complaint]:
        return self._select_complaints(None)

    def get_pending_complaints(self) -> List[Complaint]:
        return self._select_complaints(ComplaintRecord.status == ComplaintStatus.PENDING.value)

    def _select_complaints(self, condition) -> List[Complaint]:
        query = select(ComplaintRecord).order_by(ComplaintRecord.id)
        if condition is not None:
            query = query.where(condition)
        with self._scope() as session:
            return [_complaint_from_record(r) for r in session.execute(query).scalars().all()]

    # =========================================================================
    # COMPLAINT MESSAGES
    # =========================================================================

    def get_complaint_messages(self, complaint_id: int) -> List[ComplaintMessage]:
        with self._scope() as session:
            records = session.execute(
                select(ComplaintMessageRecord)
                .where(ComplaintMessageRecord.complaint_id == complaint_id)
                .order_by(ComplaintMessageRecord.created_at, ComplaintMessageRecord.id)
            ).scalars().all()
            return [_message_from_record(r) for r in records]

    def create_complaint_message(
        self,
        complaint_id: int,
        user_id: Optional[int],
        message: str,
        is_system_message: bool = False,
    ) -> ComplaintMessage:
        with self._scope() as session:
            record = ComplaintMessageRecord(
                complaint_id=complaint_id,
                user_id=user_id,
                message=message,
                is_system_message=is_system_message,
                created_at=utcnow(),
            )
            session.add(record)
            session.flush()
            return _message_from_record(record)

    def close(self) -> None:
        self._engine.dispose()
