"""
Auth Service - Registration, login and logout.

Every successful login opens a LoginSession. The access token carries the
session id, so ending the session revokes the token.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional
import logging

from rbac import UserRole

from ..auth.jwt_handler import create_access_token
from ..auth.password import hash_password, verify_password
from ..errors import AuthenticationError, PermissionDeniedError
from ..models import LoginSession, User, utcnow
from .user_service import check_password_policy

if TYPE_CHECKING:
    from database.storage import Storage

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    access_token: str
    user: User
    session: LoginSession
    token_type: str = "bearer"

    def to_dict(self):
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "user": self.user.to_dict(),
        }


class AuthService:
    """Authentication and login session operations."""

    def __init__(self, storage: "Storage"):
        self.storage = storage

    def register(self, username: str, password: str, display_name: Optional[str] = None) -> User:
        """Create a USER account. Raises ConflictError when the name is taken."""
        check_password_policy(password)
        user = self.storage.create_user(
            username=username,
            password_hash=hash_password(password),
            display_name=display_name,
            role=UserRole.USER,
        )
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def login(self, username: str, password: str) -> LoginResult:
        user = self.storage.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for username '{username}'")
            raise AuthenticationError("Invalid username or password")

        if user.is_blocked:
            logger.warning(f"Blocked user {user.id} attempted to log in")
            raise PermissionDeniedError("Account is blocked")

        session = self.storage.create_session(user.id)
        user = self.storage.update_user(user.id, last_login_at=session.start_time or utcnow())
        token = create_access_token(user.id, session.id, user.role.value)

        logger.info(f"User {user.id} logged in (session {session.id})")
        return LoginResult(access_token=token, user=user, session=session)

    def logout(self, session_id: int) -> LoginSession:
        session = self.storage.end_session(session_id)
        logger.info(f"Session {session_id} ended by logout")
        return session

    # =========================================================================
    # SESSION QUERIES
    # =========================================================================

    def active_sessions(self) -> List[LoginSession]:
        return self.storage.get_active_sessions()

    def expired_sessions(self) -> List[LoginSession]:
        return self.storage.get_expired_sessions()

    def user_sessions(self, user_id: int) -> List[LoginSession]:
        return self.storage.get_user_sessions(user_id)
