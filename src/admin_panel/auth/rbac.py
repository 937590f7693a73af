"""
Role-Based Access Control (RBAC) - Authentication and role guards for API routes.

Provides:
- Current user dependency backed by the login session in the token
- Role checker dependencies for admin, owner and staff routes
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from database import Storage, get_storage
from rbac import UserRole, is_admin, is_owner, is_staff

from ..models import User
from .jwt_handler import InvalidTokenError, decode_token

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated caller of a request."""
    user: User
    session_id: int

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def authenticate_token(token: str, storage: Storage) -> CurrentUser:
    """
    Resolve an access token to its user.

    Raises HTTPException 401 when the token, user or session is invalid and
    403 when the user is blocked.
    """
    try:
        payload = decode_token(token)
    except InvalidTokenError as e:
        logger.warning(f"Authentication failed: {e}")
        raise _unauthorized("Invalid or expired token")

    user = storage.get_user(payload.user_id)
    if user is None:
        raise _unauthorized("User no longer exists")

    session = storage.get_session(payload.sid)
    if session is None or not session.is_active or session.user_id != user.id:
        raise _unauthorized("Session has ended")

    if user.is_blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is blocked",
        )

    return CurrentUser(user=user, session_id=session.id)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    storage: Storage = Depends(get_storage),
) -> CurrentUser:
    """
    FastAPI dependency to get current authenticated user.

    Usage:
        @router.get("/protected")
        async def protected_route(current: CurrentUser = Depends(get_current_user)):
            return {"user_id": current.id}
    """
    if credentials is None:
        raise _unauthorized("Missing authentication credentials")

    return authenticate_token(credentials.credentials, storage)


class RoleChecker:
    """
    Dependency class for role checking.

    Usage:
        @router.get("/users")
        async def list_users(current: CurrentUser = Depends(RoleChecker(is_admin, "Admin"))):
            ...
    """
    def __init__(self, predicate: Callable[[UserRole], bool], label: str):
        self.predicate = predicate
        self.label = label

    async def __call__(self, current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not self.predicate(current.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{self.label} access required",
            )
        return current


require_owner = RoleChecker(is_owner, "Owner")
require_admin = RoleChecker(is_admin, "Admin")
require_staff = RoleChecker(is_staff, "Staff")
