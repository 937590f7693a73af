"""
Admin Panel Authentication & Authorization

Provides:
- bcrypt password hashing
- JWT access tokens bound to login sessions
- FastAPI dependencies for the current user and role guards
"""

from .jwt_handler import (
    create_access_token,
    decode_token,
    InvalidTokenError,
    TokenPayload,
    TokenType,
)
from .password import (
    hash_password,
    verify_password,
    validate_password_strength,
)
from .rbac import (
    authenticate_token,
    CurrentUser,
    get_current_user,
    RoleChecker,
    require_admin,
    require_owner,
    require_staff,
)

__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    "InvalidTokenError",
    "TokenPayload",
    "TokenType",
    # Password
    "hash_password",
    "verify_password",
    "validate_password_strength",
    # RBAC
    "authenticate_token",
    "CurrentUser",
    "get_current_user",
    "RoleChecker",
    "require_admin",
    "require_owner",
    "require_staff",
]
