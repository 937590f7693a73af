"""
Admin panel exceptions.

Services and storage raise these; the web layer turns them into JSON
error responses with the matching HTTP status.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for consistent client handling."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AdminPanelError(Exception):
    """Base exception for admin panel errors."""

    status_code = 400
    default_code = ErrorCode.INVALID_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": True,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidRequestError(AdminPanelError):
    """The request is well-formed but not allowed in the current state."""
    status_code = 400
    default_code = ErrorCode.INVALID_REQUEST


class AuthenticationError(AdminPanelError):
    status_code = 401
    default_code = ErrorCode.AUTHENTICATION_FAILED


class PermissionDeniedError(AdminPanelError):
    status_code = 403
    default_code = ErrorCode.PERMISSION_DENIED


class NotFoundError(AdminPanelError):
    status_code = 404
    default_code = ErrorCode.NOT_FOUND


class ConflictError(AdminPanelError):
    """Duplicate record or an illegal state transition."""
    status_code = 409
    default_code = ErrorCode.CONFLICT


class PasswordPolicyError(AdminPanelError):
    status_code = 422
    default_code = ErrorCode.VALIDATION_ERROR
