"""
Admin Panel Services Layer.

Business logic for:
- Account management
- Authentication and login sessions
- Dashboard statistics
"""

from .auth_service import AuthService, LoginResult
from .stats_service import StatsService
from .user_service import UserService

__all__ = [
    "AuthService",
    "LoginResult",
    "StatsService",
    "UserService",
]
