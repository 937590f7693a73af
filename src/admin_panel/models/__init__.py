"""
Admin Panel Models

Exports the account-side domain models.
"""

from .common import utcnow
from .session import LoginSession
from .user import User

__all__ = [
    "User",
    "LoginSession",
    "utcnow",
]
