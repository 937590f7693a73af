"""
User Model - Accounts managed by the admin panel.

Roles come from the RBAC module:
- Staff: OWNER, ADMIN, MODERATOR, SUPPORT
- Member: USER
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from rbac import UserRole, is_admin, is_staff

from .common import utcnow


@dataclass
class User:
    """
    User account.

    ``password_hash`` holds a bcrypt hash and is never serialized.
    """
    id: int
    username: str
    password_hash: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER

    # Status flags
    is_premium: bool = False
    is_verified: bool = False
    is_blocked: bool = False

    created_at: datetime = field(default_factory=utcnow)
    last_login_at: Optional[datetime] = None

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    @property
    def name(self) -> str:
        """Display name, falling back to the username."""
        return self.display_name or self.username

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "role": self.role.value,
            "is_premium": self.is_premium,
            "is_verified": self.is_verified,
            "is_blocked": self.is_blocked,
            "created_at": self.created_at.isoformat(),
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }
