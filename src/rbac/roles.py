"""
Role Definitions

5 roles organized in a single hierarchy:

    STAFF
    ├── OWNER      - Full access, the only role that can grant roles or delete accounts
    ├── ADMIN      - Manages every account except the owner's
    ├── MODERATOR  - Triages complaints
    └── SUPPORT    - Triages complaints

    MEMBER
    └── USER       - Regular account, files complaints
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Union


class UserRole(str, Enum):
    """
    All roles in the system.

    Values are upper case to stay compatible with stored records.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    SUPPORT = "SUPPORT"
    USER = "USER"


STAFF_ROLES: FrozenSet[UserRole] = frozenset({
    UserRole.OWNER,
    UserRole.ADMIN,
    UserRole.MODERATOR,
    UserRole.SUPPORT,
})

ADMIN_ROLES: FrozenSet[UserRole] = frozenset({
    UserRole.OWNER,
    UserRole.ADMIN,
})


@dataclass(frozen=True)
class RoleInfo:
    """Complete information about a role."""
    role: UserRole
    name: str
    description: str
    is_staff: bool
    is_admin: bool


ROLES: Dict[UserRole, RoleInfo] = {
    UserRole.OWNER: RoleInfo(
        role=UserRole.OWNER,
        name="Owner",
        description="Full access. Grants roles, creates and deletes accounts.",
        is_staff=True,
        is_admin=True,
    ),
    UserRole.ADMIN: RoleInfo(
        role=UserRole.ADMIN,
        name="Administrator",
        description="Manages account status flags for everyone but the owner.",
        is_staff=True,
        is_admin=True,
    ),
    UserRole.MODERATOR: RoleInfo(
        role=UserRole.MODERATOR,
        name="Moderator",
        description="Takes, resolves and rejects complaints.",
        is_staff=True,
        is_admin=False,
    ),
    UserRole.SUPPORT: RoleInfo(
        role=UserRole.SUPPORT,
        name="Support",
        description="Takes, resolves and rejects complaints.",
        is_staff=True,
        is_admin=False,
    ),
    UserRole.USER: RoleInfo(
        role=UserRole.USER,
        name="User",
        description="Regular account.",
        is_staff=False,
        is_admin=False,
    ),
}


def coerce_role(value: Union[str, UserRole]) -> UserRole:
    """
    Convert a raw role value to UserRole.

    Raises:
        ValueError: If the value is not a known role
    """
    if isinstance(value, UserRole):
        return value
    return UserRole(str(value).upper())


def get_role_info(role: Union[str, UserRole]) -> RoleInfo:
    """Get role metadata."""
    return ROLES[coerce_role(role)]
