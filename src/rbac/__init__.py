"""
Role-Based Access Control.

Usage:
    from rbac import UserRole, is_staff, can_modify_user

    if not can_modify_user(actor, target):
        raise PermissionDeniedError("Cannot modify this user")
"""

from .roles import (
    ADMIN_ROLES,
    ROLES,
    STAFF_ROLES,
    RoleInfo,
    UserRole,
    coerce_role,
    get_role_info,
)
from .permissions import (
    can_close_complaint,
    can_modify_user,
    can_post_to_complaint,
    can_view_complaint,
    is_admin,
    is_owner,
    is_staff,
)

__all__ = [
    # Roles
    "UserRole",
    "RoleInfo",
    "ROLES",
    "STAFF_ROLES",
    "ADMIN_ROLES",
    "coerce_role",
    "get_role_info",
    # Rules
    "is_owner",
    "is_admin",
    "is_staff",
    "can_modify_user",
    "can_view_complaint",
    "can_post_to_complaint",
    "can_close_complaint",
]
