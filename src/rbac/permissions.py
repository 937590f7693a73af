"""
Authorization rules.

Pure predicates over users and complaints. They take any object exposing
``id`` and ``role`` (users) or ``user_id`` and ``assigned_to_id`` (complaints)
so that route handlers, services and the chat relay share one set of rules.
"""

from typing import Any, Optional, Union

from .roles import ADMIN_ROLES, STAFF_ROLES, UserRole, coerce_role


def _role_of(subject: Union[str, UserRole, Any, None]) -> Optional[UserRole]:
    if subject is None:
        return None
    raw = getattr(subject, "role", subject)
    try:
        return coerce_role(raw)
    except ValueError:
        return None


def is_owner(subject) -> bool:
    """True for the OWNER role. Accepts a role or a user."""
    return _role_of(subject) == UserRole.OWNER


def is_admin(subject) -> bool:
    """True for OWNER and ADMIN."""
    return _role_of(subject) in ADMIN_ROLES


def is_staff(subject) -> bool:
    """True for OWNER, ADMIN, MODERATOR and SUPPORT."""
    return _role_of(subject) in STAFF_ROLES


def can_modify_user(actor, target) -> bool:
    """
    Check whether ``actor`` may change ``target``'s role or status flags.

    The owner may modify everyone. Admins may modify everyone except the owner.
    """
    if actor is None or target is None:
        return False

    if is_owner(actor):
        return True

    if _role_of(actor) == UserRole.ADMIN:
        return not is_owner(target)

    return False


def can_view_complaint(actor, complaint) -> bool:
    """Staff, the complaint author and the assignee may read a complaint."""
    if actor is None or complaint is None:
        return False
    if is_staff(actor):
        return True
    return actor.id in (complaint.user_id, complaint.assigned_to_id)


def can_post_to_complaint(actor, complaint) -> bool:
    """The complaint author and any staff member may write to its chat."""
    if actor is None or complaint is None:
        return False
    return complaint.user_id == actor.id or is_staff(actor)


def can_close_complaint(actor, complaint) -> bool:
    """
    Check whether ``actor`` may resolve or reject ``complaint``.

    Unassigned complaints can be closed by any staff member; assigned ones
    only by the assignee or an admin.
    """
    if not is_staff(actor) or complaint is None:
        return False
    if complaint.assigned_to_id is None:
        return True
    return complaint.assigned_to_id == actor.id or is_admin(actor)
