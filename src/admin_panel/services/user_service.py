"""
User Service - Account management operations.

Handles:
- User creation by the owner
- Role and status flag changes with hierarchy checks
- Deletion
- Self-service profile and password updates
- Bootstrap owner account
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional
import logging

from rbac import UserRole, can_modify_user

from ..auth.password import hash_password, validate_password_strength, verify_password
from ..errors import (
    AuthenticationError,
    InvalidRequestError,
    NotFoundError,
    PasswordPolicyError,
    PermissionDeniedError,
)
from ..models import User

if TYPE_CHECKING:
    from database.storage import Storage

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"display_name", "avatar_url"})


def check_password_policy(password: str) -> None:
    """Raise PasswordPolicyError when the password fails validation."""
    is_valid, errors = validate_password_strength(password)
    if not is_valid:
        raise PasswordPolicyError(errors[0], details={"errors": errors})


class UserService:
    """Service for account management operations."""

    def __init__(self, storage: "Storage"):
        self.storage = storage

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_user(self, user_id: int) -> User:
        user = self.storage.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return user

    def list_users(self) -> List[User]:
        return self.storage.get_all_users()

    def list_staff(self) -> List[User]:
        return self.storage.get_staff_users()

    def _get_modifiable(self, actor: User, target_id: int) -> User:
        target = self.get_user(target_id)
        if not can_modify_user(actor, target):
            raise PermissionDeniedError(
                "You cannot modify this user",
                details={"user_id": target_id},
            )
        return target

    # =========================================================================
    # STAFF OPERATIONS
    # =========================================================================

    def create_user(
        self,
        username: str,
        password: str,
        display_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create an account with any role."""
        check_password_policy(password)
        user = self.storage.create_user(
            username=username,
            password_hash=hash_password(password),
            display_name=display_name,
            role=role,
        )
        logger.info(f"Created user {user.id} ({user.username}) with role {user.role.value}")
        return user

    def change_role(self, actor: User, target_id: int, role: UserRole) -> User:
        if target_id == actor.id:
            raise InvalidRequestError("You cannot change your own role")

        target = self._get_modifiable(actor, target_id)
        user = self.storage.update_user_role(target.id, role)
        logger.info(f"User {actor.id} changed role of user {target.id}: {target.role.value} -> {user.role.value}")
        return user

    def update_status(
        self,
        actor: User,
        target_id: int,
        is_premium: Optional[bool] = None,
        is_verified: Optional[bool] = None,
        is_blocked: Optional[bool] = None,
    ) -> User:
        """
        Update status flags. Blocking a user ends all of their sessions.
        """
        if target_id == actor.id and is_blocked:
            raise InvalidRequestError("You cannot block yourself")

        target = self._get_modifiable(actor, target_id)
        user = self.storage.update_user_status(
            target.id,
            is_premium=is_premium,
            is_verified=is_verified,
            is_blocked=is_blocked,
        )

        if is_blocked and not target.is_blocked:
            ended = self.storage.end_user_sessions(target.id)
            logger.info(f"User {actor.id} blocked user {target.id}, ended {ended} session(s)")

        return user

    def verify_user(self, actor: User, target_id: int) -> User:
        target = self._get_modifiable(actor, target_id)
        return self.storage.verify_user(target.id)

    def delete_user(self, actor: User, target_id: int) -> None:
        """Delete an account together with its login sessions."""
        if target_id == actor.id:
            raise InvalidRequestError("You cannot delete your own account")

        target = self._get_modifiable(actor, target_id)
        self.storage.delete_user(target.id)
        logger.info(f"User {actor.id} deleted user {target.id} ({target.username})")

    # =========================================================================
    # SELF SERVICE
    # =========================================================================

    def update_profile(self, user: User, changes: Dict[str, Any]) -> User:
        """Update display name and avatar. Other fields are rejected."""
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise InvalidRequestError(
                "Only display_name and avatar_url can be updated",
                details={"fields": sorted(unknown)},
            )
        if not changes:
            return self.get_user(user.id)
        return self.storage.update_user(user.id, **changes)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        check_password_policy(new_password)
        self.storage.update_user(user.id, password_hash=hash_password(new_password))
        logger.info(f"User {user.id} changed password")

    # =========================================================================
    # BOOTSTRAP
    # =========================================================================

    def ensure_owner(self, username: str, password: str) -> Optional[User]:
        """
        Create the owner account if no user holds that username.

        Returns the created user, or None when it already existed.
        """
        if self.storage.get_user_by_username(username) is not None:
            return None

        owner = self.storage.create_user(
            username=username,
            password_hash=hash_password(password),
            display_name="Owner",
            role=UserRole.OWNER,
        )
        logger.info(f"Seeded owner account '{username}'")
        return owner
