"""
User Management Routes

Provides:
- User and staff listings for admins
- Account creation, role changes and deletion for the owner
- Status flags and verification for admins
- Profile and password updates for the caller
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from rbac import UserRole
from realtime.connection_manager import (
    WS_CLOSE_UNAUTHORIZED,
    ConnectionManager,
    get_connection_manager,
)

from ..auth.rbac import CurrentUser, get_current_user, require_admin, require_owner
from ..services import UserService
from .dependencies import get_user_service

router = APIRouter(tags=["Users"])
logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str
    display_name: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.USER


class RoleUpdateRequest(BaseModel):
    role: UserRole


class StatusUpdateRequest(BaseModel):
    """Status flags. Omitted flags are left unchanged."""
    model_config = {"extra": "forbid"}

    is_premium: Optional[bool] = None
    is_verified: Optional[bool] = None
    is_blocked: Optional[bool] = None


class ProfileUpdateRequest(BaseModel):
    model_config = {"extra": "forbid"}

    display_name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


# =============================================================================
# ADMIN ROUTES
# =============================================================================

@router.get("/users")
def list_users(
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """List all users."""
    return [u.to_dict() for u in service.list_users()]


@router.get("/users/staff")
def list_staff(
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """List users holding a staff role."""
    return [u.to_dict() for u in service.list_staff()]


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_user(user_id).to_dict()


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    current: CurrentUser = Depends(require_owner),
    service: UserService = Depends(get_user_service),
):
    """Create an account with any role."""
    user = service.create_user(
        username=payload.username,
        password=payload.password,
        display_name=payload.display_name,
        role=payload.role,
    )
    return user.to_dict()


@router.patch("/users/{user_id}/role")
async def update_role(
    user_id: int,
    payload: RoleUpdateRequest,
    current: CurrentUser = Depends(require_owner),
    service: UserService = Depends(get_user_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    user = await run_in_threadpool(service.change_role, current.user, user_id, payload.role)
    manager.update_user_role(user.id, user.role)
    return user.to_dict()


@router.patch("/users/{user_id}/status")
async def update_status(
    user_id: int,
    payload: StatusUpdateRequest,
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """
    Update premium, verified and blocked flags.

    Blocking a user ends their login sessions and drops their chat connection.
    """
    user = await run_in_threadpool(
        service.update_status,
        current.user,
        user_id,
        is_premium=payload.is_premium,
        is_verified=payload.is_verified,
        is_blocked=payload.is_blocked,
    )
    if user.is_blocked:
        await manager.disconnect(user.id, code=WS_CLOSE_UNAUTHORIZED)
    return user.to_dict()


@router.patch("/users/{user_id}/verify")
def verify_user(
    user_id: int,
    current: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.verify_user(current.user, user_id).to_dict()


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    current: CurrentUser = Depends(require_owner),
    service: UserService = Depends(get_user_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    await run_in_threadpool(service.delete_user, current.user, user_id)
    await manager.disconnect(user_id, code=WS_CLOSE_UNAUTHORIZED)
    return {"success": True}


# =============================================================================
# SELF SERVICE
# =============================================================================

@router.patch("/user/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Update the caller's display name and avatar."""
    user = service.update_profile(current.user, payload.model_dump(exclude_unset=True))
    return user.to_dict()


@router.patch("/user/password")
def change_password(
    payload: PasswordChangeRequest,
    current: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current.user, payload.current_password, payload.new_password)
    return {"success": True}
