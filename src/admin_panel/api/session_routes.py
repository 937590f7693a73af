"""
Login Session Routes
"""

from fastapi import APIRouter, Depends

from ..auth.rbac import CurrentUser, get_current_user, require_admin
from ..services import AuthService
from .dependencies import get_auth_service

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("/active")
def list_active_sessions(
    current: CurrentUser = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
):
    return [s.to_dict() for s in service.active_sessions()]


@router.get("/expired")
def list_expired_sessions(
    current: CurrentUser = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
):
    return [s.to_dict() for s in service.expired_sessions()]


@router.get("/user")
def list_my_sessions(
    current: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Login sessions of the caller."""
    return [s.to_dict() for s in service.user_sessions(current.id)]
