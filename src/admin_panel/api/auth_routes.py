"""
Authentication Routes - Registration, login, logout.

Provides:
- Self-registration of USER accounts
- Login returning a session-bound bearer token
- Logout ending the login session
- Current user lookup
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from realtime.connection_manager import ConnectionManager, get_connection_manager

from ..auth.rbac import CurrentUser, get_current_user
from ..services import AuthService
from .dependencies import get_auth_service

router = APIRouter(tags=["Authentication"])
logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class RegisterRequest(BaseModel):
    """Registration request."""
    username: str = Field(..., min_length=1, max_length=255)
    password: str
    display_name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    """Login request."""
    username: str
    password: str


class LoginResponse(BaseModel):
    """Login response."""
    access_token: str
    token_type: str = "bearer"
    user: dict


# =============================================================================
# ROUTES
# =============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create a USER account."""
    user = service.register(payload.username, payload.password, payload.display_name)
    return user.to_dict()


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate and open a login session.

    The returned token is valid until it expires or the session ends.
    """
    result = service.login(credentials.username, credentials.password)
    return result.to_dict()


@router.post("/logout")
async def logout(
    current: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """End the caller's login session and close the chat socket opened with it."""
    await run_in_threadpool(service.logout, current.session_id)
    await manager.disconnect_session(current.id, current.session_id)
    return {"success": True}


@router.get("/user")
def get_me(current: CurrentUser = Depends(get_current_user)):
    """Get the authenticated user."""
    return current.user.to_dict()
