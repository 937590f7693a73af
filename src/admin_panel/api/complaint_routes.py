"""
Complaint Routes

Provides:
- Filing and listing complaints
- Staff triage: assign, resolve, reject
- Chat history and posting

Every change is pushed to the complaint's chat subscribers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from realtime.connection_manager import ConnectionManager, get_connection_manager
from realtime.events import create_complaint_message_event, create_status_changed_event

from ..auth.rbac import CurrentUser, get_current_user, require_staff
from ..support import ComplaintService, ComplaintUpdate
from .dependencies import get_complaint_service

router = APIRouter(prefix="/complaints", tags=["Complaints"])
logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreateComplaintRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    target_user_id: Optional[int] = None


class PostMessageRequest(BaseModel):
    message: str


async def _publish(manager: ConnectionManager, update: ComplaintUpdate, actor_id: int) -> None:
    await manager.broadcast_events(update.complaint, [
        create_status_changed_event(update.complaint, changed_by=actor_id),
        create_complaint_message_event(update.message),
    ])


# =============================================================================
# ROUTES
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_complaint(
    payload: CreateComplaintRequest,
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """File a complaint, optionally against another user."""
    update = await run_in_threadpool(
        service.create_complaint,
        current.user,
        title=payload.title,
        description=payload.description,
        target_user_id=payload.target_user_id,
    )
    await manager.broadcast_to_complaint(update.complaint, create_complaint_message_event(update.message))
    return update.complaint.to_dict()


@router.get("")
def list_complaints(
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Staff see all complaints; others see their own and assigned ones."""
    return [c.to_dict() for c in service.list_for(current.user)]


@router.get("/pending")
def list_pending(
    current: CurrentUser = Depends(require_staff),
    service: ComplaintService = Depends(get_complaint_service),
):
    return [c.to_dict() for c in service.pending(current.user)]


@router.get("/user")
def list_own(
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Complaints filed by or assigned to the caller."""
    return [c.to_dict() for c in service.list_own(current.user)]


@router.get("/{complaint_id}")
def get_complaint(
    complaint_id: int,
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    return service.get_complaint(complaint_id, current.user).to_dict()


@router.get("/{complaint_id}/messages")
def get_messages(
    complaint_id: int,
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
):
    return [m.to_dict() for m in service.get_messages(complaint_id, current.user)]


@router.post("/{complaint_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_message(
    complaint_id: int,
    payload: PostMessageRequest,
    current: CurrentUser = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    message = await run_in_threadpool(service.post_message, complaint_id, current.user, payload.message)
    complaint = await run_in_threadpool(service.get_complaint, complaint_id, current.user)
    await manager.broadcast_to_complaint(complaint, create_complaint_message_event(message))
    return message.to_dict()


@router.patch("/{complaint_id}/assign")
async def assign_complaint(
    complaint_id: int,
    current: CurrentUser = Depends(require_staff),
    service: ComplaintService = Depends(get_complaint_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Take the complaint and move it to IN_PROGRESS."""
    update = await run_in_threadpool(service.assign_complaint, complaint_id, current.user)
    await _publish(manager, update, current.id)
    return update.complaint.to_dict()


@router.patch("/{complaint_id}/resolve")
async def resolve_complaint(
    complaint_id: int,
    current: CurrentUser = Depends(require_staff),
    service: ComplaintService = Depends(get_complaint_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    update = await run_in_threadpool(service.resolve_complaint, complaint_id, current.user)
    await _publish(manager, update, current.id)
    return update.complaint.to_dict()


@router.patch("/{complaint_id}/reject")
async def reject_complaint(
    complaint_id: int,
    current: CurrentUser = Depends(require_staff),
    service: ComplaintService = Depends(get_complaint_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    update = await run_in_threadpool(service.reject_complaint, complaint_id, current.user)
    await _publish(manager, update, current.id)
    return update.complaint.to_dict()
