"""
WebSocket Routes

Complaint chat endpoint.
"""

import json
import logging
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocketState

from admin_panel.auth.rbac import authenticate_token
from admin_panel.errors import AdminPanelError, NotFoundError, PermissionDeniedError
from admin_panel.support import ComplaintService
from admin_panel.support.complaint_models import Complaint, ComplaintMessage
from database import Storage, get_storage

from .connection_manager import WS_CLOSE_UNAUTHORIZED, ConnectionManager, get_connection_manager
from .events import create_complaint_message_event

logger = logging.getLogger(__name__)

websocket_router = APIRouter(prefix="/ws", tags=["WebSocket"])


class ChatMessageIn(BaseModel):
    """Chat message sent by a client. ``complaintId`` is accepted as an alias."""
    model_config = ConfigDict(populate_by_name=True)

    complaint_id: int = Field(..., alias="complaintId")
    text: Optional[str] = None


def session_is_active(storage: Storage, session_id: int) -> bool:
    session = storage.get_session(session_id)
    return session is not None and session.is_active


def store_chat_message(
    storage: Storage,
    user_id: int,
    incoming: ChatMessageIn,
) -> Tuple[Complaint, ComplaintMessage]:
    """
    Persist a chat message.

    Checked in order: complaint exists, user exists, user is not blocked,
    user may post, text is non-empty.
    """
    complaint = storage.get_complaint(incoming.complaint_id)
    if complaint is None:
        raise NotFoundError("Complaint not found")

    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    if user.is_blocked:
        raise PermissionDeniedError("Access denied")

    message = ComplaintService(storage).post_message(complaint.id, user, incoming.text)
    return complaint, message


async def handle_client_message(
    user_id: int,
    session_id: int,
    raw: Optional[str],
    websocket: WebSocket,
    storage: Storage,
    manager: ConnectionManager,
) -> bool:
    """
    Process one client frame.

    Returns False once the login session behind the socket has ended; the
    socket is closed with 4001 by then. Errors go back to the sender only.
    """
    if not await run_in_threadpool(session_is_active, storage, session_id):
        logger.info(f"[WS] Session {session_id} ended, closing socket for user={user_id}")
        await manager.disconnect(user_id, websocket, code=WS_CLOSE_UNAUTHORIZED)
        return False

    if raw is None:
        # Binary frame
        await manager.send_error(websocket, "Invalid message format")
        return True

    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError:
        await manager.send_error(websocket, "Invalid message format")
        return True

    if not isinstance(payload, dict):
        await manager.send_error(websocket, "Invalid message format")
        return True

    manager.record_activity(user_id)

    if payload.get("type") == "heartbeat":
        await manager.heartbeat(user_id)
        return True

    try:
        incoming = ChatMessageIn.model_validate(payload)
    except ValidationError:
        await manager.send_error(websocket, "Invalid message format")
        return True

    try:
        complaint, message = await run_in_threadpool(store_chat_message, storage, user_id, incoming)
    except AdminPanelError as e:
        await manager.send_error(websocket, e.message)
        return True

    await manager.broadcast_to_complaint(complaint, create_complaint_message_event(message))
    return True


async def receive_frame(websocket: WebSocket) -> Optional[str]:
    """Next client frame as text, or None for a binary frame."""
    if websocket.application_state != WebSocketState.CONNECTED:
        raise RuntimeError("WebSocket is not connected")
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    return message.get("text")


@websocket_router.websocket("/complaints")
async def complaint_chat(
    websocket: WebSocket,
    token: Optional[str] = Query(None, description="Access token"),
    storage: Storage = Depends(get_storage),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """
    Complaint chat WebSocket.

    Connect with: ws://host/ws/complaints?token=<access_token>

    Message format (incoming):
    - {"complaint_id": 1, "text": "..."}
    - {"type": "heartbeat"}

    Event format (outgoing):
    - {"id": "...", "type": "complaint_message", "data": {...}, "timestamp": "..."}

    The socket is closed with 4001 when the token is missing or invalid, and
    when the login session behind it ends.
    """
    if not token:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Missing authentication token")
        return

    try:
        current = await run_in_threadpool(authenticate_token, token, storage)
    except HTTPException as e:
        logger.info(f"[WS] Rejected connection: {e.detail}")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason=str(e.detail))
        return

    user_id = current.id
    await manager.connect(websocket, current.user, session_id=current.session_id)

    try:
        while True:
            raw = await receive_frame(websocket)
            try:
                keep_open = await handle_client_message(
                    user_id, current.session_id, raw, websocket, storage, manager
                )
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.exception(f"[WS] Error handling message from user {user_id}")
                await manager.send_error(websocket, "Internal server error")
                continue
            if not keep_open:
                break
    except WebSocketDisconnect:
        logger.debug(f"[WS] Client disconnected: user={user_id}")
    except RuntimeError as e:
        # Socket was closed server side (replaced or cleaned up)
        logger.debug(f"[WS] Receive loop ended for user={user_id}: {e}")
    finally:
        await manager.disconnect(user_id, websocket)
