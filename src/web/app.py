"""
FastAPI application for the account administration panel.

Routes:
- /api/...          : JSON API (auth, users, sessions, complaints, stats)
- /ws/complaints    : complaint chat WebSocket
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from admin_panel.api import admin_router
from admin_panel.errors import AdminPanelError, ErrorCode
from admin_panel.services import UserService
from config.settings import Settings, get_settings, validate_startup_security
from database import get_storage, reset_storage
from realtime import connection_manager, websocket_router

from .logging_config import configure_logging
from .middleware import RequestIdMiddleware, get_request_id

logger = logging.getLogger(__name__)

# Seconds between stale chat connection sweeps
CLEANUP_INTERVAL_SECONDS = 60

_STATUS_CODES = {
    400: ErrorCode.INVALID_REQUEST,
    401: ErrorCode.AUTHENTICATION_FAILED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int = 400,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "error": True,
        "code": code.value,
        "message": message,
        "details": details or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    request_id = get_request_id()
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AdminPanelError)
    async def admin_panel_error_handler(request: Request, exc: AdminPanelError):
        logger.warning(f"{type(exc).__name__}: {exc.code.value} - {exc.message}")
        return create_error_response(exc.code, exc.message, exc.status_code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with readable messages."""
        errors = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            errors.append(f"{field}: {error['msg']}")

        return create_error_response(
            code=ErrorCode.VALIDATION_ERROR,
            message="Invalid request data",
            status_code=422,
            details={"validation_errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        return create_error_response(
            code=code,
            message=str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all handler for unexpected exceptions."""
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return create_error_response(
            code=ErrorCode.INTERNAL_ERROR,
            message="An unexpected error occurred",
            status_code=500,
            details={"type": type(exc).__name__},
        )


async def _cleanup_loop(max_idle_seconds: int) -> None:
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        cleaned = await connection_manager.cleanup_stale_connections(max_idle_seconds)
        if cleaned:
            logger.info(f"Closed {cleaned} stale chat connection(s)")


def seed_owner(settings: Settings) -> None:
    """Create the bootstrap owner account when it is missing."""
    service = UserService(get_storage())
    service.ensure_owner(settings.seed_owner_username, settings.seed_owner_password)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_json)
        validate_startup_security(settings)
        await run_in_threadpool(seed_owner, settings)
        logger.info(f"{settings.name} {settings.version} started ({settings.environment})")

        cleanup_task = asyncio.create_task(_cleanup_loop(settings.ws_max_idle_seconds))
        try:
            yield
        finally:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task
            reset_storage()
            logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(admin_router, prefix="/api")
    app.include_router(websocket_router)

    return app


app = create_app()
