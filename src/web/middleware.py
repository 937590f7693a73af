"""Request ID Middleware.

Every request carries an id that is:
- Taken from the X-Request-ID header, or generated
- Stored in a ContextVar so log records can include it
- Returned in the response headers

Usage:
    from web.middleware import RequestIdMiddleware, get_request_id

    app.add_middleware(RequestIdMiddleware)
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar, Token
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"


def get_request_id() -> Optional[str]:
    """Get the request id of the current context, or None."""
    return _request_id_ctx.get()


def set_request_id(request_id: str) -> Token[Optional[str]]:
    return _request_id_ctx.set(request_id)


def reset_request_id(token: Token[Optional[str]]) -> None:
    _request_id_ctx.reset(token)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware assigning a request id to each HTTP request."""

    def __init__(
        self,
        app,
        header_name: str = REQUEST_ID_HEADER,
        generator: Optional[Callable[[], str]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator or (lambda: str(uuid.uuid4()))

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = request.headers.get(self.header_name) or self.generator()
        token = set_request_id(request_id)

        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.header_name] = request_id
            return response
        finally:
            reset_request_id(token)


class RequestIdFilter(logging.Filter):
    """Logging filter that adds ``request_id`` to log records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(RequestIdFilter())
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True
