"""Request-scoped middleware."""

from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER_NAME = "X-Request-Id"

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generate or pass through a request id and echo it on the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER_NAME)
        request_id = incoming or uuid.uuid4().hex
        token = _request_id_ctx.set(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        finally:
            _request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER_NAME] = request_id
        return response


def get_current_request_id() -> str | None:
    """Expose the current request id to logging and outbound calls."""

    return _request_id_ctx.get()


__all__ = [
    "REQUEST_ID_HEADER_NAME",
    "RequestIDMiddleware",
    "get_current_request_id",
]
