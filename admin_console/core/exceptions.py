"""Global exception handling."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from admin_console.core.middleware import get_current_request_id

logger = logging.getLogger(__name__)


def _resolve_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_current_request_id() or uuid.uuid4().hex


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    request_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    hint: Optional[str] = None,
) -> JSONResponse:
    """Build the uniform error payload."""

    if request_id is None:
        request_id = get_current_request_id() or uuid.uuid4().hex

    payload: Dict[str, Any] = {
        "status": status_code,
        "code": code,
        # dashboard toasts read msg first
        "msg": f"{message} ({hint})" if hint else message,
        "message": message,
        "request_id": request_id,
    }
    if hint is not None:
        payload["hint"] = hint

    return JSONResponse(status_code=status_code, content=payload, headers=headers or {})


def _build_detail(detail: Any, default_code: str) -> Dict[str, Any]:
    if isinstance(detail, dict):
        result = detail.copy()
        result.setdefault("code", default_code)
        if "message" not in result and isinstance(result.get("msg"), str) and result.get("msg"):
            result["message"] = result["msg"]
        result.setdefault("message", default_code.replace("_", " "))
        if "msg" not in result and isinstance(result.get("message"), str) and result.get("message"):
            result["msg"] = result["message"]
        return result
    if detail is None:
        payload = {"code": default_code, "message": default_code.replace("_", " ")}
        payload["msg"] = payload["message"]
        return payload
    payload = {"code": default_code, "message": str(detail)}
    payload["msg"] = payload["message"]
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    """Register the global FastAPI exception handlers."""

    from admin_console.services.auth_admin import AuthAdminError

    @app.exception_handler(AuthAdminError)
    async def auth_admin_exception_handler(request: Request, exc: AuthAdminError) -> JSONResponse:
        return create_error_response(
            status_code=int(exc.status_code or 500),
            code=str(exc.code or "auth_admin_error"),
            message=str(exc) or "Auth provider error",
            request_id=_resolve_request_id(request),
            hint=exc.hint,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = _resolve_request_id(request)
        logger.info("Request validation failed request_id=%s path=%s", request_id, request.url.path)
        return JSONResponse(
            status_code=422,
            content={
                "detail": jsonable_encoder(exc.errors()),
                "msg": "Invalid request parameters",
                "request_id": request_id,
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        payload = _build_detail(exc.detail, default_code="http_error")
        payload["status"] = exc.status_code
        payload["request_id"] = _resolve_request_id(request)
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
        request_id = _resolve_request_id(request)
        logger.exception("Unhandled exception request_id=%s path=%s", request_id, request.url.path)
        return create_error_response(
            status_code=500,
            code="internal_server_error",
            message="Internal server error",
            request_id=request_id,
        )
