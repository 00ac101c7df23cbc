"""Shared dependencies: provider client, forwarded credentials, operator session."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, Response, status

from admin_console.console.dispatch import ActionDispatcher
from admin_console.console.field_status import ProfileEditorRegistry
from admin_console.console.notices import format_error
from admin_console.console.session import SessionInfo
from admin_console.core.middleware import get_current_request_id
from admin_console.services.auth_admin import AuthAdminClient, AuthAdminError, AuthResult, Credentials
from admin_console.settings.config import get_settings


def _detail(code: int, msg: str) -> dict:
    return {"code": int(code), "msg": str(msg), "data": None, "request_id": get_current_request_id() or ""}


def get_auth_admin(request: Request) -> AuthAdminClient:
    client = getattr(request.app.state, "auth_admin", None)
    if client is None:
        raise AuthAdminError(
            code="auth_provider_not_configured",
            message="Auth provider is not configured",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            hint="Set AUTH_BASE_URL",
        )
    return client


def get_dispatcher(request: Request) -> ActionDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        dispatcher = ActionDispatcher()
        request.app.state.dispatcher = dispatcher
    return dispatcher


def get_profile_editors(request: Request) -> ProfileEditorRegistry:
    registry = getattr(request.app.state, "profile_editors", None)
    if registry is None:
        registry = ProfileEditorRegistry()
        request.app.state.profile_editors = registry
    return registry


def get_credentials(request: Request) -> Credentials:
    return Credentials(
        cookie=request.headers.get("cookie"),
        authorization=request.headers.get("authorization"),
        request_id=getattr(request.state, "request_id", None) or get_current_request_id(),
    )


def _has_session_cookie(request: Request) -> bool:
    cookie_name = get_settings().auth_session_cookie
    # secure deployments prefix the name, e.g. __Secure-
    return any(name.endswith(cookie_name) for name in request.cookies)


@dataclass(slots=True)
class Operator:
    session: SessionInfo
    credentials: Credentials

    @property
    def user_id(self) -> str:
        return self.session.user.id


async def require_operator(
    request: Request,
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    credentials: Credentials = Depends(get_credentials),  # noqa: B008
) -> Operator:
    if not credentials.authorization and not _has_session_cookie(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_detail(401, "Sign in required"))

    result = await auth_admin.get_session(credentials=credentials)
    if result.error is not None:
        code = result.error.status if result.error.status in (401, 403) else status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=_detail(code, format_error(result.error)))

    session = SessionInfo.from_payload(result.data)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_detail(401, "Sign in required"))
    return Operator(session=session, credentials=credentials)


def relay_cookies(response: Response, result: AuthResult) -> None:
    """Pass the provider's session cookies through to the browser."""

    for cookie in getattr(result, "set_cookies", None) or []:
        response.headers.append("set-cookie", cookie)
