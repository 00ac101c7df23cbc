"""Auth provider client for the admin plugin and account endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from admin_console.settings.config import Settings

logger = logging.getLogger(__name__)


class AuthAdminError(RuntimeError):
    """Raised when the client cannot be used at all (misconfiguration)."""

    def __init__(self, code: str, message: str, *, status_code: int = 500, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.hint = hint


@dataclass(slots=True)
class AuthError:
    message: Optional[str]
    status: int
    code: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {"message": self.message, "status": self.status, "code": self.code}


@dataclass(slots=True)
class AuthResult:
    """Uniform outcome of a provider call: either ``data`` or ``error``."""

    data: Any = None
    error: Optional[AuthError] = None
    set_cookies: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class Credentials:
    """Operator credentials forwarded verbatim to the provider."""

    cookie: Optional[str] = None
    authorization: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def present(self) -> bool:
        return bool(self.cookie or self.authorization)

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.cookie:
            headers["Cookie"] = self.cookie
        if self.authorization:
            headers["Authorization"] = self.authorization
        if self.request_id:
            headers["X-Request-Id"] = self.request_id
        return headers


def _extract_error_message(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
    try:
        data = response.json()
    except ValueError:
        return None, None

    if not isinstance(data, dict):
        return None, None

    code = data.get("code") if isinstance(data.get("code"), str) else None
    for key in ("message", "error_description", "error", "msg"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:240], code
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"].strip()[:240], code
    return None, code


class AuthAdminClient:
    """Thin wrapper around the provider's admin and account endpoints.

    Every call is a single request; failures come back as ``AuthResult.error``
    and are never retried. The provider enforces permissions, the console only
    forwards the operator's cookie / bearer token.
    """

    def __init__(self, settings: Settings) -> None:
        self._base_url = self._resolve_base_url(settings)
        self._timeout = settings.http_timeout_seconds

    @staticmethod
    def _resolve_base_url(settings: Settings) -> str:
        if not settings.auth_base_url:
            raise AuthAdminError(
                code="auth_provider_not_configured",
                message="Auth provider is not configured",
                status_code=500,
                hint="Set AUTH_BASE_URL",
            )
        return f"{str(settings.auth_base_url).rstrip('/')}{settings.auth_base_path}"

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        credentials: Optional[Credentials],
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> AuthResult:
        url = f"{self._base_url}{path}"
        headers = {"Accept": "application/json"}
        if credentials is not None:
            headers.update(credentials.headers())
        request_id = credentials.request_id if credentials else None

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, headers=headers, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning(
                "Auth provider request error path=%s error=%s request_id=%s",
                path,
                type(exc).__name__,
                request_id,
            )
            return AuthResult(error=AuthError(message="Unable to reach the auth provider", status=502))

        set_cookies = response.headers.get_list("set-cookie")
        if response.is_error:
            message, code = _extract_error_message(response)
            logger.warning(
                "Auth provider request failed path=%s status=%s code=%s request_id=%s",
                path,
                response.status_code,
                code,
                request_id,
            )
            return AuthResult(
                error=AuthError(message=message, status=response.status_code, code=code),
                set_cookies=set_cookies,
            )

        if not response.content:
            return AuthResult(data=None, set_cookies=set_cookies)
        try:
            data = response.json()
        except ValueError:
            return AuthResult(
                error=AuthError(message="Auth provider response is not valid JSON", status=502),
                set_cookies=set_cookies,
            )
        return AuthResult(data=data, set_cookies=set_cookies)

    async def get_session(self, *, credentials: Credentials) -> AuthResult:
        return await self._request("GET", "/get-session", credentials=credentials)

    async def list_users(self, *, params: dict[str, Any], credentials: Credentials) -> AuthResult:
        return await self._request("GET", "/admin/list-users", credentials=credentials, params=params)

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        credentials: Credentials,
    ) -> AuthResult:
        payload = {"name": name, "email": email, "password": password, "role": role}
        return await self._request("POST", "/admin/create-user", credentials=credentials, json=payload)

    async def set_role(self, *, user_id: str, role: str, credentials: Credentials) -> AuthResult:
        return await self._request(
            "POST", "/admin/set-role", credentials=credentials, json={"userId": user_id, "role": role}
        )

    async def set_user_password(self, *, user_id: str, new_password: str, credentials: Credentials) -> AuthResult:
        return await self._request(
            "POST",
            "/admin/set-user-password",
            credentials=credentials,
            json={"userId": user_id, "newPassword": new_password},
        )

    async def ban_user(
        self,
        *,
        user_id: str,
        credentials: Credentials,
        ban_reason: Optional[str] = None,
        ban_expires_in: Optional[int] = None,
    ) -> AuthResult:
        payload: dict[str, Any] = {"userId": user_id}
        if ban_reason:
            payload["banReason"] = ban_reason
        if ban_expires_in is not None:
            payload["banExpiresIn"] = int(ban_expires_in)
        return await self._request("POST", "/admin/ban-user", credentials=credentials, json=payload)

    async def unban_user(self, *, user_id: str, credentials: Credentials) -> AuthResult:
        return await self._request("POST", "/admin/unban-user", credentials=credentials, json={"userId": user_id})

    async def revoke_user_sessions(self, *, user_id: str, credentials: Credentials) -> AuthResult:
        return await self._request(
            "POST", "/admin/revoke-user-sessions", credentials=credentials, json={"userId": user_id}
        )

    async def impersonate_user(self, *, user_id: str, credentials: Credentials) -> AuthResult:
        return await self._request(
            "POST", "/admin/impersonate-user", credentials=credentials, json={"userId": user_id}
        )

    async def stop_impersonating(self, *, credentials: Credentials) -> AuthResult:
        return await self._request("POST", "/admin/stop-impersonating", credentials=credentials, json={})

    async def remove_user(self, *, user_id: str, credentials: Credentials) -> AuthResult:
        return await self._request("POST", "/admin/remove-user", credentials=credentials, json={"userId": user_id})

    async def update_user(
        self,
        *,
        credentials: Credentials,
        name: Optional[str] = None,
        image: Optional[str] = None,
        clear_image: bool = False,
    ) -> AuthResult:
        payload: dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if clear_image:
            payload["image"] = None
        elif image is not None:
            payload["image"] = image
        return await self._request("POST", "/update-user", credentials=credentials, json=payload)

    async def change_password(
        self,
        *,
        current_password: str,
        new_password: str,
        credentials: Credentials,
        revoke_other_sessions: bool = False,
    ) -> AuthResult:
        payload: dict[str, Any] = {"currentPassword": current_password, "newPassword": new_password}
        if revoke_other_sessions:
            payload["revokeOtherSessions"] = True
        return await self._request("POST", "/change-password", credentials=credentials, json=payload)

    async def sign_up_email(
        self,
        *,
        name: str,
        email: str,
        password: str,
        callback_url: str,
        image: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> AuthResult:
        payload: dict[str, Any] = {"name": name, "email": email, "password": password, "callbackURL": callback_url}
        if image:
            payload["image"] = image
        return await self._request("POST", "/sign-up/email", credentials=credentials, json=payload)
