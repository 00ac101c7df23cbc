from __future__ import annotations

import os
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Point at a fake provider; no test may reach a real network endpoint.
os.environ["AUTH_BASE_URL"] = "https://auth.test"
os.environ["AUTH_BASE_PATH"] = "/api/auth"
os.environ["DEBUG"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["CORS_ALLOW_ORIGINS"] = "*"
os.environ["STATUS_RESET_SECONDS"] = "2.2"

from admin_console.settings.config import get_settings

get_settings.cache_clear()

from admin_console import app as fastapi_app
from admin_console.services.auth_admin import AuthResult

SESSION_COOKIE = "better-auth.session_token=test-session"


def make_session_payload(
    *,
    user_id: str = "admin-1",
    name: Optional[str] = "Ada Admin",
    email: Optional[str] = "ada@example.com",
    role: Any = "admin",
    image: Optional[str] = None,
    impersonated_by: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "user": {"id": user_id, "name": name, "email": email, "role": role, "image": image},
        "session": {"id": "sess-1", "userId": user_id, "impersonatedBy": impersonated_by},
    }


def make_auth_admin(session: Optional[dict[str, Any]] = None) -> MagicMock:
    """Fake provider client: every admin call succeeds with an empty payload."""

    fake = MagicMock()
    fake.get_session = AsyncMock(return_value=AuthResult(data=session or make_session_payload()))
    fake.list_users = AsyncMock(return_value=AuthResult(data={"users": [], "total": 0}))
    for name in (
        "create_user",
        "set_role",
        "set_user_password",
        "ban_user",
        "unban_user",
        "revoke_user_sessions",
        "impersonate_user",
        "stop_impersonating",
        "remove_user",
        "update_user",
        "change_password",
        "sign_up_email",
    ):
        setattr(fake, name, AsyncMock(return_value=AuthResult(data={"success": True})))
    return fake


@pytest.fixture
def client() -> TestClient:
    with TestClient(fastapi_app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    async with fastapi_app.router.lifespan_context(fastapi_app):
        transport = ASGITransport(app=fastapi_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def auth_admin(async_client: AsyncClient):
    """Install a fake provider client on app.state for the duration of a test."""

    original = getattr(fastapi_app.state, "auth_admin", None)
    fake = make_auth_admin()
    fastapi_app.state.auth_admin = fake
    try:
        yield fake
    finally:
        fastapi_app.state.auth_admin = original


@pytest.fixture
def operator_headers() -> dict[str, str]:
    return {"Cookie": SESSION_COOKIE}


@pytest.fixture
def make_session():
    return make_session_payload
