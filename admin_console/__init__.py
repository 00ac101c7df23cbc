"""Admin console application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admin_console.log import logger as _configured_logger  # noqa: F401
from admin_console.api.v1 import v1_router
from admin_console.console.dispatch import ActionDispatcher
from admin_console.console.field_status import ProfileEditorRegistry
from admin_console.core.exceptions import register_exception_handlers
from admin_console.core.middleware import REQUEST_ID_HEADER_NAME, RequestIDMiddleware
from admin_console.services.auth_admin import AuthAdminClient, AuthAdminError
from admin_console.settings.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    try:
        app.state.auth_admin = AuthAdminClient(settings)
        logger.info("Auth provider client ready base_url=%s", app.state.auth_admin.base_url)
    except AuthAdminError as exc:
        app.state.auth_admin = None
        logger.warning("Auth provider client disabled code=%s hint=%s", exc.code, exc.hint)
    app.state.dispatcher = ActionDispatcher()
    app.state.profile_editors = ProfileEditorRegistry(reset_seconds=settings.status_reset_seconds)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER_NAME],
    )
    application.add_middleware(RequestIDMiddleware)
    register_exception_handlers(application)
    application.include_router(v1_router, prefix="/api/v1")
    return application


app = create_app()

__all__ = ["app", "create_app"]
