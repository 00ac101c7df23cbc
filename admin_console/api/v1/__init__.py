"""v1 routers."""

import logging

from fastapi import APIRouter

from .account import router as account_router
from .admin_users import router as admin_users_router
from .base import router as base_router
from .session import router as session_router

logger = logging.getLogger(__name__)

v1_router = APIRouter()
v1_router.include_router(base_router)
v1_router.include_router(session_router)
v1_router.include_router(admin_users_router)
logger.info("[ROUTER_INIT] Admin users router registered with %d routes", len(admin_users_router.routes))
v1_router.include_router(account_router)

__all__ = ["v1_router"]
