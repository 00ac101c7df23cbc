"""Response envelope and liveness endpoint."""

from typing import Any, Dict

from fastapi import APIRouter

from admin_console.core.middleware import get_current_request_id
from admin_console.settings.config import get_settings

router = APIRouter(tags=["base"])


def create_response(data: Any = None, code: int = 200, msg: str = "success") -> Dict[str, Any]:
    """Uniform response envelope."""
    payload: Dict[str, Any] = {"code": code, "data": data, "msg": msg}
    # business errors carry the request id for troubleshooting
    if code != 200:
        payload["request_id"] = get_current_request_id()
    return payload


@router.get("/health")
async def health() -> Dict[str, Any]:
    settings = get_settings()
    return create_response(data={"status": "ok", "version": settings.app_version}, msg="ok")
