"""Operator session view for the header, sidebar and nav menu."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from admin_console.console.session import build_session_view

from .base import create_response
from .deps import Operator, require_operator

router = APIRouter(tags=["session"])


@router.get("/session", response_model=None)
async def get_session(
    segment: Optional[str] = Query(None, description="Current layout segment, e.g. admin"),  # noqa: B008
    operator: Operator = Depends(require_operator),  # noqa: B008
) -> dict[str, Any]:
    return create_response(data=build_session_view(operator.session, segment=segment), msg="ok")
