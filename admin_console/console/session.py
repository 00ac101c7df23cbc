"""Signed-in operator session as shown in the header and sidebar."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .directory import UserRecord, get_initials
from .roles import is_admin, normalize_roles

logger = logging.getLogger(__name__)

ADMIN_ROLE_WARNING = (
    "Your account does not have the admin role. Requests may be rejected until an "
    "administrator grants you access."
)

TITLE_BY_SEGMENT: dict[str, str] = {
    "admin": "Admin",
    "dashboard": "Dashboard",
}


class SessionInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user: UserRecord
    impersonated_by: Optional[str] = Field(default=None, alias="impersonatedBy")

    @classmethod
    def from_payload(cls, data: Any) -> Optional["SessionInfo"]:
        """Parse ``{"user": {...}, "session": {...}}``; ``None`` means signed out."""

        if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
            return None
        if not data["user"].get("id"):
            return None
        session = data.get("session") if isinstance(data.get("session"), dict) else {}
        try:
            return cls(user=UserRecord.model_validate(data["user"]), impersonated_by=session.get("impersonatedBy"))
        except ValidationError as exc:
            logger.warning("Unreadable session payload errors=%d", exc.error_count())
            return None

    @property
    def is_admin(self) -> bool:
        return is_admin(self.user.role)

    @property
    def is_impersonating(self) -> bool:
        return bool(self.impersonated_by)


def page_title(segment: Optional[str]) -> str:
    if not segment:
        return "Documents"
    return TITLE_BY_SEGMENT.get(segment, "Documents")


def build_session_view(session: SessionInfo, *, segment: Optional[str] = None) -> dict[str, Any]:
    user = session.user
    display_name = user.name or user.email or "Guest"
    return {
        "user": {
            "id": user.id,
            "name": display_name,
            "email": user.email or "No email",
            "image": user.image,
            "initials": get_initials(display_name, default="U"),
            "roles": normalize_roles(user.role),
        },
        "is_admin": session.is_admin,
        "is_impersonating": session.is_impersonating,
        "impersonated_by": session.impersonated_by,
        "admin_warning": None if session.is_admin else ADMIN_ROLE_WARNING,
        "title": page_title(segment),
        "nav": [{"title": "Dashboard", "url": "/dashboard"}]
        + ([{"title": "Admin", "url": "/admin"}] if session.is_admin else []),
    }
