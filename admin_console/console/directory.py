"""User directory: list query contract, pagination and row view models."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .roles import display_roles, is_admin, primary_role

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS: tuple[int, ...] = (10, 20, 30, 40, 50)
DEFAULT_PAGE_SIZE = 20

Timestamp = Union[datetime, int, float, str, None]


class UserRecord(BaseModel):
    """User as returned by the provider; camelCase keys are accepted."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Union[str, list[str], None] = None
    banned: Optional[bool] = None
    ban_reason: Optional[str] = Field(default=None, alias="banReason")
    ban_expires: Timestamp = Field(default=None, alias="banExpires")
    created_at: Timestamp = Field(default=None, alias="createdAt")
    image: Optional[str] = None


class ListQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    search_value: str = ""
    search_field: Literal["email", "name"] = "email"
    sort_by: Literal["name", "email"] = "name"
    sort_direction: Literal["asc", "desc"] = "desc"
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    filter_banned: Optional[bool] = None

    def apply(self, **changes: Any) -> "ListQuery":
        return self.model_copy(update=changes)

    def to_params(self) -> dict[str, Any]:
        """Query parameters for the provider's list-users endpoint."""

        params: dict[str, Any] = {
            "searchField": self.search_field,
            "sortBy": self.sort_by,
            "sortDirection": self.sort_direction,
            "limit": self.limit,
            "offset": self.offset,
        }
        search_value = self.search_value.strip()
        if search_value:
            params["searchValue"] = search_value
        if self.filter_banned is not None:
            params["filterField"] = "banned"
            params["filterOperator"] = "eq"
            params["filterValue"] = "true" if self.filter_banned else "false"
        return params


class ListMeta(BaseModel):
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @classmethod
    def from_response(cls, data: Any, query: ListQuery) -> "ListMeta":
        source = data if isinstance(data, dict) else {}
        return cls(
            total=_as_int(source.get("total"), 0),
            limit=_as_int(source.get("limit"), query.limit),
            offset=_as_int(source.get("offset"), query.offset),
        )


def _as_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_list_response(data: Any) -> list[UserRecord]:
    """Extract user records; malformed rows are dropped."""

    if isinstance(data, dict):
        rows = data.get("users")
    else:
        rows = data
    if not isinstance(rows, list):
        return []
    users: list[UserRecord] = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        try:
            users.append(UserRecord.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed user row id=%s errors=%d", row.get("id"), exc.error_count())
    return users


class Pagination(BaseModel):
    can_go_previous: bool
    can_go_next: bool
    previous_offset: int
    next_offset: int


def paginate(query: ListQuery, total: Optional[int], *, is_loading: bool = False) -> Pagination:
    can_go_previous = query.offset > 0
    can_go_next = total is not None and query.offset + query.limit < total
    return Pagination(
        can_go_previous=can_go_previous and not is_loading,
        can_go_next=can_go_next and not is_loading,
        previous_offset=max(0, query.offset - query.limit),
        next_offset=query.offset + query.limit,
    )


def get_initials(value: Optional[str], default: str = "?") -> str:
    """First letters of up to two words, upper-cased."""

    source = (value or "").strip()
    if not source:
        return default
    parts = [part for part in re.split(r"\s+", source) if part]
    initials = "".join(part[0].upper() for part in parts[:2])
    return initials or default


def _to_datetime(value: Timestamp) -> Optional[datetime]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # epoch milliseconds
        try:
            parsed = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


def format_date(value: Timestamp) -> str:
    """Medium date with short time, e.g. ``Jan 5, 2025, 3:04 PM``; ``-`` if unknown."""

    parsed = _to_datetime(value)
    if parsed is None:
        return "-"
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {hour}:{parsed.minute:02d} {meridiem}"


def build_user_row(user: UserRecord) -> dict[str, Any]:
    banned = bool(user.banned)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "display_name": user.name or "Unnamed",
        "display_email": user.email or "-",
        "initials": get_initials(user.name or user.email),
        "image": user.image,
        "roles": display_roles(user.role),
        "primary_role": primary_role(user.role),
        "is_admin": is_admin(user.role),
        "banned": banned,
        "status": "Banned" if banned else "Active",
        "ban_reason": user.ban_reason,
        "ban_expires": format_date(user.ban_expires) if banned else "-",
        "created_at": format_date(user.created_at),
        "actions": [
            "change-role",
            "reset-password",
            "revoke-sessions",
            "impersonate",
            "unban" if banned else "ban",
            "remove",
        ],
    }


def build_directory_page(
    users: list[UserRecord],
    meta: ListMeta,
    query: ListQuery,
) -> dict[str, Any]:
    pagination = paginate(query, meta.total)
    return {
        "users": [build_user_row(user) for user in users],
        "meta": meta.model_dump(),
        "query": query.model_dump(),
        "pagination": pagination.model_dump(),
        "summary": f"Showing {len(users)} of {meta.total}",
        "page_size_options": list(PAGE_SIZE_OPTIONS),
        "empty_text": None if users else "No users found.",
    }
