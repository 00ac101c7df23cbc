"""Role normalization for display and membership checks."""

from __future__ import annotations

from typing import Any, Iterable

ADMIN_ROLE = "admin"
USER_ROLE = "user"


def normalize_roles(value: Any) -> list[str]:
    """Normalize a role field into a list of trimmed, non-empty strings.

    The provider may send a list, a comma separated string, or nothing.
    """

    if not value:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        parts = value
    else:
        parts = [value]
    roles: list[str] = []
    for part in parts:
        if part is None:
            continue
        text = str(part).strip()
        if text:
            roles.append(text)
    return roles


def is_admin(value: Any) -> bool:
    return ADMIN_ROLE in normalize_roles(value)


def primary_role(value: Any) -> str:
    """Role preselected in the change-role form."""

    roles = normalize_roles(value)
    return ADMIN_ROLE if roles and roles[0] == ADMIN_ROLE else USER_ROLE


def display_roles(value: Any) -> list[str]:
    return normalize_roles(value) or [USER_ROLE]
