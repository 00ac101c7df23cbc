"""Operator notifications and the error-message contract."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

GENERIC_ERROR_MESSAGE = "Something went wrong."


class NoticeLevel(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    level: NoticeLevel
    message: str

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["level"] = self.level.value
        return payload

    @classmethod
    def success(cls, message: str) -> "Notice":
        return cls(NoticeLevel.SUCCESS, message)

    @classmethod
    def error(cls, error: Any) -> "Notice":
        return cls(NoticeLevel.ERROR, format_error(error))


def format_error(error: Any, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Return the message carried by ``error`` or ``fallback``."""

    if not error:
        return fallback
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
    else:
        message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return fallback
