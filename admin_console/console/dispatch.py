"""Admin action dispatch: one request per action, no duplicate submissions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .notices import Notice


@dataclass(frozen=True)
class AdminAction:
    key: str
    loading: str
    success: str
    reload_directory: bool = False
    reset_offset: bool = False
    redirect: Optional[str] = None
    reload_page: bool = False

    def follow_up(self) -> dict[str, Any]:
        return {
            "reload_directory": self.reload_directory,
            "reset_offset": self.reset_offset,
            "redirect": self.redirect,
            "reload_page": self.reload_page,
        }


ACTIONS: dict[str, AdminAction] = {
    entry.key: entry
    for entry in (
        AdminAction("create-user", "Creating user...", "User created.", reload_directory=True, reset_offset=True),
        AdminAction("set-role", "Updating role...", "Role updated.", reload_directory=True),
        AdminAction("set-password", "Resetting password...", "Password updated."),
        AdminAction("ban-user", "Banning user...", "User banned.", reload_directory=True),
        AdminAction("unban-user", "Removing ban...", "Ban removed.", reload_directory=True),
        AdminAction("revoke-sessions", "Revoking sessions...", "All sessions revoked."),
        AdminAction("impersonate", "Starting impersonation...", "Impersonation started.", redirect="/dashboard"),
        AdminAction("stop-impersonating", "Stopping impersonation...", "Impersonation ended.", reload_page=True),
        AdminAction("remove-user", "Removing user...", "User removed.", reload_directory=True),
        AdminAction("sign-up", "Creating account...", "Account created successfully.", redirect="/dashboard"),
    )
}


def action_catalog() -> dict[str, dict[str, str]]:
    """Loading/success texts so the frontend can show the pending toast."""

    return {key: {"loading": entry.loading, "success": entry.success} for key, entry in ACTIONS.items()}


class ActionInFlightError(RuntimeError):
    def __init__(self, action: str) -> None:
        super().__init__(f"{action} is already in progress")
        self.action = action


@dataclass(frozen=True)
class ActionOutcome:
    action: str
    notice: Notice
    result: Any = None
    follow_up: Optional[dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.follow_up is not None

    @property
    def data(self) -> Any:
        return getattr(self.result, "data", None)


class ActionDispatcher:
    """Runs admin actions, rejecting a repeat while the first is outstanding."""

    def __init__(self) -> None:
        self._in_flight: set[tuple[str, str]] = set()

    def is_busy(self, action: str, *, scope: str = "") -> bool:
        return (scope, action) in self._in_flight

    async def dispatch(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        *,
        scope: str = "",
    ) -> ActionOutcome:
        entry = ACTIONS[action]
        key = (scope, action)
        if key in self._in_flight:
            raise ActionInFlightError(action)
        self._in_flight.add(key)
        try:
            result = await call()
        finally:
            self._in_flight.discard(key)

        error = getattr(result, "error", None)
        if error is not None:
            return ActionOutcome(action=action, notice=Notice.error(error), result=result)
        return ActionOutcome(
            action=action,
            notice=Notice.success(entry.success),
            result=result,
            follow_up=entry.follow_up(),
        )
