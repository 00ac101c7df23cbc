"""Per-field save status for inline profile editing.

Each field is saved optimistically: the local value changes first, the
provider call runs, and the local value is rolled back if the call fails.
A "saved" status falls back to idle after a short delay.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .forms import ChangePasswordForm, NameForm
from .notices import format_error

DEFAULT_RESET_SECONDS = 2.2
SAVING_MESSAGE = "Saving..."
UPDATE_FAILED = "Update failed."

Clock = Callable[[], float]
# Remote update: resolves to an error object, or None on success.
RemoteCall = Callable[[Any], Awaitable[Any]]


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class FieldBusyError(RuntimeError):
    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} is already being saved")
        self.field_name = field_name


class TransientStatus:
    def __init__(self, *, reset_seconds: float = DEFAULT_RESET_SECONDS, clock: Clock = time.monotonic) -> None:
        self._reset_seconds = reset_seconds
        self._clock = clock
        self._status = SaveStatus.IDLE
        self._message: Optional[str] = None
        self._deadline: Optional[float] = None

    def _expire(self) -> None:
        if self._deadline is not None and self._clock() >= self._deadline:
            self._status = SaveStatus.IDLE
            self._message = None
            self._deadline = None

    @property
    def status(self) -> SaveStatus:
        self._expire()
        return self._status

    @property
    def message(self) -> Optional[str]:
        self._expire()
        return self._message

    def set(self, status: SaveStatus, message: Optional[str] = None) -> None:
        self._status = status
        self._message = message
        self._deadline = None

    def mark_saved(self, message: str) -> None:
        self._status = SaveStatus.SAVED
        self._message = message
        self._deadline = self._clock() + self._reset_seconds

    def clear(self) -> None:
        self.set(SaveStatus.IDLE)

    def as_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message}


@dataclass
class FieldState:
    value: Any
    committed: Any
    status: TransientStatus


@dataclass(frozen=True)
class FieldOutcome:
    field_name: str
    status: SaveStatus
    message: Optional[str]
    value: Any = None
    changed: bool = False

    @property
    def failed(self) -> bool:
        return self.status == SaveStatus.ERROR


class ProfileEditor:
    """Editing state of the signed-in operator's own account."""

    FIELDS = ("name", "image", "password")

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        image: Optional[str] = None,
        reset_seconds: float = DEFAULT_RESET_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self._reset_seconds = reset_seconds
        self._clock = clock
        self._fields: dict[str, FieldState] = {
            key: FieldState(value=None, committed=None, status=self._new_status()) for key in self.FIELDS
        }
        self.reset(name=name, image=image)

    def _new_status(self) -> TransientStatus:
        return TransientStatus(reset_seconds=self._reset_seconds, clock=self._clock)

    def reset(self, *, name: Optional[str], image: Optional[str]) -> None:
        """Reload committed values from the session and clear every status."""

        self._fields["name"].value = self._fields["name"].committed = name or ""
        self._fields["image"].value = self._fields["image"].committed = image
        for state in self._fields.values():
            state.status.clear()

    def sync(self, *, name: Optional[str], image: Optional[str]) -> None:
        """Adopt the values the provider currently reports; statuses are kept."""

        for key, current in (("name", name or ""), ("image", image)):
            state = self._fields[key]
            if state.status.status == SaveStatus.SAVING:
                continue
            state.value = state.committed = current

    def status(self, key: str) -> TransientStatus:
        return self._fields[key].status

    def value(self, key: str) -> Any:
        return self._fields[key].value

    def edit(self, key: str, value: Any) -> None:
        """Local, unsaved edit; a pending saved/error status is cleared."""

        state = self._fields[key]
        state.value = value
        if state.status.status != SaveStatus.IDLE:
            state.status.clear()

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": {"value": self._fields["name"].value, **self._fields["name"].status.as_dict()},
            "image": {"value": self._fields["image"].value, **self._fields["image"].status.as_dict()},
            "password": self._fields["password"].status.as_dict(),
        }

    def _outcome(self, key: str, *, changed: bool) -> FieldOutcome:
        state = self._fields[key]
        return FieldOutcome(
            field_name=key,
            status=state.status.status,
            message=state.status.message,
            value=state.value,
            changed=changed,
        )

    async def _commit(self, key: str, value: Any, call: RemoteCall, success_message: str) -> FieldOutcome:
        state = self._fields[key]
        previous = state.committed
        state.value = value
        state.committed = value
        state.status.set(SaveStatus.SAVING, SAVING_MESSAGE)
        try:
            error = await call(value)
        except Exception:
            state.value = state.committed = previous
            state.status.set(SaveStatus.ERROR, UPDATE_FAILED)
            raise
        if error is not None:
            state.value = state.committed = previous
            state.status.set(SaveStatus.ERROR, format_error(error, UPDATE_FAILED))
            return self._outcome(key, changed=False)
        state.status.mark_saved(success_message)
        return self._outcome(key, changed=True)

    async def save_name(self, raw: str, call: RemoteCall) -> FieldOutcome:
        state = self._fields["name"]
        if state.status.status == SaveStatus.SAVING:
            raise FieldBusyError("name")
        try:
            name = NameForm(name=raw or "").cleaned()
        except ValueError as exc:
            state.value = state.committed
            state.status.set(SaveStatus.ERROR, format_error(exc))
            return self._outcome("name", changed=False)
        if name == state.committed:
            state.value = name
            return self._outcome("name", changed=False)
        return await self._commit("name", name, call, "Saved.")

    async def save_image(self, image: Optional[str], call: RemoteCall) -> FieldOutcome:
        state = self._fields["image"]
        if state.status.status == SaveStatus.SAVING:
            raise FieldBusyError("image")
        if image == state.committed:
            return self._outcome("image", changed=False)
        return await self._commit("image", image, call, "Saved.")

    def fail_image(self, message: str) -> FieldOutcome:
        """The selected image could not be read; nothing is sent."""

        state = self._fields["image"]
        state.value = state.committed
        state.status.set(SaveStatus.ERROR, message)
        return self._outcome("image", changed=False)

    async def change_password(self, form: ChangePasswordForm, call: RemoteCall) -> FieldOutcome:
        """Validate and submit a password change.

        Raises ``FormError`` for missing fields or a confirmation mismatch; the
        field status is left untouched in that case.
        """

        state = self._fields["password"]
        if state.status.status == SaveStatus.SAVING:
            raise FieldBusyError("password")
        payload = form.cleaned()
        state.status.set(SaveStatus.SAVING, SAVING_MESSAGE)
        try:
            error = await call(payload)
        except Exception:
            state.status.set(SaveStatus.ERROR, UPDATE_FAILED)
            raise
        if error is not None:
            state.status.set(SaveStatus.ERROR, format_error(error, UPDATE_FAILED))
            return self._outcome("password", changed=False)
        state.status.mark_saved("Password updated.")
        return self._outcome("password", changed=True)


class ProfileEditorRegistry:
    """One editor per signed-in user, kept for the lifetime of the process."""

    def __init__(self, *, reset_seconds: float = DEFAULT_RESET_SECONDS, clock: Clock = time.monotonic) -> None:
        self._reset_seconds = reset_seconds
        self._clock = clock
        self._editors: dict[str, ProfileEditor] = {}

    def get(self, user_id: str, *, name: Optional[str], image: Optional[str]) -> ProfileEditor:
        editor = self._editors.get(user_id)
        if editor is None:
            editor = ProfileEditor(name=name, image=image, reset_seconds=self._reset_seconds, clock=self._clock)
            self._editors[user_id] = editor
        else:
            editor.sync(name=name, image=image)
        return editor

    def open(self, user_id: str, *, name: Optional[str], image: Optional[str]) -> ProfileEditor:
        """Opening the account dialog reloads values from the current session."""

        editor = self.get(user_id, name=name, image=image)
        editor.reset(name=name, image=image)
        return editor
