from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from admin_console.console.field_status import (
    FieldBusyError,
    ProfileEditor,
    ProfileEditorRegistry,
    SaveStatus,
    TransientStatus,
)
from admin_console.console.forms import ChangePasswordForm, FormError
from admin_console.services.auth_admin import AuthError


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _editor(clock: FakeClock, *, name: str = "Ada", image=None) -> ProfileEditor:
    return ProfileEditor(name=name, image=image, reset_seconds=2.2, clock=clock)


def test_transient_status_resets_after_delay():
    clock = FakeClock()
    status = TransientStatus(reset_seconds=2.2, clock=clock)
    status.mark_saved("Saved.")
    assert status.status is SaveStatus.SAVED
    clock.advance(2.1)
    assert status.status is SaveStatus.SAVED
    clock.advance(0.2)
    assert status.status is SaveStatus.IDLE
    assert status.message is None


def test_transient_status_set_cancels_pending_reset():
    clock = FakeClock()
    status = TransientStatus(reset_seconds=2.2, clock=clock)
    status.mark_saved("Saved.")
    status.set(SaveStatus.ERROR, "Update failed.")
    clock.advance(10)
    assert status.status is SaveStatus.ERROR
    assert status.as_dict() == {"status": "error", "message": "Update failed."}


@pytest.mark.asyncio
async def test_save_name_success_marks_saved_then_idle():
    clock = FakeClock()
    editor = _editor(clock)
    call = AsyncMock(return_value=None)

    outcome = await editor.save_name("  Grace ", call)

    call.assert_awaited_once_with("Grace")
    assert outcome.status is SaveStatus.SAVED
    assert outcome.message == "Saved."
    assert outcome.changed is True
    assert editor.value("name") == "Grace"
    clock.advance(2.2)
    assert editor.status("name").status is SaveStatus.IDLE
    assert editor.value("name") == "Grace"


@pytest.mark.asyncio
async def test_save_name_unchanged_skips_provider():
    editor = _editor(FakeClock())
    call = AsyncMock(return_value=None)

    outcome = await editor.save_name("Ada", call)

    call.assert_not_awaited()
    assert outcome.changed is False
    assert outcome.status is SaveStatus.IDLE


@pytest.mark.asyncio
async def test_save_name_blank_reverts_without_request():
    editor = _editor(FakeClock())
    editor.edit("name", "")
    call = AsyncMock(return_value=None)

    outcome = await editor.save_name("   ", call)

    call.assert_not_awaited()
    assert outcome.status is SaveStatus.ERROR
    assert outcome.message == "Name cannot be empty."
    assert editor.value("name") == "Ada"


@pytest.mark.asyncio
async def test_save_name_rolls_back_on_provider_error():
    editor = _editor(FakeClock())
    call = AsyncMock(return_value=AuthError(message="Name is reserved", status=400))

    outcome = await editor.save_name("Grace", call)

    assert outcome.failed
    assert outcome.message == "Name is reserved"
    assert editor.value("name") == "Ada"


@pytest.mark.asyncio
async def test_save_name_error_without_message_uses_update_failed():
    editor = _editor(FakeClock())
    outcome = await editor.save_name("Grace", AsyncMock(return_value=AuthError(message=None, status=500)))
    assert outcome.message == "Update failed."


@pytest.mark.asyncio
async def test_save_name_rolls_back_when_call_raises():
    editor = _editor(FakeClock())
    call = AsyncMock(side_effect=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        await editor.save_name("Grace", call)

    assert editor.value("name") == "Ada"
    assert editor.status("name").status is SaveStatus.ERROR


@pytest.mark.asyncio
async def test_save_name_while_saving_is_rejected():
    editor = _editor(FakeClock())
    gate = asyncio.Event()

    async def _slow(_value):
        await gate.wait()
        return None

    first = asyncio.create_task(editor.save_name("Grace", _slow))
    await asyncio.sleep(0)
    assert editor.status("name").status is SaveStatus.SAVING
    # optimistic value is visible while the request is pending
    assert editor.value("name") == "Grace"

    with pytest.raises(FieldBusyError):
        await editor.save_name("Hopper", AsyncMock(return_value=None))

    gate.set()
    outcome = await first
    assert outcome.status is SaveStatus.SAVED


@pytest.mark.asyncio
async def test_save_image_and_clear():
    editor = _editor(FakeClock(), image="https://cdn.test/old.png")
    call = AsyncMock(return_value=None)

    outcome = await editor.save_image("https://cdn.test/new.png", call)
    assert outcome.changed
    assert editor.value("image") == "https://cdn.test/new.png"

    outcome = await editor.save_image(None, call)
    assert outcome.changed
    assert editor.value("image") is None
    assert call.await_count == 2


@pytest.mark.asyncio
async def test_save_image_failure_restores_previous():
    editor = _editor(FakeClock(), image="https://cdn.test/old.png")
    outcome = await editor.save_image(
        "https://cdn.test/new.png", AsyncMock(return_value=AuthError(message=None, status=500))
    )
    assert outcome.failed
    assert outcome.message == "Update failed."
    assert editor.value("image") == "https://cdn.test/old.png"


def test_fail_image_sets_error_without_request():
    editor = _editor(FakeClock(), image="https://cdn.test/old.png")
    outcome = editor.fail_image("Failed to read the selected image.")
    assert outcome.failed
    assert editor.value("image") == "https://cdn.test/old.png"


@pytest.mark.asyncio
async def test_change_password_form_error_leaves_status_untouched():
    editor = _editor(FakeClock())
    call = AsyncMock(return_value=None)

    with pytest.raises(FormError):
        await editor.change_password(ChangePasswordForm(current_password="a", new_password="b"), call)

    call.assert_not_awaited()
    assert editor.status("password").status is SaveStatus.IDLE


@pytest.mark.asyncio
async def test_change_password_success_and_failure():
    clock = FakeClock()
    editor = _editor(clock)
    form = ChangePasswordForm(current_password="old", new_password="new", confirm_password="new")

    outcome = await editor.change_password(form, AsyncMock(return_value=None))
    assert outcome.message == "Password updated."
    clock.advance(3)
    assert editor.status("password").status is SaveStatus.IDLE

    outcome = await editor.change_password(
        form, AsyncMock(return_value=AuthError(message="Invalid password", status=400))
    )
    assert outcome.failed
    assert outcome.message == "Invalid password"


def test_edit_clears_pending_status():
    editor = _editor(FakeClock())
    editor.status("name").set(SaveStatus.ERROR, "Update failed.")
    editor.edit("name", "Gr")
    assert editor.status("name").status is SaveStatus.IDLE
    assert editor.value("name") == "Gr"


def test_registry_open_reloads_values_and_clears_statuses():
    registry = ProfileEditorRegistry(reset_seconds=2.2, clock=FakeClock())
    editor = registry.get("u1", name="Ada", image=None)
    editor.edit("name", "draft")
    editor.status("password").set(SaveStatus.ERROR, "Invalid password")

    reopened = registry.open("u1", name="Ada L.", image="https://cdn.test/a.png")

    assert reopened is editor
    snapshot = reopened.snapshot()
    assert snapshot["name"] == {"value": "Ada L.", "status": "idle", "message": None}
    assert snapshot["image"]["value"] == "https://cdn.test/a.png"
    assert snapshot["password"] == {"status": "idle", "message": None}


def test_registry_get_adopts_current_session_values():
    registry = ProfileEditorRegistry(reset_seconds=2.2, clock=FakeClock())
    editor = registry.get("u1", name="Ada", image=None)
    editor.status("name").mark_saved("Saved.")

    again = registry.get("u1", name="Renamed", image="https://cdn.test/a.png")

    assert again is editor
    assert editor.value("name") == "Renamed"
    assert editor.value("image") == "https://cdn.test/a.png"
    # a pending status survives the refresh
    assert editor.status("name").status is SaveStatus.SAVED


@pytest.mark.asyncio
async def test_sync_leaves_field_being_saved_alone():
    editor = _editor(FakeClock())
    gate = asyncio.Event()

    async def _slow(_value):
        await gate.wait()
        return None

    pending = asyncio.create_task(editor.save_name("Grace", _slow))
    await asyncio.sleep(0)
    editor.sync(name="Ada", image=None)
    assert editor.value("name") == "Grace"

    gate.set()
    await pending
    assert editor.value("name") == "Grace"
