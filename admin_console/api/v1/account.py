"""Account self-service (name, avatar, password) and self sign-up."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from admin_console.console.dispatch import ActionDispatcher, ActionInFlightError
from admin_console.console.field_status import FieldBusyError, FieldOutcome, ProfileEditor, ProfileEditorRegistry
from admin_console.console.forms import ChangePasswordForm, FormError, ImageForm, NameForm, SignUpForm
from admin_console.console.notices import Notice
from admin_console.console.session import build_session_view
from admin_console.services.auth_admin import AuthAdminClient
from admin_console.settings.config import get_settings

from .base import create_response
from .deps import Operator, get_auth_admin, get_dispatcher, get_profile_editors, relay_cookies, require_operator

router = APIRouter(tags=["account"])
logger = logging.getLogger(__name__)


def _editor_for(operator: Operator, registry: ProfileEditorRegistry) -> ProfileEditor:
    user = operator.session.user
    return registry.get(user.id, name=user.name, image=user.image)


def _busy(exc: FieldBusyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"code": 409, "msg": str(exc), "data": None},
    )


def _field_response(outcome: FieldOutcome, editor: ProfileEditor) -> dict[str, Any]:
    data = {
        "field": outcome.field_name,
        "status": outcome.status.value,
        "message": outcome.message,
        "changed": outcome.changed,
        "editor": editor.snapshot(),
    }
    if outcome.failed:
        return create_response(code=400, msg=outcome.message or "Update failed.", data=data)
    return create_response(data=data, msg=outcome.message or "ok")


@router.get("/account", response_model=None)
async def get_account(
    reload: bool = Query(False, description="Reload values from the session and clear statuses"),  # noqa: B008
    operator: Operator = Depends(require_operator),  # noqa: B008
    registry: ProfileEditorRegistry = Depends(get_profile_editors),  # noqa: B008
) -> dict[str, Any]:
    user = operator.session.user
    if reload:
        editor = registry.open(user.id, name=user.name, image=user.image)
    else:
        editor = _editor_for(operator, registry)
    data = {"session": build_session_view(operator.session), "editor": editor.snapshot()}
    return create_response(data=data, msg="ok")


@router.post("/account/name", response_model=None)
async def update_account_name(
    payload: NameForm,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    registry: ProfileEditorRegistry = Depends(get_profile_editors),  # noqa: B008
) -> dict[str, Any]:
    editor = _editor_for(operator, registry)

    async def _update(name: str) -> Any:
        result = await auth_admin.update_user(name=name, credentials=operator.credentials)
        return result.error

    try:
        outcome = await editor.save_name(payload.name, _update)
    except FieldBusyError as exc:
        raise _busy(exc) from exc
    return _field_response(outcome, editor)


@router.post("/account/image", response_model=None)
async def update_account_image(
    payload: ImageForm,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    registry: ProfileEditorRegistry = Depends(get_profile_editors),  # noqa: B008
) -> dict[str, Any]:
    editor = _editor_for(operator, registry)
    try:
        image = payload.cleaned()
    except FormError as exc:
        return _field_response(editor.fail_image(exc.message), editor)

    async def _update(value: Any) -> Any:
        if value is None:
            result = await auth_admin.update_user(clear_image=True, credentials=operator.credentials)
        else:
            result = await auth_admin.update_user(image=value, credentials=operator.credentials)
        return result.error

    try:
        outcome = await editor.save_image(image, _update)
    except FieldBusyError as exc:
        raise _busy(exc) from exc
    return _field_response(outcome, editor)


@router.post("/account/password", response_model=None)
async def change_account_password(
    payload: ChangePasswordForm,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    registry: ProfileEditorRegistry = Depends(get_profile_editors),  # noqa: B008
) -> dict[str, Any]:
    editor = _editor_for(operator, registry)

    async def _update(values: dict[str, Any]) -> Any:
        result = await auth_admin.change_password(credentials=operator.credentials, **values)
        return result.error

    try:
        outcome = await editor.change_password(payload, _update)
    except FormError as exc:
        # inline form error; the field status is untouched
        return create_response(
            code=400,
            msg=exc.message,
            data={"field": "password", "form_error": exc.message, "editor": editor.snapshot()},
        )
    except FieldBusyError as exc:
        raise _busy(exc) from exc
    if outcome.changed:
        logger.info("Password changed user_id=%s", operator.user_id)
    return _field_response(outcome, editor)


@router.post("/sign-up", response_model=None)
async def sign_up(
    payload: SignUpForm,
    response: Response,
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    try:
        values = payload.cleaned()
    except FormError as exc:
        return create_response(code=400, msg=exc.message, data={"notice": Notice.error(exc).as_dict()})

    settings = get_settings()
    try:
        outcome = await dispatcher.dispatch(
            "sign-up",
            lambda: auth_admin.sign_up_email(callback_url=settings.sign_up_callback_url, **values),
            scope=values["email"].lower(),
        )
    except ActionInFlightError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": 409, "msg": str(exc), "data": None},
        ) from exc

    relay_cookies(response, outcome.result)
    if not outcome.ok:
        data = {"notice": outcome.notice.as_dict(), "follow_up": None}
        return create_response(code=int(outcome.result.error.status or 502), msg=outcome.notice.message, data=data)
    follow_up = {**(outcome.follow_up or {}), "redirect": settings.sign_up_callback_url}
    data = {"notice": outcome.notice.as_dict(), "follow_up": follow_up}
    return create_response(data=data, msg=outcome.notice.message)
