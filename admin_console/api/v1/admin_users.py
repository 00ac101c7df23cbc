"""Admin: user directory and account actions (proxied to the auth provider's admin API)."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from admin_console.console.directory import (
    ListMeta,
    ListQuery,
    build_directory_page,
    parse_list_response,
)
from admin_console.console.dispatch import ActionDispatcher, ActionInFlightError, action_catalog
from admin_console.console.forms import BanForm, CreateUserForm, FormError, SetPasswordForm, SetRoleForm
from admin_console.console.notices import Notice, format_error
from admin_console.console.session import ADMIN_ROLE_WARNING
from admin_console.services.auth_admin import AuthAdminClient
from admin_console.settings.config import get_settings

from .base import create_response
from .deps import Operator, get_auth_admin, get_dispatcher, relay_cookies, require_operator

router = APIRouter(prefix="/admin", tags=["admin-users"])
logger = logging.getLogger(__name__)


def _form_error(exc: FormError) -> dict[str, Any]:
    return create_response(code=400, msg=exc.message, data={"notice": Notice.error(exc).as_dict()})


async def _run_action(
    action: str,
    call: Callable[[], Awaitable[Any]],
    *,
    operator: Operator,
    dispatcher: ActionDispatcher,
    response: Response,
    target_user_id: Optional[str] = None,
) -> dict[str, Any]:
    try:
        outcome = await dispatcher.dispatch(action, call, scope=operator.user_id)
    except ActionInFlightError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": 409, "msg": str(exc), "data": None},
        ) from exc

    relay_cookies(response, outcome.result)
    data = {"notice": outcome.notice.as_dict(), "follow_up": outcome.follow_up, "result": outcome.data}
    if not outcome.ok:
        error = outcome.result.error
        logger.info(
            "Admin action failed action=%s operator=%s target=%s status=%s",
            action,
            operator.user_id,
            target_user_id,
            error.status,
        )
        return create_response(code=int(error.status or 502), msg=outcome.notice.message, data=data)

    logger.info("Admin action ok action=%s operator=%s target=%s", action, operator.user_id, target_user_id)
    return create_response(data=data, msg=outcome.notice.message)


@router.get("/users", response_model=None)
async def list_users(
    search_value: str = Query("", description="Free-text search"),  # noqa: B008
    search_field: Literal["email", "name"] = Query("email"),  # noqa: B008
    sort_by: Literal["name", "email"] = Query("name"),  # noqa: B008
    sort_direction: Literal["asc", "desc"] = Query("desc"),  # noqa: B008
    limit: Optional[int] = Query(None, ge=1, le=100, description="Page size"),  # noqa: B008
    offset: int = Query(0, ge=0),  # noqa: B008
    banned: Optional[bool] = Query(None, description="Only banned (true) or only active (false) users"),  # noqa: B008
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
) -> dict[str, Any]:
    query = ListQuery(
        search_value=search_value,
        search_field=search_field,
        sort_by=sort_by,
        sort_direction=sort_direction,
        limit=limit or get_settings().directory_default_page_size,
        offset=offset,
        filter_banned=banned,
    )
    result = await auth_admin.list_users(params=query.to_params(), credentials=operator.credentials)
    if result.error is not None:
        message = format_error(result.error)
        return create_response(
            code=int(result.error.status or 502),
            msg=message,
            data={"notice": Notice.error(result.error).as_dict(), "query": query.model_dump()},
        )

    users = parse_list_response(result.data)
    meta = ListMeta.from_response(result.data, query)
    page = build_directory_page(users, meta, query)
    page["is_admin"] = operator.session.is_admin
    page["admin_warning"] = None if operator.session.is_admin else ADMIN_ROLE_WARNING
    page["actions"] = action_catalog()
    return create_response(data=page, msg="ok")


@router.post("/users", response_model=None)
async def create_user(
    payload: CreateUserForm,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    try:
        values = payload.cleaned()
    except FormError as exc:
        return _form_error(exc)

    return await _run_action(
        "create-user",
        lambda: auth_admin.create_user(credentials=operator.credentials, **values),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
    )


@router.post("/users/{user_id}/role", response_model=None)
async def set_user_role(
    user_id: str,
    payload: SetRoleForm,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    try:
        role = payload.cleaned()
    except FormError as exc:
        return _form_error(exc)

    return await _run_action(
        "set-role",
        lambda: auth_admin.set_role(user_id=user_id, role=role, credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/password", response_model=None)
async def set_user_password(
    user_id: str,
    payload: SetPasswordForm,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    try:
        new_password = payload.cleaned()
    except FormError as exc:
        return _form_error(exc)

    return await _run_action(
        "set-password",
        lambda: auth_admin.set_user_password(
            user_id=user_id, new_password=new_password, credentials=operator.credentials
        ),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/ban", response_model=None)
async def ban_user(
    user_id: str,
    response: Response,
    payload: Optional[BanForm] = None,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    values = (payload or BanForm()).cleaned()
    return await _run_action(
        "ban-user",
        lambda: auth_admin.ban_user(user_id=user_id, credentials=operator.credentials, **values),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/unban", response_model=None)
async def unban_user(
    user_id: str,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    return await _run_action(
        "unban-user",
        lambda: auth_admin.unban_user(user_id=user_id, credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/revoke-sessions", response_model=None)
async def revoke_user_sessions(
    user_id: str,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    return await _run_action(
        "revoke-sessions",
        lambda: auth_admin.revoke_user_sessions(user_id=user_id, credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/impersonate", response_model=None)
async def impersonate_user(
    user_id: str,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    return await _run_action(
        "impersonate",
        lambda: auth_admin.impersonate_user(user_id=user_id, credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/users/{user_id}/remove", response_model=None)
async def remove_user(
    user_id: str,
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    return await _run_action(
        "remove-user",
        lambda: auth_admin.remove_user(user_id=user_id, credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
        target_user_id=user_id,
    )


@router.post("/stop-impersonating", response_model=None)
async def stop_impersonating(
    response: Response,
    operator: Operator = Depends(require_operator),  # noqa: B008
    auth_admin: AuthAdminClient = Depends(get_auth_admin),  # noqa: B008
    dispatcher: ActionDispatcher = Depends(get_dispatcher),  # noqa: B008
) -> dict[str, Any]:
    return await _run_action(
        "stop-impersonating",
        lambda: auth_admin.stop_impersonating(credentials=operator.credentials),
        operator=operator,
        dispatcher=dispatcher,
        response=response,
    )
