from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from admin_console.console.directory import (
    ListMeta,
    ListQuery,
    build_directory_page,
    build_user_row,
    format_date,
    get_initials,
    paginate,
    parse_list_response,
    UserRecord,
)


def test_list_query_defaults_map_to_provider_params():
    params = ListQuery().to_params()
    assert params == {
        "searchField": "email",
        "sortBy": "name",
        "sortDirection": "desc",
        "limit": 20,
        "offset": 0,
    }


def test_list_query_banned_filter_and_search():
    params = ListQuery(search_value="  ada ", search_field="name", filter_banned=True).to_params()
    assert params["searchValue"] == "ada"
    assert params["searchField"] == "name"
    assert params["filterField"] == "banned"
    assert params["filterOperator"] == "eq"
    assert params["filterValue"] == "true"

    params = ListQuery(filter_banned=False).to_params()
    assert params["filterValue"] == "false"
    assert "searchValue" not in ListQuery(search_value="   ").to_params()


def test_list_query_apply_returns_new_query():
    query = ListQuery(offset=40)
    changed = query.apply(offset=0, limit=50)
    assert query.offset == 40
    assert changed.offset == 0
    assert changed.limit == 50


def test_list_query_rejects_out_of_range_limit():
    with pytest.raises(ValidationError):
        ListQuery(limit=0)
    with pytest.raises(ValidationError):
        ListQuery(offset=-1)


@pytest.mark.parametrize(
    "offset,limit,total,can_prev,can_next",
    [
        (0, 20, 0, False, False),
        (0, 20, 20, False, False),
        (0, 20, 21, False, True),
        (20, 20, 40, True, False),
        (20, 20, 41, True, True),
    ],
)
def test_paginate_boundaries(offset, limit, total, can_prev, can_next):
    pagination = paginate(ListQuery(offset=offset, limit=limit), total)
    assert pagination.can_go_previous is can_prev
    assert pagination.can_go_next is can_next


def test_paginate_offsets_and_loading_disables_navigation():
    pagination = paginate(ListQuery(offset=10, limit=20), 100)
    assert pagination.previous_offset == 0
    assert pagination.next_offset == 30

    loading = paginate(ListQuery(offset=20, limit=20), 100, is_loading=True)
    assert loading.can_go_previous is False
    assert loading.can_go_next is False


def test_paginate_unknown_total_blocks_next():
    assert paginate(ListQuery(), None).can_go_next is False


def test_parse_list_response_skips_malformed_rows():
    users = parse_list_response(
        {"users": [{"id": "u1", "email": "a@example.com"}, {"email": "no-id@example.com"}, "junk"], "total": 3}
    )
    assert [user.id for user in users] == ["u1"]
    assert parse_list_response(None) == []
    assert parse_list_response({"users": "nope"}) == []


def test_list_meta_falls_back_to_query():
    query = ListQuery(limit=10, offset=30)
    meta = ListMeta.from_response({"users": [], "total": "42"}, query)
    assert meta.total == 42
    assert meta.limit == 10
    assert meta.offset == 30
    assert ListMeta.from_response(None, query).total == 0


def test_get_initials():
    assert get_initials("Ada Lovelace") == "AL"
    assert get_initials("ada byron lovelace") == "AB"
    assert get_initials("ada@example.com") == "A"
    assert get_initials("   ") == "?"
    assert get_initials(None, default="U") == "U"


def test_format_date_variants():
    assert format_date("2025-01-05T15:04:00Z") == "Jan 5, 2025, 3:04 PM"
    assert format_date(1736089440000) == "Jan 5, 2025, 3:04 PM"
    assert format_date(datetime(2025, 1, 5, 0, 7, tzinfo=timezone.utc)) == "Jan 5, 2025, 12:07 AM"
    assert format_date(None) == "-"
    assert format_date("not a date") == "-"


def test_build_user_row_for_banned_user():
    user = UserRecord.model_validate(
        {
            "id": "u1",
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "role": "user,admin",
            "banned": True,
            "banReason": "spam",
            "banExpires": "2025-01-05T15:04:00Z",
            "createdAt": "2024-12-31T23:59:00Z",
        }
    )
    row = build_user_row(user)
    assert row["status"] == "Banned"
    assert row["roles"] == ["user", "admin"]
    assert row["is_admin"] is True
    assert row["primary_role"] == "user"
    assert row["ban_reason"] == "spam"
    assert row["ban_expires"] == "Jan 5, 2025, 3:04 PM"
    assert row["created_at"] == "Dec 31, 2024, 11:59 PM"
    assert "unban" in row["actions"]
    assert "ban" not in row["actions"]


def test_build_user_row_placeholders():
    row = build_user_row(UserRecord(id="u2"))
    assert row["display_name"] == "Unnamed"
    assert row["display_email"] == "-"
    assert row["initials"] == "?"
    assert row["roles"] == ["user"]
    assert row["status"] == "Active"
    assert row["primary_role"] == "user"
    assert row["ban_expires"] == "-"
    assert row["created_at"] == "-"
    assert "ban" in row["actions"]


def test_build_directory_page_summary_and_empty_text():
    query = ListQuery()
    empty = build_directory_page([], ListMeta(total=0), query)
    assert empty["summary"] == "Showing 0 of 0"
    assert empty["empty_text"] == "No users found."
    assert empty["page_size_options"] == [10, 20, 30, 40, 50]

    users = [UserRecord(id="u1"), UserRecord(id="u2")]
    page = build_directory_page(users, ListMeta(total=25), query)
    assert page["summary"] == "Showing 2 of 25"
    assert page["empty_text"] is None
    assert page["pagination"]["can_go_next"] is True


def test_parse_list_response_skips_rows_with_wrong_field_types():
    users = parse_list_response(
        {
            "users": [
                {"id": "u1", "name": "Ada", "email": "ada@example.com"},
                {"id": "u2", "name": 42},
                {"id": "u3", "banned": "sometimes"},
            ],
            "total": 3,
        }
    )
    assert [user.id for user in users] == ["u1"]


def test_admin_row_preselects_admin_role():
    row = build_user_row(UserRecord(id="u1", role="admin,user"))
    assert row["primary_role"] == "admin"
