"""組織單位參與度計算的單元測試。"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from usage_analytics.engine.models.records import OrgUnit, OrgUnitRef, UserDirectoryEntry, VisitEvent
from usage_analytics.engine.transforms.district import (
    calculate_district_engagement,
    is_member,
    trailing_weeks,
    units_at_level,
)

AS_OF = datetime(2024, 6, 12, 12, 0, tzinfo=timezone.utc)  # 週三


def _member(username: str, unit_id: str, last_login=None, path=None) -> UserDirectoryEntry:
    return UserDirectoryEntry(
        id=username,
        username=username,
        last_login=last_login,
        organisation_units=[OrgUnitRef(id=unit_id, path=path)],
    )


def _unit(unit_id: str, name: str = "", level: int = 2, children=None) -> OrgUnit:
    return OrgUnit(
        id=unit_id,
        display_name=name or unit_id,
        path=f"/root/{unit_id}",
        level=level,
        children=children or [],
    )


def test_half_active_district() -> None:
    """一半使用者曾登入 → 50%，最後活動為最近登入日。"""

    directory = [
        _member("u1", "north", "2024-06-10T08:00:00Z"),
        _member("u2", "north"),
    ]
    (row,) = calculate_district_engagement([_unit("north", "North")], directory, AS_OF)

    assert row.org_unit_id == "north"
    assert row.org_unit_name == "North"
    assert (row.total_users, row.active_users) == (2, 1)
    assert row.access_percentage == "50%"
    assert row.last_activity == "2024-06-10"
    assert row.is_consistently_active is False
    assert row.dashboard_views == 3


def test_empty_district_reports_never() -> None:
    """沒有成員的單位：0%、Never、非連續活躍。"""

    (row,) = calculate_district_engagement([_unit("south")], [_member("u1", "north")], AS_OF)

    assert (row.total_users, row.active_users) == (0, 0)
    assert row.access_percentage == "0%"
    assert row.last_activity == "Never"
    assert row.is_consistently_active is False
    assert row.active_weeks == 0
    assert row.dashboard_views == 0


def test_no_units_yields_empty_list() -> None:
    assert calculate_district_engagement([], [_member("u1", "north")], AS_OF) == []


def test_membership_rules() -> None:
    """id 相同、path 段落、children 子樹都算；字串包含不算。"""

    unit = _unit("north", children=[_unit("n1", level=3)])

    assert is_member(_member("a", "north"), unit)
    assert is_member(_member("b", "x9", path="/root/north/x9"), unit)
    assert is_member(_member("c", "n1"), unit)
    assert not is_member(_member("d", "northwest", path="/root/northwest"), unit)
    assert not is_member(_member("e", "nor"), unit)


def test_trailing_weeks_are_complete_sunday_weeks() -> None:
    windows = trailing_weeks(AS_OF, "UTC")

    assert windows == [
        (date(2024, 5, 12), date(2024, 5, 18)),
        (date(2024, 5, 19), date(2024, 5, 25)),
        (date(2024, 5, 26), date(2024, 6, 1)),
        (date(2024, 6, 2), date(2024, 6, 8)),
    ]


def test_consistent_activity_needs_every_week() -> None:
    """近 4 個完整週每週都要有成員活動。"""

    logins = ["2024-05-13T09:00:00Z", "2024-05-20T09:00:00Z", "2024-05-27T09:00:00Z", "2024-06-03T09:00:00Z"]
    directory = [_member(f"u{i}", "north", ts) for i, ts in enumerate(logins)]

    (row,) = calculate_district_engagement([_unit("north")], directory, AS_OF)
    assert row.is_consistently_active is True
    assert row.active_weeks == 4
    assert row.access_percentage == "100%"

    missing_week = [m for m in directory if m.username != "u1"]
    (row,) = calculate_district_engagement([_unit("north")], missing_week, AS_OF)
    assert row.is_consistently_active is False
    assert row.active_weeks == 3

    # 本週的登入不算在近 4 個完整週內
    current_week = missing_week + [_member("late", "north", "2024-06-10T09:00:00Z")]
    (row,) = calculate_district_engagement([_unit("north")], current_week, AS_OF)
    assert row.active_weeks == 3
    assert row.last_activity == "2024-06-10"


def test_visits_fill_missing_weeks() -> None:
    """有提供造訪事件時，成員的造訪也算活動。"""

    logins = ["2024-05-13T09:00:00Z", "2024-05-27T09:00:00Z", "2024-06-03T09:00:00Z"]
    directory = [_member(f"u{i}", "north", ts) for i, ts in enumerate(logins)]
    visits = [
        VisitEvent(timestamp=datetime(2024, 5, 21, 9, 0, tzinfo=timezone.utc), username="u0"),
        VisitEvent(timestamp=datetime(2024, 5, 22, 9, 0, tzinfo=timezone.utc), username="outsider"),
    ]

    (without,) = calculate_district_engagement([_unit("north")], directory, AS_OF)
    (with_visits,) = calculate_district_engagement([_unit("north")], directory, AS_OF, visits=visits)

    assert without.is_consistently_active is False
    assert with_visits.is_consistently_active is True


def test_view_estimate_can_be_disabled() -> None:
    directory = [_member("u1", "north", "2024-06-10T08:00:00Z"), _member("u2", "north", "2024-06-01T08:00:00Z")]

    (estimated,) = calculate_district_engagement([_unit("north")], directory, AS_OF, views_per_active_user=5)
    (disabled,) = calculate_district_engagement([_unit("north")], directory, AS_OF, estimate_views=False)

    assert estimated.dashboard_views == 10
    assert disabled.dashboard_views is None


def test_last_activity_uses_local_date() -> None:
    directory = [_member("u1", "north", "2024-06-10T20:00:00Z")]

    (row,) = calculate_district_engagement([_unit("north")], directory, AS_OF, timezone="Asia/Taipei")

    assert row.last_activity == "2024-06-11"


def test_units_at_level_flattens_tree() -> None:
    tree = [
        _unit(
            "root",
            level=1,
            children=[_unit("a"), _unit("b", children=[_unit("c", level=3)])],
        ),
        _unit("a"),
    ]

    assert [u.id for u in units_at_level(tree, 2)] == ["a", "b"]
    assert [u.id for u in units_at_level(tree, 3)] == ["c"]
    assert [u.id for u in units_at_level(tree, None)] == ["root", "a", "b", "c"]
    assert units_at_level(tree, 9) == []


def test_calculate_rejects_bad_arguments() -> None:
    with pytest.raises(TypeError):
        calculate_district_engagement(None, [], AS_OF)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        calculate_district_engagement([], [], datetime(2024, 6, 12))
