"""報表 API 路由測試。"""

from __future__ import annotations

from fastapi.testclient import TestClient

from usage_analytics.backend.main import create_app
from usage_analytics.config.settings import Settings

client = TestClient(create_app())

AS_OF = "2024-06-12T12:00:00Z"

ROWS = [
    ["2024-06-03T09:00:00Z", "alice"],
    ["2024-06-03T10:00:00Z", "alice"],
    {"timestamp": "2024-06-04T11:00:00Z", "username": "ghost"},
]

DIRECTORY = [
    {
        "id": "u1",
        "firstName": "Alice",
        "surname": "Chen",
        "userCredentials": {"username": "alice", "lastLogin": "2024-06-10T08:00:00Z"},
        "organisationUnits": [{"id": "north", "path": "/root/north"}],
    },
    {"id": "u2", "username": "bob", "organisationUnits": [{"id": "north", "path": "/root/north"}]},
]


def test_health() -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_dashboard_report() -> None:
    resp = client.post(
        "/api/reports/dashboard",
        json={
            "as_of": AS_OF,
            "dashboard_id": "d1",
            "start_date": "2024-06-01",
            "end_date": "2024-06-30",
            "rows": ROWS,
            "directory": DIRECTORY,
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"]["total_visits"] == 3
    assert body["stats"]["top_users"][0] == {"username": "alice", "visits": 2, "first_name": "Alice", "surname": "Chen"}
    assert body["stats"]["top_day"] == {"date": "2024-06-03", "count": 2}
    assert [u["matched"] for u in body["linked_users"]] == [True, False]


def test_dashboard_report_without_window() -> None:
    resp = client.post("/api/reports/dashboard", json={"rows": ROWS, "directory": DIRECTORY})
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"]["total_visits"] == 0
    assert body["stats"]["top_users"] == []
    assert body["linked_users"] == []


def test_dashboard_report_rejects_reversed_window() -> None:
    resp = client.post(
        "/api/reports/dashboard",
        json={"start_date": "2024-06-30", "end_date": "2024-06-01", "rows": ROWS},
    )
    assert resp.status_code == 422


def test_district_report() -> None:
    resp = client.post(
        "/api/reports/districts",
        json={
            "as_of": AS_OF,
            "start_date": "2024-06-01",
            "end_date": "2024-06-30",
            "org_unit_level": 2,
            "org_units": [["North", "/root/north"], ["Root", "/root"]],
            "directory": DIRECTORY,
        },
    )
    assert resp.status_code == 200
    (north,) = resp.json()["districts"]
    assert north["org_unit_id"] == "north"
    assert north["total_users"] == 2
    assert north["access_percentage"] == "50%"
    assert north["last_activity"] == "2024-06-10"
    assert north["dashboard_views"] == 3


def test_user_engagement() -> None:
    resp = client.post(
        "/api/reports/user-engagement",
        json={"as_of": AS_OF, "directory": DIRECTORY},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [u["access_recency"] for u in body["users"]] == ["lastWeek", "never"]
    assert body["summary"]["total"] == 2
    assert body["summary"]["never_percent"] == 50


def test_user_engagement_rejects_unknown_timezone() -> None:
    resp = client.post(
        "/api/reports/user-engagement",
        json={"as_of": AS_OF, "timezone": "Mars/Olympus", "directory": DIRECTORY},
    )
    assert resp.status_code == 422


def test_app_settings_reach_report_defaults() -> None:
    """create_app 傳入的設定會成為報表預設值。"""

    custom = TestClient(create_app(Settings.model_validate({"engine": {"top_n": 1}, "api": {"prefix": "/v2"}})))

    resp = custom.post(
        "/v2/reports/dashboard",
        json={
            "as_of": AS_OF,
            "start_date": "2024-06-01",
            "end_date": "2024-06-30",
            "rows": ROWS,
            "directory": DIRECTORY,
        },
    )
    assert resp.status_code == 200
    assert [u["username"] for u in resp.json()["stats"]["top_users"]] == ["alice"]
