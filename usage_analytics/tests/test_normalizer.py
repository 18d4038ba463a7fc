"""造訪列正規化與區間篩選的單元測試。"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from usage_analytics.engine.transforms.normalizer import filter_window, normalize_visits
from usage_analytics.engine.utils.timeutils import parse_instant, week_end, week_start


def test_malformed_rows_are_counted_not_raised() -> None:
    """無效列只計數，不拋錯。"""

    rows = [
        ("2024-01-01T10:00", "alice"),
        ("not-a-date", "alice"),
        ("2024-01-01T10:00", ""),
        ("2024-01-01T10:00", "   "),
        ("2024-01-01T10:00", None),
        (None, "bob"),
        ("2024-01-01T10:00",),
        42,
        {"timestamp": "2024-01-02T09:00:00Z", "username": " carol "},
    ]
    result = normalize_visits(rows)

    assert result.skipped == 7
    assert [e.username for e in result.events] == ["alice", "carol"]


def test_naive_timestamps_use_given_timezone() -> None:
    """無時區時間視為當地時間；有時區的時間換算到當地。"""

    result = normalize_visits(
        [("2024-01-01T23:30", "alice"), ("2024-01-01T23:30:00Z", "bob")],
        timezone="Asia/Taipei",
    )
    alice, bob = result.events

    assert alice.timestamp.hour == 23
    assert alice.timestamp.utcoffset().total_seconds() == 8 * 3600
    assert bob.timestamp.date() == date(2024, 1, 2)
    assert bob.timestamp == datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)


def test_rows_must_be_a_sequence() -> None:
    """傳入錯誤型別屬於呼叫端錯誤。"""

    with pytest.raises(TypeError):
        normalize_visits("2024-01-01,alice")
    with pytest.raises(ValueError):
        normalize_visits([], timezone="Mars/Olympus")


def test_filter_window_is_inclusive_on_local_dates() -> None:
    """區間頭尾兩天都包含，以當地日期判斷。"""

    events = normalize_visits(
        [
            ("2024-01-31T23:59", "a"),
            ("2024-02-01T00:00", "b"),
            ("2024-02-29T23:59", "c"),
            ("2024-03-01T00:00", "d"),
        ]
    ).events

    kept = filter_window(events, date(2024, 2, 1), date(2024, 2, 29))

    assert [e.username for e in kept] == ["b", "c"]


def test_week_helpers_start_on_sunday() -> None:
    """一週從週日開始、週六結束。"""

    assert week_start(date(2024, 6, 12)) == date(2024, 6, 9)  # 週三
    assert week_start(date(2024, 6, 9)) == date(2024, 6, 9)  # 週日本身
    assert week_start(date(2024, 6, 15)) == date(2024, 6, 9)  # 週六
    assert week_end(date(2024, 6, 12)) == date(2024, 6, 15)


def test_parse_instant_rejects_garbage() -> None:
    """非時間值回傳 None。"""

    assert parse_instant("garbage", "UTC") is None
    assert parse_instant("", "UTC") is None
    assert parse_instant(True, "UTC") is None
    assert parse_instant(12.5, "UTC") is None
    assert parse_instant(date(2024, 1, 1), "UTC") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_clock_words_and_bare_numbers_are_malformed() -> None:
    """pandas 會把 "now" / "today" 解析成目前時間；這些列必須當成無效列。"""

    result = normalize_visits(
        [
            ("now", "alice"),
            ("today", "bob"),
            (" NOW ", "carol"),
            ("20240603", "dave"),
            ("1717400000", "erin"),
            ("2024-06-03T09:00:00Z", "frank"),
        ]
    )

    assert result.skipped == 5
    assert [e.username for e in result.events] == ["frank"]
    assert parse_instant("now", "UTC") is None
    assert parse_instant("Today", "Asia/Taipei") is None
    assert parse_instant("2024/06/03 09:00", "UTC") == datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)
