"""造訪彙整、Top-N 排行與時間分桶的單元測試。"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from usage_analytics.engine.transforms.aggregator import aggregate_visits
from usage_analytics.engine.transforms.buckets import analyze_time_buckets
from usage_analytics.engine.transforms.normalizer import normalize_visits
from usage_analytics.engine.transforms.ranking import select_top_users


def _events(rows, tz: str = "UTC"):
    return normalize_visits(rows, timezone=tz).events


def test_aggregate_counts_and_last_visit() -> None:
    """每位使用者的造訪次數與最後造訪時間。"""

    events = _events(
        [
            ("2024-01-01T10:00", "alice"),
            ("2024-01-01T11:00", "alice"),
            ("2024-01-02T09:00", "bob"),
        ]
    )
    summaries = aggregate_visits(events)

    assert list(summaries) == ["alice", "bob"]
    assert summaries["alice"].visit_count == 2
    assert summaries["alice"].last_visit == datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc)
    assert summaries["bob"].visit_count == 1
    assert summaries["bob"].last_visit == datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)


def test_aggregate_totals_match_event_count_in_any_order() -> None:
    """次數總和等於事件數，且結果與輸入順序無關。"""

    rows = [
        ("2024-03-05T08:00", "a"),
        ("2024-03-01T08:00", "b"),
        ("2024-03-09T08:00", "a"),
        ("2024-03-02T08:00", "c"),
        ("2024-03-03T08:00", "a"),
        ("2024-03-04T08:00", "b"),
    ]
    forward = aggregate_visits(_events(rows))
    backward = aggregate_visits(_events(list(reversed(rows))))

    assert sum(s.visit_count for s in forward.values()) == len(rows)
    assert {k: v.model_dump() for k, v in forward.items()} == {k: v.model_dump() for k, v in backward.items()}
    assert forward["a"].last_visit == datetime(2024, 3, 9, 8, 0, tzinfo=timezone.utc)


def test_aggregate_empty_input() -> None:
    """沒有事件時回傳空 dict。"""

    assert aggregate_visits([]) == {}


def test_top_users_sorted_with_stable_ties() -> None:
    """依造訪數遞減，同分維持第一次出現的順序。"""

    rows = (
        [("2024-01-01T00:00", "a")]
        + [("2024-01-01T01:00", "b")] * 3
        + [("2024-01-01T02:00", "c")] * 3
        + [("2024-01-01T03:00", "d")]
        + [("2024-01-01T04:00", "e")] * 2
        + [("2024-01-01T05:00", "f")] * 5
    )
    summaries = aggregate_visits(_events(rows))

    top = select_top_users(summaries, 3)
    assert [(s.username, s.visit_count) for s in top] == [("f", 5), ("b", 3), ("c", 3)]

    everyone = select_top_users(summaries, 10)
    assert len(everyone) == 6
    assert [s.username for s in everyone] == ["f", "b", "c", "e", "a", "d"]

    assert len(select_top_users(summaries)) == 5
    assert select_top_users(summaries, 0) == []
    assert select_top_users([], 5) == []


def test_top_users_rejects_bad_k() -> None:
    """k 不合法屬於呼叫端錯誤。"""

    with pytest.raises(ValueError):
        select_top_users([], -1)
    with pytest.raises(TypeError):
        select_top_users([], "5")  # type: ignore[arg-type]


def test_time_buckets_find_peaks() -> None:
    """尖峰日 / 週（週日起）/ 月。"""

    events = _events(
        [
            ("2024-01-01T10:00", "alice"),
            ("2024-01-01T11:00", "alice"),
            ("2024-01-02T09:00", "bob"),
        ]
    )
    peaks = analyze_time_buckets(events)

    assert peaks.top_day.date == date(2024, 1, 1)
    assert peaks.top_day.count == 2
    assert peaks.top_week.start == date(2023, 12, 31)
    assert peaks.top_week.end == date(2024, 1, 6)
    assert peaks.top_week.count == 3
    assert (peaks.top_month.year, peaks.top_month.month, peaks.top_month.count) == (2024, 1, 3)


def test_time_bucket_ties_go_to_first_encountered() -> None:
    """同分時取事件順序中最先出現的桶。"""

    events = _events(
        [
            ("2024-03-12T10:00", "a"),  # 週日 3/10 那一週
            ("2024-02-28T10:00", "b"),  # 週日 2/25 那一週
        ]
    )
    peaks = analyze_time_buckets(events)

    assert peaks.top_day.date == date(2024, 3, 12)
    assert peaks.top_week.start == date(2024, 3, 10)
    assert (peaks.top_month.year, peaks.top_month.month) == (2024, 3)


def test_time_buckets_use_local_calendar() -> None:
    """分桶以當地日期為準。"""

    events = _events([("2024-01-31T20:00:00Z", "a")], tz="Asia/Taipei")
    peaks = analyze_time_buckets(events, "Asia/Taipei")

    assert peaks.top_day.date == date(2024, 2, 1)
    assert peaks.top_month.month == 2


def test_time_buckets_empty() -> None:
    """沒有事件時全部為空、count=0。"""

    peaks = analyze_time_buckets([])

    assert peaks.top_day.date is None and peaks.top_day.count == 0
    assert peaks.top_week.start is None and peaks.top_week.end is None and peaks.top_week.count == 0
    assert peaks.top_month.month is None and peaks.top_month.year is None and peaks.top_month.count == 0
