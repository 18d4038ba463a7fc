"""時間分桶：依日 / 週（週日起）/ 月統計事件數並找出尖峰。"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd

from usage_analytics.engine.models.aggregates import PeakBuckets, TopDay, TopMonth, TopWeek
from usage_analytics.engine.models.records import VisitEvent
from usage_analytics.engine.utils.timeutils import local_date, resolve_timezone, week_end, week_start


def _peak(keys: List[str]) -> Tuple[Optional[str], int]:
    """回傳次數最多的桶；同分時取事件順序中最先出現的桶。"""
    if not keys:
        return None, 0
    series = pd.Series(keys, dtype="object")
    counts = series.groupby(series, sort=False).size()
    label = counts.idxmax()
    return str(label), int(counts[label])


def analyze_time_buckets(events: Sequence[VisitEvent], timezone: str = "UTC") -> PeakBuckets:
    """找出造訪量最高的日、週、月；沒有事件時全部為空、count=0。"""
    if not isinstance(events, Sequence):
        raise TypeError("events 必須是 VisitEvent 的序列")
    resolve_timezone(timezone)
    if not events:
        return PeakBuckets()

    days = [local_date(e.timestamp, timezone) for e in events]
    day_key, day_count = _peak([d.isoformat() for d in days])
    week_key, week_count = _peak([week_start(d).isoformat() for d in days])
    month_key, month_count = _peak([f"{d.year:04d}-{d.month:02d}" for d in days])

    top_week_start = date.fromisoformat(week_key)
    year, month = (int(part) for part in month_key.split("-"))
    return PeakBuckets(
        top_day=TopDay(date=date.fromisoformat(day_key), count=day_count),
        top_week=TopWeek(start=top_week_start, end=week_end(top_week_start), count=week_count),
        top_month=TopMonth(month=month, year=year, count=month_count),
    )
