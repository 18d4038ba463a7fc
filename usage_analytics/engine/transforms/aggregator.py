"""造訪彙整：依使用者計算造訪次數與最後造訪時間。"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Dict

import pandas as pd

from usage_analytics.engine.models.aggregates import VisitSummary
from usage_analytics.engine.models.records import VisitEvent


def events_frame(events: Sequence[VisitEvent]) -> pd.DataFrame:
    """事件轉 DataFrame；instant 欄統一為 UTC 以利比較，原始順序保留在 index。"""
    return pd.DataFrame(
        {
            "username": [e.username for e in events],
            "instant": pd.to_datetime([e.timestamp for e in events], utc=True),
        }
    )


def aggregate_visits(events: Sequence[VisitEvent]) -> Dict[str, VisitSummary]:
    """
    回傳 {username: VisitSummary}。
    鍵的順序為使用者第一次出現的順序（Top-N 同分時依此順序）。
    """
    if not isinstance(events, Sequence):
        raise TypeError("events 必須是 VisitEvent 的序列")
    if not events:
        return {}

    frame = events_frame(events)
    grouped = frame.groupby("username", sort=False)["instant"]
    counts = grouped.size()
    latest_idx = grouped.idxmax()

    return {
        username: VisitSummary(
            username=username,
            visit_count=int(counts[username]),
            # 取原始事件的時間，保留其時區
            last_visit=events[int(latest_idx[username])].timestamp,
        )
        for username in counts.index
    }
