"""使用者近期登入分類（lastWeek / lastMonth / overMonth / never）與不活躍篩選。"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from usage_analytics.engine.models.aggregates import (
    InactivityStatus,
    RecencyLabel,
    RecencySummary,
    UserRecency,
)
from usage_analytics.engine.models.records import UserDirectoryEntry
from usage_analytics.engine.utils.rates import percent
from usage_analytics.engine.utils.timeutils import require_aware

WEEK_DAYS = 7
MONTH_DAYS = 30


def classify_recency(
    entry: UserDirectoryEntry,
    as_of: datetime,
    week_days: int = WEEK_DAYS,
    month_days: int = MONTH_DAYS,
) -> RecencyLabel:
    """
    以 as_of 為基準分類最後登入時間，邊界含等號：
    - 差距 <= 7 天 → lastWeek（登入時間晚於 as_of 也算）
    - 7 天 < 差距 <= 30 天 → lastMonth
    - 差距 > 30 天 → overMonth
    - 沒有登入紀錄 → never
    """
    require_aware(as_of)
    if entry.last_login is None:
        return RecencyLabel.NEVER
    delta = as_of - entry.last_login
    if delta <= timedelta(days=week_days):
        return RecencyLabel.LAST_WEEK
    if delta <= timedelta(days=month_days):
        return RecencyLabel.LAST_MONTH
    return RecencyLabel.OVER_MONTH


def days_since_login(entry: UserDirectoryEntry, as_of: datetime) -> Optional[int]:
    if entry.last_login is None:
        return None
    return (require_aware(as_of) - entry.last_login).days


def classify_directory(
    directory: Sequence[UserDirectoryEntry],
    as_of: datetime,
    week_days: int = WEEK_DAYS,
    month_days: int = MONTH_DAYS,
) -> List[UserRecency]:
    """目錄中每位使用者一筆分類結果，順序與輸入相同。"""
    if not isinstance(directory, Sequence):
        raise TypeError("directory 必須是 UserDirectoryEntry 的序列")
    require_aware(as_of)
    return [
        UserRecency(
            id=entry.id,
            username=entry.username,
            display_name=entry.display_name or entry.username,
            last_login=entry.last_login,
            days_since_last_login=days_since_login(entry, as_of),
            access_recency=classify_recency(entry, as_of, week_days, month_days),
            user_groups=list(entry.user_groups),
            organisation_units=list(entry.organisation_units),
        )
        for entry in directory
    ]


def summarize_recency(labels: Iterable[RecencyLabel]) -> RecencySummary:
    counts = Counter(labels)
    total = sum(counts.values())
    return RecencySummary(
        last_week=counts[RecencyLabel.LAST_WEEK],
        last_month=counts[RecencyLabel.LAST_MONTH],
        over_month=counts[RecencyLabel.OVER_MONTH],
        never=counts[RecencyLabel.NEVER],
        total=total,
        last_week_percent=percent(counts[RecencyLabel.LAST_WEEK], total),
        last_month_percent=percent(counts[RecencyLabel.LAST_MONTH], total),
        over_month_percent=percent(counts[RecencyLabel.OVER_MONTH], total),
        never_percent=percent(counts[RecencyLabel.NEVER], total),
    )


def filter_inactive(
    directory: Sequence[UserDirectoryEntry],
    as_of: datetime,
    statuses: Iterable[InactivityStatus] = (),
    inactive_days: int = MONTH_DAYS,
) -> List[UserDirectoryEntry]:
    """
    依不活躍狀態篩選（多個狀態取聯集，保留目錄順序並以 id 去重）。
    未指定狀態時回傳全部。
    """
    require_aware(as_of)
    selected = {InactivityStatus(s) for s in statuses}
    if not selected:
        return list(directory)

    threshold = as_of - timedelta(days=inactive_days)
    kept: List[UserDirectoryEntry] = []
    seen = set()
    for entry in directory:
        never = entry.last_login is None
        stale = not never and entry.last_login < threshold
        if (InactivityStatus.NEVER_LOGGED_IN in selected and never) or (
            InactivityStatus.INACTIVE_30_DAYS in selected and stale
        ):
            key = entry.id or entry.username
            if key in seen:
                continue
            seen.add(key)
            kept.append(entry)
    return kept
