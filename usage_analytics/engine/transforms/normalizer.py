"""造訪紀錄正規化：解析原始 (timestamp, username) 列，丟棄並計數無效列。"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple

from usage_analytics.engine.models.aggregates import NormalizationResult
from usage_analytics.engine.models.records import VisitEvent
from usage_analytics.engine.utils.logging import get_logger
from usage_analytics.engine.utils.timeutils import local_date, parse_instant, resolve_timezone

logger = get_logger(__name__)

TIMESTAMP_KEYS = ("timestamp", "ts", "time")
USERNAME_KEYS = ("username", "user", "userName")


def _pick(row: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return None


def _split_row(row: Any) -> Tuple[Any, Any]:
    """支援 (timestamp, username) 序列或含對應鍵的 dict；其他形狀視為無效列。"""
    if isinstance(row, Mapping):
        return _pick(row, TIMESTAMP_KEYS), _pick(row, USERNAME_KEYS)
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes)) and len(row) >= 2:
        return row[0], row[1]
    return None, None


def _clean_username(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    name = raw.strip()
    return name or None


def normalize_visits(rows: Iterable[Any], timezone: str = "UTC") -> NormalizationResult:
    """
    將原始列轉為 VisitEvent。
    無效列（時間無法解析、使用者名稱空白）只計數，不拋錯。
    """
    if rows is None or isinstance(rows, (str, bytes, Mapping)):
        raise TypeError("rows 必須是列的序列（list / tuple / iterable）")
    resolve_timezone(timezone)

    events: List[VisitEvent] = []
    skipped = 0
    for idx, row in enumerate(rows):
        raw_ts, raw_user = _split_row(row)
        username = _clean_username(raw_user)
        instant = parse_instant(raw_ts, timezone)
        if username is None or instant is None:
            skipped += 1
            logger.debug("略過無效造訪列 #%s：%r", idx, row)
            continue
        events.append(VisitEvent(timestamp=instant, username=username))

    if skipped:
        logger.info("造訪列正規化：有效 %s 筆，略過 %s 筆", len(events), skipped)
    return NormalizationResult(events=events, skipped=skipped)


def filter_window(
    events: Iterable[VisitEvent],
    start_date: date,
    end_date: date,
    timezone: str = "UTC",
) -> List[VisitEvent]:
    """保留當地日期落在 [start_date, end_date]（含頭尾）的事件。"""
    if start_date > end_date:
        raise ValueError("start_date 不可晚於 end_date")
    return [e for e in events if start_date <= local_date(e.timestamp, timezone) <= end_date]
