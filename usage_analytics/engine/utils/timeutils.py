"""時間處理工具：解析時間戳、換算當地日期、週日起始週。"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo
from functools import lru_cache
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd

# 字串必須以 年-月-日（或 年/月/日）開頭，"now" 之類的字詞不交給 pandas 解析
_DATE_PREFIX = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}")


@lru_cache(maxsize=64)
def resolve_timezone(name: str) -> tzinfo:
    """時區名稱轉 tzinfo；未知時區屬於呼叫端錯誤，直接拋出 ValueError。"""
    if not isinstance(name, str) or not name:
        raise ValueError("timezone 必須是非空字串，例如 'UTC' 或 'Asia/Taipei'")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"未知的時區：{name}") from exc


def parse_instant(raw: Any, timezone: str) -> Optional[datetime]:
    """
    將原始時間值解析為帶時區的 datetime；無法解析時回傳 None（不拋錯）。
    - 無時區的值視為 timezone 當地時間
    - 有時區的值換算到 timezone
    """
    zone = resolve_timezone(timezone)
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if not _DATE_PREFIX.match(text):
            return None
        ts = pd.to_datetime(text, errors="coerce")
    elif isinstance(raw, (datetime, date)):
        ts = pd.Timestamp(raw)
    else:
        return None

    if pd.isna(ts):
        return None
    value = ts.to_pydatetime()
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def require_aware(value: Any, name: str = "as_of") -> datetime:
    """檢查參數是帶時區的 datetime。"""
    if not isinstance(value, datetime):
        raise TypeError(f"{name} 必須是 datetime，收到 {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} 必須帶時區資訊")
    return value


def local_date(value: datetime, timezone: str) -> date:
    """取得時間點在指定時區的日曆日期。"""
    return value.astimezone(resolve_timezone(timezone)).date()


def week_start(day: date) -> date:
    """回傳當天或之前最近的週日（週日為一週起點）。"""
    # date.weekday(): 週一=0 ... 週日=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_end(day: date) -> date:
    """回傳該週的週六。"""
    return week_start(day) + timedelta(days=6)
