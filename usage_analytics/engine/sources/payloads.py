"""外部資料邊界解析：目錄與組織單位原始紀錄 → 強型別模型。"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Iterable, List, Tuple

from pydantic import ValidationError

from usage_analytics.engine.models.records import OrgUnit, UserDirectoryEntry
from usage_analytics.engine.utils.logging import get_logger
from usage_analytics.engine.utils.timeutils import resolve_timezone

logger = get_logger(__name__)


def _require_records(records: Any, name: str) -> None:
    if records is None or isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        raise TypeError(f"{name} 必須是紀錄的序列")


def parse_directory(records: Iterable[Any], timezone: str = "UTC") -> Tuple[List[UserDirectoryEntry], int]:
    """
    解析使用者目錄。lastLogin 無時區時視為 timezone 當地時間；
    缺少 username 等無法驗證的紀錄會被略過並計數。
    """
    _require_records(records, "directory")
    resolve_timezone(timezone)
    entries: List[UserDirectoryEntry] = []
    skipped = 0
    for record in records:
        if isinstance(record, UserDirectoryEntry):
            entries.append(record)
            continue
        try:
            entries.append(UserDirectoryEntry.model_validate(record, context={"timezone": timezone}))
        except ValidationError as exc:
            skipped += 1
            logger.debug("略過無效目錄紀錄：%s", exc.errors(include_url=False))
    if skipped:
        logger.warning("使用者目錄有 %s 筆無效紀錄已略過", skipped)
    return entries, skipped


def _org_unit_payload(record: Any) -> Any:
    # SQL view 列格式：[name, path] 或 [name, path, id]
    if isinstance(record, Sequence) and not isinstance(record, (str, bytes)):
        payload = {"displayName": record[0] if len(record) > 0 else "", "path": record[1] if len(record) > 1 else ""}
        if len(record) > 2 and record[2]:
            payload["id"] = record[2]
        return payload
    return record


def parse_org_units(records: Iterable[Any]) -> Tuple[List[OrgUnit], int]:
    """解析組織單位清單（dict 或 SQL view 列）。"""
    _require_records(records, "org_units")
    units: List[OrgUnit] = []
    skipped = 0
    for record in records:
        if isinstance(record, OrgUnit):
            units.append(record)
            continue
        try:
            units.append(OrgUnit.model_validate(_org_unit_payload(record)))
        except ValidationError as exc:
            skipped += 1
            logger.debug("略過無效組織單位紀錄：%s", exc.errors(include_url=False))
    if skipped:
        logger.warning("組織單位清單有 %s 筆無效紀錄已略過", skipped)
    return units, skipped
