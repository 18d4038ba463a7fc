"""使用者目錄串接：將造訪彙整對應到目錄資料，找不到時產生替代紀錄。"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Dict, List, Union

from usage_analytics.engine.models.aggregates import LinkedUser, TopUser, VisitSummary
from usage_analytics.engine.models.records import UserDirectoryEntry
from usage_analytics.engine.utils.logging import get_logger

logger = get_logger(__name__)


def _display_name(entry: UserDirectoryEntry) -> str:
    if entry.display_name:
        return entry.display_name
    full = " ".join(part for part in (entry.first_name, entry.surname) if part)
    return full or entry.username


def _directory_index(directory: Sequence[UserDirectoryEntry]) -> Dict[str, UserDirectoryEntry]:
    # 帳號重複時以第一筆為準
    index: Dict[str, UserDirectoryEntry] = {}
    for entry in directory:
        index.setdefault(entry.username, entry)
    return index


def link_users(
    summaries: Union[Sequence[VisitSummary], Mapping[str, VisitSummary]],
    directory: Sequence[UserDirectoryEntry],
) -> List[LinkedUser]:
    """
    以 username（區分大小寫、完全相等）串接。
    每筆 VisitSummary 都會產生一筆 LinkedUser，輸出長度恆等於輸入長度。
    """
    if isinstance(summaries, Mapping):
        summaries = list(summaries.values())
    if not isinstance(summaries, Sequence) or not isinstance(directory, Sequence):
        raise TypeError("summaries 與 directory 必須是序列")

    index = _directory_index(directory)
    linked: List[LinkedUser] = []
    unmatched = 0
    for summary in summaries:
        entry = index.get(summary.username)
        if entry is None:
            unmatched += 1
            linked.append(
                LinkedUser(
                    username=summary.username,
                    visits=summary.visit_count,
                    last_visit=summary.last_visit,
                    display_name=summary.username,
                    matched=False,
                )
            )
            continue
        linked.append(
            LinkedUser(
                username=summary.username,
                visits=summary.visit_count,
                last_visit=summary.last_visit,
                id=entry.id,
                first_name=entry.first_name or "",
                surname=entry.surname or "",
                display_name=_display_name(entry),
                roles=list(entry.user_roles),
                groups=list(entry.user_groups),
                org_units=list(entry.organisation_units),
            )
        )

    if unmatched:
        logger.info("目錄中找不到 %s 位造訪者，已使用替代資料", unmatched)
    return linked


def enrich_top_users(top: Sequence[VisitSummary], linked: Sequence[LinkedUser]) -> List[TopUser]:
    """排行榜附上姓名（找不到時為空字串）。"""
    by_name: Dict[str, LinkedUser] = {}
    for user in linked:
        by_name.setdefault(user.username, user)
    result: List[TopUser] = []
    for summary in top:
        user = by_name.get(summary.username)
        result.append(
            TopUser(
                username=summary.username,
                visits=summary.visit_count,
                first_name=user.first_name if user else "",
                surname=user.surname if user else "",
            )
        )
    return result
