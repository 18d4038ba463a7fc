"""組織單位參與度：使用者總數、活躍數、存取率與近 4 週連續活躍判斷。"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple

from usage_analytics.engine.models.aggregates import DistrictEngagement
from usage_analytics.engine.models.records import OrgUnit, UserDirectoryEntry, VisitEvent, path_segments
from usage_analytics.engine.utils.logging import get_logger
from usage_analytics.engine.utils.rates import percent
from usage_analytics.engine.utils.timeutils import local_date, require_aware, resolve_timezone, week_end, week_start

logger = get_logger(__name__)

CONSISTENCY_WEEKS = 4
VIEWS_PER_ACTIVE_USER = 3
NEVER_LABEL = "Never"


# =========================
# 組織樹工具
# =========================

def _walk(units: Iterable[OrgUnit]) -> Iterable[OrgUnit]:
    for unit in units:
        yield unit
        yield from _walk(unit.children)


def units_at_level(org_units: Sequence[OrgUnit], level: Optional[int]) -> List[OrgUnit]:
    """攤平組織樹並取出指定層級的節點（依出現順序、以 id 去重）；level 為 None 時只攤平去重。"""
    if not isinstance(org_units, Sequence):
        raise TypeError("org_units 必須是 OrgUnit 的序列")
    seen: Set[str] = set()
    selected: List[OrgUnit] = []
    for unit in _walk(org_units):
        if level is not None and unit.level != level:
            continue
        if unit.id in seen:
            continue
        seen.add(unit.id)
        selected.append(unit)
    return selected


def _subtree_ids(unit: OrgUnit) -> Set[str]:
    return {node.id for node in _walk([unit])}


def is_member(entry: UserDirectoryEntry, unit: OrgUnit, subtree: Optional[Set[str]] = None) -> bool:
    """
    使用者任一所屬單位符合即算成員：
    - 單位 id 相同
    - 單位 path 的某一段等於 unit.id（位於 unit 子樹內）
    - 單位 id 出現在 unit.children 子樹中
    """
    subtree = subtree if subtree is not None else _subtree_ids(unit)
    for ref in entry.organisation_units:
        if ref.id == unit.id or ref.id in subtree:
            return True
        if ref.path and unit.id in path_segments(ref.path):
            return True
    return False


# =========================
# 連續活躍（近 N 個完整週）
# =========================

def trailing_weeks(as_of: datetime, timezone: str, weeks: int = CONSISTENCY_WEEKS) -> List[Tuple[date, date]]:
    """as_of 所在週之前的 N 個完整週（週日~週六），由舊到新排列。"""
    current_start = week_start(local_date(as_of, timezone))
    windows = []
    for back in range(weeks, 0, -1):
        start = current_start - timedelta(days=7 * back)
        windows.append((start, week_end(start)))
    return windows


def _active_week_count(activity_days: Iterable[date], windows: Sequence[Tuple[date, date]]) -> int:
    hit = [False] * len(windows)
    for day in activity_days:
        for i, (start, end) in enumerate(windows):
            if start <= day <= end:
                hit[i] = True
                break
    return sum(hit)


# =========================
# 主計算
# =========================

def calculate_district_engagement(
    org_units: Sequence[OrgUnit],
    directory: Sequence[UserDirectoryEntry],
    as_of: datetime,
    visits: Optional[Sequence[VisitEvent]] = None,
    timezone: str = "UTC",
    consistency_weeks: int = CONSISTENCY_WEEKS,
    views_per_active_user: int = VIEWS_PER_ACTIVE_USER,
    estimate_views: bool = True,
    never_label: str = NEVER_LABEL,
) -> List[DistrictEngagement]:
    """
    每個組織單位一筆參與度資料（順序同輸入）。

    - 活躍定義：曾經登入（last_login 不為空）
    - 連續活躍：近 consistency_weeks 個完整週，每週至少有一筆成員活動
      （成員的 last_login；有提供 visits 時也包含成員的造訪事件）
    - dashboard_views：active_users × views_per_active_user 的估算值，非實際瀏覽數
    """
    if not isinstance(org_units, Sequence) or not isinstance(directory, Sequence):
        raise TypeError("org_units 與 directory 必須是序列")
    if visits is not None and not isinstance(visits, Sequence):
        raise TypeError("visits 必須是 VisitEvent 的序列")
    require_aware(as_of)
    resolve_timezone(timezone)
    if not org_units:
        logger.info("沒有可計算的組織單位")
        return []

    windows = trailing_weeks(as_of, timezone, consistency_weeks)
    visit_days: Dict[str, List[date]] = defaultdict(list)
    for event in visits or ():
        visit_days[event.username].append(local_date(event.timestamp, timezone))

    results: List[DistrictEngagement] = []
    for unit in org_units:
        subtree = _subtree_ids(unit)
        members = [entry for entry in directory if is_member(entry, unit, subtree)]
        logins = [entry.last_login for entry in members if entry.last_login is not None]

        total = len(members)
        active = len(logins)
        last_activity = local_date(max(logins), timezone).isoformat() if logins else never_label

        activity_days = [local_date(ts, timezone) for ts in logins]
        for entry in members:
            activity_days.extend(visit_days.get(entry.username, ()))
        active_weeks = _active_week_count(activity_days, windows) if total else 0

        results.append(
            DistrictEngagement(
                org_unit_id=unit.id,
                org_unit_name=unit.display_name,
                total_users=total,
                active_users=active,
                last_activity=last_activity,
                access_percentage=f"{percent(active, total)}%",
                is_consistently_active=total > 0 and active_weeks == len(windows) and len(windows) > 0,
                active_weeks=active_weeks,
                dashboard_views=active * views_per_active_user if estimate_views else None,
            )
        )
    return results
