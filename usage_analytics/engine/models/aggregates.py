"""引擎輸出的聚合資料模型（每次執行重新計算，不持久化）。"""

from __future__ import annotations

from datetime import date as Date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from usage_analytics.engine.models.records import NamedRef, OrgUnitRef, VisitEvent


class _Aggregate(BaseModel):
    model_config = ConfigDict(frozen=True)


# =========================
# 造訪彙整
# =========================

class VisitSummary(_Aggregate):
    """單一使用者在查詢區間內的造訪次數與最後造訪時間。"""
    username: str
    visit_count: int = Field(ge=0)
    last_visit: datetime


class NormalizationResult(_Aggregate):
    """正規化結果：有效事件 + 被丟棄的列數。"""
    events: List[VisitEvent] = Field(default_factory=list)
    skipped: int = 0


class LinkedUser(_Aggregate):
    """造訪彙整 + 使用者目錄欄位；目錄找不到時 matched=False。"""
    username: str
    visits: int
    last_visit: datetime
    id: str = ""
    first_name: str = ""
    surname: str = ""
    display_name: str = ""
    roles: List[NamedRef] = Field(default_factory=list)
    groups: List[NamedRef] = Field(default_factory=list)
    org_units: List[OrgUnitRef] = Field(default_factory=list)
    matched: bool = True


# =========================
# 儀表板統計
# =========================

class TopUser(_Aggregate):
    username: str
    visits: int
    first_name: str = ""
    surname: str = ""


class TopDay(_Aggregate):
    date: Optional[Date] = None
    count: int = 0


class TopWeek(_Aggregate):
    """週日起、週六止。"""
    start: Optional[Date] = None
    end: Optional[Date] = None
    count: int = 0


class TopMonth(_Aggregate):
    month: Optional[int] = None  # 1~12
    year: Optional[int] = None
    count: int = 0


class PeakBuckets(_Aggregate):
    top_day: TopDay = TopDay()
    top_week: TopWeek = TopWeek()
    top_month: TopMonth = TopMonth()


class DashboardStats(_Aggregate):
    total_visits: int = 0
    top_users: List[TopUser] = Field(default_factory=list)
    top_day: TopDay = TopDay()
    top_week: TopWeek = TopWeek()
    top_month: TopMonth = TopMonth()


class DashboardReport(_Aggregate):
    """單一儀表板 + 時間區間的完整報表。"""
    stats: DashboardStats = DashboardStats()
    linked_users: List[LinkedUser] = Field(default_factory=list)
    visit_summaries: List[VisitSummary] = Field(default_factory=list)
    skipped_rows: int = 0
    out_of_window_rows: int = 0


# =========================
# 組織單位參與度
# =========================

class DistrictEngagement(_Aggregate):
    org_unit_id: str
    org_unit_name: str
    total_users: int = 0
    active_users: int = 0
    last_activity: str = "Never"
    access_percentage: str = "0%"   # 例如 "50%"
    is_consistently_active: bool = False
    active_weeks: int = 0
    dashboard_views: Optional[int] = Field(
        default=None,
        description="估算值（active_users × 倍數），不是實際瀏覽紀錄",
    )


class DistrictReport(_Aggregate):
    districts: List[DistrictEngagement] = Field(default_factory=list)
    skipped_rows: int = 0


# =========================
# 使用者近期登入
# =========================

class RecencyLabel(str, Enum):
    LAST_WEEK = "lastWeek"
    LAST_MONTH = "lastMonth"
    OVER_MONTH = "overMonth"
    NEVER = "never"


class InactivityStatus(str, Enum):
    NEVER_LOGGED_IN = "never_logged_in"
    INACTIVE_30_DAYS = "inactive_30_days"


class UserRecency(_Aggregate):
    id: str = ""
    username: str
    display_name: str = ""
    last_login: Optional[datetime] = None
    days_since_last_login: Optional[int] = None
    access_recency: RecencyLabel
    user_groups: List[NamedRef] = Field(default_factory=list)
    organisation_units: List[OrgUnitRef] = Field(default_factory=list)


class RecencySummary(_Aggregate):
    """各近期類別人數與百分比（百分比為四捨五入整數）。"""
    last_week: int = 0
    last_month: int = 0
    over_month: int = 0
    never: int = 0
    total: int = 0
    last_week_percent: int = 0
    last_month_percent: int = 0
    over_month_percent: int = 0
    never_percent: int = 0


class UserEngagementReport(_Aggregate):
    users: List[UserRecency] = Field(default_factory=list)
    summary: RecencySummary = RecencySummary()
