"""報表 API 請求模型（回應直接使用引擎的聚合模型）。"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from usage_analytics.engine.models.aggregates import InactivityStatus


class ReportRequestBase(BaseModel):
    as_of: Optional[datetime] = Field(default=None, description="基準時間；未提供時以收到請求的時間為準")
    timezone: Optional[str] = Field(default=None, description="當地時區，預設讀設定檔")


class DashboardReportRequest(ReportRequestBase):
    """儀表板造訪報表請求。rows 為 [timestamp, username] 或 {timestamp, username}。"""
    dashboard_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    top_n: Optional[int] = Field(default=None, ge=0)
    rows: List[Any] = Field(default_factory=list)
    directory: List[Dict[str, Any]] = Field(default_factory=list)


class DistrictReportRequest(ReportRequestBase):
    """組織單位參與度請求。rows 有提供時計入連續活躍判斷。"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    org_unit_level: Optional[int] = Field(default=None, ge=1)
    org_units: List[Any] = Field(default_factory=list)
    directory: List[Dict[str, Any]] = Field(default_factory=list)
    rows: Optional[List[Any]] = None


class UserEngagementRequest(ReportRequestBase):
    inactivity_filter: List[InactivityStatus] = Field(default_factory=list)
    directory: List[Dict[str, Any]] = Field(default_factory=list)
