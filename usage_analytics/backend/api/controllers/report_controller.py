"""報表控制器：請求 → ReportQuery → 服務層 → 回應模型。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException
from pydantic import ValidationError

from usage_analytics.backend.schemas.reports import (
    DashboardReportRequest,
    DistrictReportRequest,
    UserEngagementRequest,
    ReportRequestBase,
)
from usage_analytics.backend.services.report_service import ReportService
from usage_analytics.engine.models.aggregates import DashboardReport, DistrictReport, UserEngagementReport
from usage_analytics.engine.models.query import ReportQuery


class ReportController:
    """負責將 API 請求轉為引擎查詢參數。"""

    def __init__(self, service: ReportService) -> None:
        self.service = service

    # -------------------------
    # 儀表板造訪
    # -------------------------
    def get_dashboard_report(self, request: DashboardReportRequest) -> DashboardReport:
        query = self._query(
            request,
            dashboard_id=request.dashboard_id,
            start_date=request.start_date,
            end_date=request.end_date,
            top_n=request.top_n,
        )
        return self.service.get_dashboard_report(query, request.rows, request.directory)

    # -------------------------
    # 組織單位參與度
    # -------------------------
    def get_district_report(self, request: DistrictReportRequest) -> DistrictReport:
        query = self._query(
            request,
            start_date=request.start_date,
            end_date=request.end_date,
            org_unit_level=request.org_unit_level,
        )
        return self.service.get_district_report(query, request.org_units, request.directory, request.rows)

    # -------------------------
    # 使用者近期登入
    # -------------------------
    def get_user_engagement(self, request: UserEngagementRequest) -> UserEngagementReport:
        query = self._query(request, inactivity_filter=request.inactivity_filter or None)
        return self.service.get_user_engagement(query, request.directory)

    # -------------------------
    # helper
    # -------------------------
    def _query(self, request: ReportRequestBase, **overrides: Any) -> ReportQuery:
        """as_of 未提供時只在這裡讀一次時鐘；查詢參數不合法回 422。"""
        as_of = request.as_of or datetime.now(timezone.utc)
        try:
            return ReportQuery.from_settings(
                self.service.settings, as_of=as_of, timezone=request.timezone, **overrides
            )
        except ValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc
