"""報表 API 路由（無狀態計算：請求帶資料、回傳報表）。"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from usage_analytics.backend.api.controllers.report_controller import ReportController
from usage_analytics.backend.api.dependencies.reports import get_report_controller
from usage_analytics.backend.schemas.reports import (
    DashboardReportRequest,
    DistrictReportRequest,
    UserEngagementRequest,
)
from usage_analytics.engine.models.aggregates import DashboardReport, DistrictReport, UserEngagementReport

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    responses={422: {"description": "查詢參數不合法"}},
)


@router.post(
    "/dashboard",
    response_model=DashboardReport,
    summary="儀表板造訪報表",
    description="回傳總造訪數、Top-N 使用者、尖峰日/週/月與串接目錄後的造訪者清單。未指定區間時回傳空統計。",
)
def create_dashboard_report(
    payload: DashboardReportRequest,
    controller: ReportController = Depends(get_report_controller),
) -> DashboardReport:
    return controller.get_dashboard_report(payload)


@router.post(
    "/districts",
    response_model=DistrictReport,
    summary="組織單位參與度",
    description="回傳各組織單位的使用者數、活躍數、存取率、最後活動與近 4 週連續活躍判斷。dashboard_views 為估算值。",
)
def create_district_report(
    payload: DistrictReportRequest,
    controller: ReportController = Depends(get_report_controller),
) -> DistrictReport:
    return controller.get_district_report(payload)


@router.post(
    "/user-engagement",
    response_model=UserEngagementReport,
    summary="使用者近期登入",
    description="回傳每位使用者的近期登入分類（lastWeek / lastMonth / overMonth / never）與摘要。",
)
def create_user_engagement_report(
    payload: UserEngagementRequest,
    controller: ReportController = Depends(get_report_controller),
) -> UserEngagementReport:
    return controller.get_user_engagement(payload)
