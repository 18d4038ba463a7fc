"""FastAPI 依賴：報表控制器。"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from usage_analytics.backend.api.controllers.report_controller import ReportController
from usage_analytics.backend.services.report_service import ReportService
from usage_analytics.config.settings import Settings, get_settings


def get_report_service(settings: Annotated[Settings, Depends(get_settings)]) -> ReportService:
    """產生 Service 實例；測試可覆寫這個依賴。"""
    return ReportService(settings)


def get_report_controller(
    service: Annotated[ReportService, Depends(get_report_service)]
) -> ReportController:
    """建立並回傳 ReportController。"""
    return ReportController(service)
