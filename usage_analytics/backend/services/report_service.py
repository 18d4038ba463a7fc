"""報表服務層：把請求資料包成記憶體來源後交給引擎 Pipeline（不做任何儲存）。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from usage_analytics.config.settings import Settings
from usage_analytics.engine.models.aggregates import DashboardReport, DistrictReport, UserEngagementReport
from usage_analytics.engine.models.query import ReportQuery
from usage_analytics.engine.pipelines.dashboard_pipeline import DashboardReportPipeline
from usage_analytics.engine.pipelines.district_pipeline import DistrictEngagementPipeline
from usage_analytics.engine.pipelines.engagement_pipeline import UserEngagementPipeline
from usage_analytics.engine.sources.file_source import InMemorySource


class ReportService:
    """薄服務層；每次呼叫都是獨立、無狀態的計算。"""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_dashboard_report(
        self, query: ReportQuery, rows: List[Any], directory: List[Dict[str, Any]]
    ) -> DashboardReport:
        source = InMemorySource(visit_rows=rows, directory=directory)
        return DashboardReportPipeline(source, query).run()

    def get_district_report(
        self,
        query: ReportQuery,
        org_units: List[Any],
        directory: List[Dict[str, Any]],
        rows: Optional[List[Any]] = None,
    ) -> DistrictReport:
        source = InMemorySource(visit_rows=rows, directory=directory, org_units=org_units)
        pipeline = DistrictEngagementPipeline(
            source, query, include_visits=rows is not None, options=self.settings.engine
        )
        return pipeline.run()

    def get_user_engagement(self, query: ReportQuery, directory: List[Dict[str, Any]]) -> UserEngagementReport:
        source = InMemorySource(directory=directory)
        return UserEngagementPipeline(source, query, options=self.settings.engine).run()
