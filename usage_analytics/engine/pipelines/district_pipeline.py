"""組織單位參與度 Pipeline。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from usage_analytics.config.settings import EngineSettings, settings
from usage_analytics.engine.models.aggregates import DistrictReport
from usage_analytics.engine.models.query import ReportQuery
from usage_analytics.engine.models.records import OrgUnit, UserDirectoryEntry
from usage_analytics.engine.pipelines.base import BasePipeline
from usage_analytics.engine.sources.file_source import InMemorySource, LocalFileSource
from usage_analytics.engine.sources.payloads import parse_directory, parse_org_units
from usage_analytics.engine.transforms.district import calculate_district_engagement, units_at_level
from usage_analytics.engine.transforms.normalizer import filter_window, normalize_visits
from usage_analytics.engine.utils.logging import get_logger

logger = get_logger(__name__)


def build_district_report(
    org_units: Sequence[OrgUnit],
    directory: Sequence[UserDirectoryEntry],
    query: ReportQuery,
    rows: Optional[Sequence[Any]] = None,
    options: Optional[EngineSettings] = None,
) -> DistrictReport:
    """
    依 query.org_unit_level 取出組織單位後計算參與度。
    rows 有提供時，區間內的造訪事件也計入連續活躍判斷。
    """
    if not query.has_window:
        logger.warning("未指定查詢區間（start_date / end_date），回傳空的組織單位參與度")
        return DistrictReport()
    options = options or EngineSettings()

    units = units_at_level(org_units, query.org_unit_level)
    if not units:
        logger.info("層級 %s 沒有組織單位", query.org_unit_level)
        return DistrictReport()

    visits = None
    skipped = 0
    if rows is not None:
        normalized = normalize_visits(rows, query.timezone)
        skipped = normalized.skipped
        visits = filter_window(normalized.events, query.start_date, query.end_date, query.timezone)

    districts = calculate_district_engagement(
        units,
        directory,
        query.as_of,
        visits=visits,
        timezone=query.timezone,
        consistency_weeks=options.consistency_weeks,
        views_per_active_user=options.views_per_active_user,
        estimate_views=options.estimate_dashboard_views,
        never_label=options.never_label,
    )
    return DistrictReport(districts=districts, skipped_rows=skipped)


class DistrictEngagementPipeline(BasePipeline[Dict[str, Any], DistrictReport]):
    """各組織單位（例如各區）的使用者參與度。"""

    name = "district-engagement-pipeline"

    def __init__(
        self,
        source: InMemorySource | LocalFileSource,
        query: ReportQuery,
        include_visits: bool = False,
        options: Optional[EngineSettings] = None,
        output_path: Optional[str] = None,
    ) -> None:
        super().__init__(output_path=output_path)
        self.source = source
        self.query = query
        self.include_visits = include_visits
        self.options = options or settings.engine

    def extract(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = {
            "org_units": self.source.fetch_org_units(),
            "directory": self.source.fetch_directory(),
        }
        if self.include_visits:
            raw["rows"] = self.source.fetch_visit_rows()
        return raw

    def transform(self, raw: Dict[str, Any]) -> DistrictReport:
        units, _ = parse_org_units(raw.get("org_units") or [])
        directory, _ = parse_directory(raw.get("directory") or [], self.query.timezone)
        rows: Optional[List[Any]] = raw.get("rows") if self.include_visits else None
        return build_district_report(units, directory, self.query, rows=rows, options=self.options)
