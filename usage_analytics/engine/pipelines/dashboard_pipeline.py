"""儀表板造訪報表 Pipeline：正規化 → 區間篩選 → 彙整 → 排行 / 尖峰 → 目錄串接。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from usage_analytics.engine.models.aggregates import DashboardReport, DashboardStats
from usage_analytics.engine.models.query import ReportQuery
from usage_analytics.engine.models.records import UserDirectoryEntry
from usage_analytics.engine.pipelines.base import BasePipeline
from usage_analytics.engine.sources.file_source import InMemorySource, LocalFileSource
from usage_analytics.engine.sources.payloads import parse_directory
from usage_analytics.engine.transforms.aggregator import aggregate_visits
from usage_analytics.engine.transforms.buckets import analyze_time_buckets
from usage_analytics.engine.transforms.linker import enrich_top_users, link_users
from usage_analytics.engine.transforms.normalizer import filter_window, normalize_visits
from usage_analytics.engine.transforms.ranking import select_top_users
from usage_analytics.engine.utils.logging import get_logger

logger = get_logger(__name__)


def build_dashboard_report(
    rows: Sequence[Any],
    directory: Sequence[UserDirectoryEntry],
    query: ReportQuery,
) -> DashboardReport:
    """純計算：相同輸入必得相同輸出。未指定查詢區間時回傳空報表。"""
    if not query.has_window:
        logger.warning("未指定查詢區間（start_date / end_date），回傳空的儀表板統計")
        return DashboardReport()

    normalized = normalize_visits(rows, query.timezone)
    in_window = filter_window(normalized.events, query.start_date, query.end_date, query.timezone)

    summaries = aggregate_visits(in_window)
    top = select_top_users(summaries, query.top_n)
    peaks = analyze_time_buckets(in_window, query.timezone)
    linked = link_users(summaries, directory)

    stats = DashboardStats(
        total_visits=len(in_window),
        top_users=enrich_top_users(top, linked),
        top_day=peaks.top_day,
        top_week=peaks.top_week,
        top_month=peaks.top_month,
    )
    logger.info(
        "儀表板 %s：區間內造訪 %s 筆、使用者 %s 位",
        query.dashboard_id or "-",
        stats.total_visits,
        len(summaries),
    )
    return DashboardReport(
        stats=stats,
        linked_users=linked,
        visit_summaries=list(summaries.values()),
        skipped_rows=normalized.skipped,
        out_of_window_rows=len(normalized.events) - len(in_window),
    )


class DashboardReportPipeline(BasePipeline[Dict[str, List[Any]], DashboardReport]):
    """單一儀表板 + 時間區間的造訪報表。"""

    name = "dashboard-report-pipeline"

    def __init__(
        self,
        source: InMemorySource | LocalFileSource,
        query: ReportQuery,
        output_path: Optional[str] = None,
    ) -> None:
        super().__init__(output_path=output_path)
        self.source = source
        self.query = query

    def extract(self) -> Dict[str, List[Any]]:
        if not self.query.has_window:
            # 沒有區間就不必抽取
            return {"rows": [], "directory": []}
        return {
            "rows": self.source.fetch_visit_rows(),
            "directory": self.source.fetch_directory(),
        }

    def transform(self, raw: Dict[str, List[Any]]) -> DashboardReport:
        directory, _ = parse_directory(raw.get("directory") or [], self.query.timezone)
        return build_dashboard_report(raw.get("rows") or [], directory, self.query)
