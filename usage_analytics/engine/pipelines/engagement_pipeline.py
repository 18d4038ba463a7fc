"""使用者參與度 Pipeline：近期登入分類、摘要與不活躍篩選。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from usage_analytics.config.settings import EngineSettings, settings
from usage_analytics.engine.models.aggregates import UserEngagementReport
from usage_analytics.engine.models.query import ReportQuery
from usage_analytics.engine.models.records import UserDirectoryEntry
from usage_analytics.engine.pipelines.base import BasePipeline
from usage_analytics.engine.sources.file_source import InMemorySource, LocalFileSource
from usage_analytics.engine.sources.payloads import parse_directory
from usage_analytics.engine.transforms.recency import classify_directory, filter_inactive, summarize_recency


def build_user_engagement_report(
    directory: Sequence[UserDirectoryEntry],
    query: ReportQuery,
    options: Optional[EngineSettings] = None,
) -> UserEngagementReport:
    options = options or EngineSettings()
    selected = filter_inactive(
        directory,
        query.as_of,
        query.inactivity_filter,
        inactive_days=options.recency_month_days,
    )
    users = classify_directory(
        selected,
        query.as_of,
        week_days=options.recency_week_days,
        month_days=options.recency_month_days,
    )
    return UserEngagementReport(users=users, summary=summarize_recency(u.access_recency for u in users))


class UserEngagementPipeline(BasePipeline[Dict[str, List[Any]], UserEngagementReport]):
    name = "user-engagement-pipeline"

    def __init__(
        self,
        source: InMemorySource | LocalFileSource,
        query: ReportQuery,
        options: Optional[EngineSettings] = None,
        output_path: Optional[str] = None,
    ) -> None:
        super().__init__(output_path=output_path)
        self.source = source
        self.query = query
        self.options = options or settings.engine

    def extract(self) -> Dict[str, List[Any]]:
        return {"directory": self.source.fetch_directory()}

    def transform(self, raw: Dict[str, List[Any]]) -> UserEngagementReport:
        directory, _ = parse_directory(raw.get("directory") or [], self.query.timezone)
        return build_user_engagement_report(directory, self.query, self.options)
