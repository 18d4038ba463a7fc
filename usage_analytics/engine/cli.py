"""使用分析報表指令列介面。"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import List, Optional

import typer
from pydantic import BaseModel, ValidationError

from usage_analytics.config.settings import settings
from usage_analytics.engine.models.aggregates import InactivityStatus
from usage_analytics.engine.models.query import ReportQuery
from usage_analytics.engine.pipelines.dashboard_pipeline import DashboardReportPipeline
from usage_analytics.engine.pipelines.district_pipeline import DistrictEngagementPipeline
from usage_analytics.engine.pipelines.engagement_pipeline import UserEngagementPipeline
from usage_analytics.engine.sources.file_source import LocalFileSource
from usage_analytics.engine.utils.timeutils import parse_instant

app = typer.Typer(help="儀表板使用分析工具：造訪報表、組織單位參與度、使用者近期登入。")


def _parse_date(raw: Optional[str], name: str) -> Optional[date]:
    """解析使用者輸入的日期字串。"""
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"{name} 格式需為 YYYY-MM-DD，例如 2024-06-10") from exc


def _parse_as_of(raw: Optional[str], tz: str) -> datetime:
    """未指定時只在這裡讀一次系統時鐘，之後一路傳入引擎。"""
    if not raw:
        return datetime.now(timezone.utc)
    try:
        parsed = parse_instant(raw, tz)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--timezone") from exc
    if parsed is None:
        raise typer.BadParameter("as-of 需為 ISO-8601 時間，例如 2024-06-10T00:00:00Z")
    return parsed


def _build_query(as_of: datetime, **overrides: object) -> ReportQuery:
    try:
        return ReportQuery.from_settings(settings, as_of=as_of, **overrides)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _emit(report: BaseModel, output: Optional[str]) -> None:
    if output is None:
        typer.echo(json.dumps(report.model_dump(mode="json"), ensure_ascii=False, indent=2))


@app.command("dashboard-report")
def dashboard_report(
    visits: str = typer.Option(..., help="造訪紀錄檔（JSON 或含 timestamp,username 欄位的 CSV）"),
    directory: Optional[str] = typer.Option(None, help="使用者目錄 JSON"),
    start: Optional[str] = typer.Option(None, help="區間起日 (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, help="區間迄日 (YYYY-MM-DD，含當日)"),
    dashboard_id: Optional[str] = typer.Option(None, help="儀表板 id（僅供紀錄）"),
    top_n: Optional[int] = typer.Option(None, min=0, help="排行榜人數，預設讀設定檔"),
    tz: Optional[str] = typer.Option(None, "--timezone", help="當地時區，預設讀設定檔"),
    output: Optional[str] = typer.Option(None, help="輸出 JSON 檔路徑；未指定則印出"),
) -> None:
    """產生單一儀表板在指定區間的造訪報表。"""
    zone = tz or settings.app.timezone
    query = _build_query(
        _parse_as_of(None, zone),
        dashboard_id=dashboard_id,
        start_date=_parse_date(start, "start"),
        end_date=_parse_date(end, "end"),
        top_n=top_n,
        timezone=zone,
    )
    source = LocalFileSource(visits_path=visits, directory_path=directory)
    report = DashboardReportPipeline(source, query, output_path=output).run()
    _emit(report, output)


@app.command("district-engagement")
def district_engagement(
    org_units: str = typer.Option(..., help="組織單位 JSON（物件或 [name, path] 列）"),
    directory: str = typer.Option(..., help="使用者目錄 JSON"),
    visits: Optional[str] = typer.Option(None, help="造訪紀錄檔；提供時計入連續活躍判斷"),
    level: Optional[int] = typer.Option(None, min=1, help="組織單位層級"),
    start: Optional[str] = typer.Option(None, help="區間起日 (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, help="區間迄日 (YYYY-MM-DD，含當日)"),
    as_of: Optional[str] = typer.Option(None, help="基準時間 (ISO-8601)，預設為現在"),
    tz: Optional[str] = typer.Option(None, "--timezone", help="當地時區，預設讀設定檔"),
    output: Optional[str] = typer.Option(None, help="輸出 JSON 檔路徑；未指定則印出"),
) -> None:
    """計算各組織單位的使用者參與度。"""
    zone = tz or settings.app.timezone
    query = _build_query(
        _parse_as_of(as_of, zone),
        start_date=_parse_date(start, "start"),
        end_date=_parse_date(end, "end"),
        org_unit_level=level,
        timezone=zone,
    )
    source = LocalFileSource(visits_path=visits, directory_path=directory, org_units_path=org_units)
    pipeline = DistrictEngagementPipeline(source, query, include_visits=visits is not None, output_path=output)
    _emit(pipeline.run(), output)


@app.command("user-engagement")
def user_engagement(
    directory: str = typer.Option(..., help="使用者目錄 JSON"),
    status: Optional[List[InactivityStatus]] = typer.Option(None, help="不活躍篩選，可重複指定"),
    as_of: Optional[str] = typer.Option(None, help="基準時間 (ISO-8601)，預設為現在"),
    tz: Optional[str] = typer.Option(None, "--timezone", help="當地時區，預設讀設定檔"),
    output: Optional[str] = typer.Option(None, help="輸出 JSON 檔路徑；未指定則印出"),
) -> None:
    """使用者近期登入分類與摘要。"""
    zone = tz or settings.app.timezone
    query = _build_query(_parse_as_of(as_of, zone), inactivity_filter=status or None, timezone=zone)
    source = LocalFileSource(directory_path=directory)
    _emit(UserEngagementPipeline(source, query, output_path=output).run(), output)


if __name__ == "__main__":
    app()
