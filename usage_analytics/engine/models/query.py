"""報表查詢參數（不可變；取代前端共用的篩選狀態）。"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from usage_analytics.config.settings import Settings
from usage_analytics.engine.models.aggregates import InactivityStatus
from usage_analytics.engine.utils.timeutils import require_aware, resolve_timezone


class ReportQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    as_of: datetime
    dashboard_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    timezone: str = "UTC"
    top_n: int = Field(default=5, ge=0)
    org_unit_level: Optional[int] = Field(default=None, ge=1)
    inactivity_filter: List[InactivityStatus] = Field(default_factory=list)

    @field_validator("as_of")
    @classmethod
    def _aware_as_of(cls, value: datetime) -> datetime:
        return require_aware(value, "as_of")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    @model_validator(mode="after")
    def _ordered_window(self) -> "ReportQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date 不可晚於 end_date")
        return self

    @property
    def has_window(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @classmethod
    def from_settings(cls, settings: Settings, *, as_of: datetime, **overrides: object) -> "ReportQuery":
        """以設定檔的預設值建立查詢；overrides 中為 None 的值會被忽略。"""
        values = {
            "as_of": as_of,
            "timezone": settings.app.timezone,
            "top_n": settings.engine.top_n,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
