"""外部輸入資料模型：造訪事件、使用者目錄、組織單位。"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from usage_analytics.engine.utils.timeutils import parse_instant

DEFAULT_TIMEZONE = "UTC"

# userCredentials 內可能包含、需要提升到頂層的欄位
_CREDENTIAL_FIELDS = ("username", "lastLogin", "userRoles")


def _context_timezone(info: ValidationInfo) -> str:
    context = info.context or {}
    return context.get("timezone") or DEFAULT_TIMEZONE


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class VisitEvent(_Record):
    """一筆儀表板開啟紀錄。timestamp 一律帶時區。"""
    timestamp: datetime
    username: str = Field(min_length=1)

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("timestamp 必須帶時區")
        return value


class NamedRef(_Record):
    """角色 / 群組參照。"""
    id: str
    display_name: str = Field(default="", alias="displayName")


class OrgUnitRef(_Record):
    """使用者身上的組織單位參照；path 有提供時可判斷子樹歸屬。"""
    id: str
    display_name: str = Field(default="", alias="displayName")
    path: Optional[str] = None


class UserDirectoryEntry(_Record):
    """使用者目錄資料（接受平台巢狀 userCredentials 格式或扁平格式）。"""
    id: str = ""
    username: str = Field(min_length=1)
    first_name: Optional[str] = Field(default=None, alias="firstName")
    surname: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")
    user_roles: List[NamedRef] = Field(default_factory=list, alias="userRoles")
    user_groups: List[NamedRef] = Field(default_factory=list, alias="userGroups")
    organisation_units: List[OrgUnitRef] = Field(default_factory=list, alias="organisationUnits")

    @model_validator(mode="before")
    @classmethod
    def _lift_credentials(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        credentials = data.get("userCredentials")
        if not isinstance(credentials, dict):
            return data
        merged: Dict[str, Any] = dict(data)
        for key in _CREDENTIAL_FIELDS:
            if merged.get(key) is None and credentials.get(key) is not None:
                merged[key] = credentials[key]
        return merged

    @field_validator("last_login", mode="before")
    @classmethod
    def _parse_last_login(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        # 無法解析的登入時間視為從未登入，不讓整筆資料失敗
        return parse_instant(value, _context_timezone(info))

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class OrgUnit(_Record):
    """組織單位節點；path 為以 / 分隔的祖先 id 鏈。"""
    id: str
    display_name: str = Field(default="", alias="displayName")
    path: str = ""
    level: int = 0
    children: List["OrgUnit"] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_from_path(cls, data: Any) -> Any:
        # SQL view 只給 path 時，id 取最後一段、level 取段數
        if not isinstance(data, dict):
            return data
        merged: Dict[str, Any] = dict(data)
        segments = path_segments(merged.get("path") or "")
        if not merged.get("id") and segments:
            merged["id"] = segments[-1]
        if merged.get("level") in (None, "") and segments:
            merged["level"] = len(segments)
        return merged


def path_segments(path: str) -> List[str]:
    """'/a/b/c' → ['a', 'b', 'c']"""
    return [seg for seg in (path or "").split("/") if seg]


OrgUnit.model_rebuild()
