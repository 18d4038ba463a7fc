"""設定讀取模組（儀表板使用分析引擎；YAML + 環境變數覆寫）。"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
CONFIG_PATH = BASE_DIR / "config" / "settings.yaml"


# =========================
# 設定模型
# =========================
class APISettings(BaseModel):
    prefix: str = "/api"
    docs_url: str = "/docs"
    openapi_url: str = "/openapi.json"
    cors_origins: List[str] = ["*"]


class AppSettings(BaseModel):
    name: str = "儀表板使用分析"
    environment: str = "development"
    timezone: str = "UTC"


class EngineSettings(BaseModel):
    """分析引擎的預設參數（引擎本身不讀設定，由 Pipeline / CLI / API 轉成 ReportQuery）。"""
    top_n: int = 5
    recency_week_days: int = 7
    recency_month_days: int = 30
    consistency_weeks: int = 4
    views_per_active_user: int = 3   # dashboard_views 估算倍數（非真實瀏覽數）
    estimate_dashboard_views: bool = True
    never_label: str = "Never"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    use_localtime: bool = False
    file_enabled: bool = False
    file_path: str = "logs/usage_analytics.log"
    file_level: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    console_level: Optional[str] = None


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app: AppSettings = AppSettings()
    api: APISettings = APISettings()
    engine: EngineSettings = EngineSettings()
    logging: LoggingSettings = LoggingSettings()


# =========================
# 載入與環境覆寫
# =========================
def _load_yaml_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        return data if isinstance(data, dict) else {}


def _env(key: str, default: Any) -> Any:
    val = os.getenv(key)
    return default if val is None or val == "" else val


def _env_bool(key: str, default: Any) -> bool:
    return str(_env(key, default)).lower() in ("1", "true", "yes")


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    # api
    api = cfg.setdefault("api", {})
    api["prefix"] = _env("API_PREFIX", api.get("prefix", "/api"))
    api["docs_url"] = _env("API_DOCS_URL", api.get("docs_url", "/docs"))
    api["openapi_url"] = _env("API_OPENAPI_URL", api.get("openapi_url", "/openapi.json"))
    origins = _env("API_CORS_ORIGINS", None)
    if origins is not None:
        api["cors_origins"] = [o.strip() for o in str(origins).split(",") if o.strip()]

    # app
    app = cfg.setdefault("app", {})
    app["environment"] = _env("APP_ENV", app.get("environment", "development"))
    app["timezone"] = _env("APP_TIMEZONE", app.get("timezone", "UTC"))

    # engine
    eng = cfg.setdefault("engine", {})
    defaults = EngineSettings()
    eng["top_n"] = int(_env("ENGINE_TOP_N", eng.get("top_n", defaults.top_n)))
    eng["recency_week_days"] = int(
        _env("ENGINE_RECENCY_WEEK_DAYS", eng.get("recency_week_days", defaults.recency_week_days))
    )
    eng["recency_month_days"] = int(
        _env("ENGINE_RECENCY_MONTH_DAYS", eng.get("recency_month_days", defaults.recency_month_days))
    )
    eng["consistency_weeks"] = int(
        _env("ENGINE_CONSISTENCY_WEEKS", eng.get("consistency_weeks", defaults.consistency_weeks))
    )
    eng["views_per_active_user"] = int(
        _env("ENGINE_VIEWS_PER_ACTIVE_USER", eng.get("views_per_active_user", defaults.views_per_active_user))
    )
    eng["estimate_dashboard_views"] = _env_bool(
        "ENGINE_ESTIMATE_VIEWS", eng.get("estimate_dashboard_views", defaults.estimate_dashboard_views)
    )

    # logging
    log = cfg.setdefault("logging", {})
    log["level"] = _env("LOG_LEVEL", log.get("level", "INFO"))
    log["json_format"] = _env_bool("LOG_JSON", log.get("json_format", False))
    log["use_localtime"] = _env_bool("LOG_LOCALTIME", log.get("use_localtime", False))
    log["file_enabled"] = _env_bool("LOG_FILE_ENABLED", log.get("file_enabled", False))
    log["file_path"] = _env("LOG_FILE_PATH", log.get("file_path", "logs/usage_analytics.log"))
    log["file_level"] = _env("LOG_FILE_LEVEL", log.get("file_level", log.get("level", "INFO")))
    log["max_bytes"] = int(_env("LOG_MAX_BYTES", log.get("max_bytes", 10 * 1024 * 1024)))
    log["backup_count"] = int(_env("LOG_BACKUP_COUNT", log.get("backup_count", 5)))
    log["console_level"] = _env("LOG_CONSOLE_LEVEL", log.get("console_level", log.get("level", "INFO")))

    return cfg


@lru_cache
def get_settings() -> Settings:
    """取得設定，使用快取避免重複 IO。"""
    data = _load_yaml_config(CONFIG_PATH)
    merged = _apply_env_overrides(data)
    return Settings.model_validate(merged)


settings = get_settings()
