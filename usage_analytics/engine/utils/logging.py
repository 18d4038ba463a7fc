"""分析引擎紀錄器設定（文字 / JSON 格式，可選檔案輸出）。"""

from __future__ import annotations

import json
import logging
import os
import time
from logging import Logger
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from usage_analytics.config.settings import settings

# 允許透過 extra={"context": {...}} 帶入的結構化欄位
_CONTEXT_ATTR = "context"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        context = getattr(record, _CONTEXT_ATTR, None)
        if isinstance(context, dict):
            payload.update(context)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_formatter() -> logging.Formatter:
    log_cfg = settings.logging
    if log_cfg.json_format:
        fmt: logging.Formatter = _JsonFormatter()
    else:
        fmt = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    # UTC or localtime
    fmt.converter = time.localtime if log_cfg.use_localtime else time.gmtime
    return fmt


def _maybe_file_handler() -> logging.Handler | None:
    log_cfg = settings.logging
    if not log_cfg.file_enabled:
        return None
    log_path = log_cfg.file_path
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    fh = RotatingFileHandler(
        log_path, maxBytes=log_cfg.max_bytes, backupCount=log_cfg.backup_count, encoding="utf-8"
    )
    fh.setLevel(log_cfg.file_level or log_cfg.level)
    fh.setFormatter(_build_formatter())
    return fh


def get_logger(name: str) -> Logger:
    """建立帶有預設格式的紀錄器（重複呼叫不會重複掛 handler）。"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_cfg = settings.logging
    logger.setLevel(log_cfg.level)

    ch = logging.StreamHandler()
    ch.setLevel(log_cfg.console_level or log_cfg.level)
    ch.setFormatter(_build_formatter())
    logger.addHandler(ch)

    fh = _maybe_file_handler()
    if fh:
        logger.addHandler(fh)

    # 不向 root 傳遞，避免重複列印
    logger.propagate = False
    return logger
