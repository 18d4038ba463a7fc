"""報表 Pipeline 抽象基底類別（抽取 → 轉換 → 輸出，含計時與錯誤保護）。"""

from __future__ import annotations

import json
import time
import traceback
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel

from usage_analytics.engine.utils.logging import get_logger

logger = get_logger(__name__)

RawT = TypeVar("RawT")
OutT = TypeVar("OutT", bound=BaseModel)


class BasePipeline(ABC, Generic[RawT, OutT]):
    """所有報表 Pipeline 的共同介面。轉換階段必須是純函式，不讀時鐘、不做 I/O。"""

    name: str = "base-pipeline"

    def __init__(self, output_path: Optional[Union[str, Path]] = None) -> None:
        self.output_path = Path(output_path) if output_path else None

    @abstractmethod
    def extract(self) -> RawT:
        """實作資料抽取邏輯。"""

    @abstractmethod
    def transform(self, raw: RawT) -> OutT:
        """實作資料轉換邏輯。"""

    def load(self, report: OutT) -> None:
        """預設輸出：有指定 output_path 時寫成 JSON 檔。"""
        if self.output_path is None:
            return
        if self.output_path.parent and not self.output_path.parent.exists():
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with self.output_path.open("w", encoding="utf-8") as f:
            json.dump(report.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
        logger.info("[%s] 報表已寫入 %s", self.name, self.output_path)

    def run(self) -> OutT:
        """執行 Pipeline 全流程並回傳報表。"""
        start_ts = time.time()
        logger.info("開始執行 Pipeline：%s", self.name)
        try:
            raw = self.extract()
            logger.info("[%s] 抽取完成（%.2fs）", self.name, time.time() - start_ts)

            t0 = time.time()
            report = self.transform(raw)
            logger.info("[%s] 轉換完成（%.2fs）", self.name, time.time() - t0)

            t1 = time.time()
            self.load(report)
            logger.info("[%s] 輸出完成（%.2fs）", self.name, time.time() - t1)

            logger.info("Pipeline 完成：%s（總耗時 %.2fs）", self.name, time.time() - start_ts)
            return report
        except Exception as e:
            logger.error("Pipeline 失敗：%s | %s", self.name, e)
            logger.debug("Traceback:\n%s", traceback.format_exc())
            raise
