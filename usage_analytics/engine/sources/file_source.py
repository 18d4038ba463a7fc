"""本機檔案 / 記憶體資料來源（JSON 或 CSV），提供 Pipeline 抽取階段使用。"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from usage_analytics.engine.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


class InMemorySource:
    """直接包裝已在記憶體中的原始紀錄（API 與測試使用）。"""

    def __init__(
        self,
        visit_rows: Optional[Sequence[Any]] = None,
        directory: Optional[Sequence[Any]] = None,
        org_units: Optional[Sequence[Any]] = None,
    ) -> None:
        self.visit_rows = list(visit_rows or [])
        self.directory = list(directory or [])
        self.org_units = list(org_units or [])

    def fetch_visit_rows(self) -> List[Any]:
        return list(self.visit_rows)

    def fetch_directory(self) -> List[Any]:
        return list(self.directory)

    def fetch_org_units(self) -> List[Any]:
        return list(self.org_units)


class LocalFileSource:
    """從本機檔案讀取三種外部資料；未設定路徑的資料回傳空清單。"""

    def __init__(
        self,
        visits_path: Optional[PathLike] = None,
        directory_path: Optional[PathLike] = None,
        org_units_path: Optional[PathLike] = None,
    ) -> None:
        self.visits_path = Path(visits_path) if visits_path else None
        self.directory_path = Path(directory_path) if directory_path else None
        self.org_units_path = Path(org_units_path) if org_units_path else None

    # ------------------------------
    # 讀檔工具
    # ------------------------------
    @staticmethod
    def _read_json(path: Path, list_keys: Sequence[str]) -> List[Any]:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        # 平台 API 常見包裝：{"users": [...]} 或 {"listGrid": {"rows": [...]}}
        if isinstance(data, dict):
            for key in list_keys:
                if isinstance(data.get(key), list):
                    return data[key]
            rows = (data.get("listGrid") or {}).get("rows")
            if isinstance(rows, list):
                return rows
            raise ValueError(f"{path} 內找不到資料清單（預期鍵：{', '.join(list_keys)}）")
        if not isinstance(data, list):
            raise ValueError(f"{path} 的內容必須是 JSON 陣列")
        return data

    @staticmethod
    def _read_csv(path: Path) -> List[Dict[str, Any]]:
        # 全部以字串讀入，時間解析交給正規化階段
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        logger.info("讀取 %s：%s 筆", path, len(df))
        return df.to_dict(orient="records")

    def _load(self, path: Optional[PathLike], list_keys: Sequence[str]) -> List[Any]:
        if path is None:
            return []
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"找不到資料檔：{path}")
        if path.suffix.lower() == ".csv":
            return self._read_csv(path)
        records = self._read_json(path, list_keys)
        logger.info("讀取 %s：%s 筆", path, len(records))
        return records

    # ------------------------------
    # 對外介面
    # ------------------------------
    def fetch_visit_rows(self) -> List[Any]:
        return self._load(self.visits_path, ("rows", "visits"))

    def fetch_directory(self) -> List[Any]:
        return self._load(self.directory_path, ("users", "directory"))

    def fetch_org_units(self) -> List[Any]:
        return self._load(self.org_units_path, ("organisationUnits", "orgUnits"))
