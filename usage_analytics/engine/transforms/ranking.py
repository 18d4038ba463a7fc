"""Top-N 使用者排行。"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import List, Union

import pandas as pd

from usage_analytics.engine.models.aggregates import VisitSummary

DEFAULT_TOP_N = 5


def select_top_users(
    summaries: Union[Sequence[VisitSummary], Mapping[str, VisitSummary]],
    k: int = DEFAULT_TOP_N,
) -> List[VisitSummary]:
    """
    依 visit_count 由高到低取前 k 名。
    同分時維持輸入順序（彙整時使用者第一次出現的順序），使用穩定排序。
    """
    if isinstance(k, bool) or not isinstance(k, int):
        raise TypeError("k 必須是整數")
    if k < 0:
        raise ValueError("k 不可為負數")
    if isinstance(summaries, Mapping):
        items = list(summaries.values())
    elif isinstance(summaries, Sequence):
        items = list(summaries)
    else:
        raise TypeError("summaries 必須是 VisitSummary 的序列或 dict")
    if not items or k == 0:
        return []

    frame = pd.DataFrame(
        {
            "pos": range(len(items)),
            "visit_count": [s.visit_count for s in items],
        }
    )
    ranked = frame.sort_values("visit_count", ascending=False, kind="stable").head(k)
    return [items[int(pos)] for pos in ranked["pos"]]
