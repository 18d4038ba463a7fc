"""比率計算工具。"""

from __future__ import annotations


def percent(part: int, total: int) -> int:
    """四捨五入（0.5 進位）的整數百分比，限制在 0~100；total 為 0 時回傳 0。"""
    if total <= 0:
        return 0
    # 整數運算避免浮點誤差：floor(part / total * 100 + 0.5)
    value = (part * 200 + total) // (2 * total)
    return max(0, min(100, value))
