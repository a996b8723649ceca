"""Display helpers — the only place infinities become glyphs."""

from __future__ import annotations

import math
from typing import Any


def finite_or_none(value: Any) -> Any:
    """Map non-finite floats to None so JSON stays standard; pass other values through."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def sanitize(obj: Any) -> Any:
    """Recursively apply ``finite_or_none`` to dicts / lists."""
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    return finite_or_none(obj)


def format_money(value: float | None, digits: int = 2) -> str:
    """``$4.37`` / ``-$1.87``; ``∞`` / ``-∞`` for sentinels, ``n/a`` for None."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{digits}f}"


def format_percent(value: float | None, digits: int = 1) -> str:
    if value is None or not math.isfinite(value):
        return "n/a"
    return f"{value:.{digits}f}%"


def fmt(value: Any, digits: int = 2) -> str:
    """Prompt-safe number formatting: anything non-numeric or non-finite is ``n/a``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "n/a"
    if not math.isfinite(value):
        return "n/a"
    return f"{value:.{digits}f}"
