"""Result models — engine output contracts."""

from robotaxi_sim.models.results import (
    CostCurve,
    CurvePoint,
    LeverAnalysis,
    LeverImpact,
    MarginStatus,
    MetricsSnapshot,
    UnitEconomics,
)

__all__ = [
    "CostCurve",
    "CurvePoint",
    "LeverAnalysis",
    "LeverImpact",
    "MarginStatus",
    "MetricsSnapshot",
    "UnitEconomics",
]
