"""Engine — pure unit-economics computation."""

from robotaxi_sim.engine.economics import (
    classify_margin,
    compute_break_even_utilization,
    compute_metrics,
    compute_snapshot,
)
from robotaxi_sim.engine.curve import grid_values, sample_curve
from robotaxi_sim.engine.levers import DEFAULT_LEVERS, LeverSpec, rank_levers

__all__ = [
    "classify_margin",
    "compute_break_even_utilization",
    "compute_metrics",
    "compute_snapshot",
    "grid_values",
    "sample_curve",
    "DEFAULT_LEVERS",
    "LeverSpec",
    "rank_levers",
]
