"""Result types — the contract between engine, API, and dashboard.

Non-finite floats are legal here: ``total_cost_per_mile`` is ``inf`` and
``margin_per_mile`` is ``-inf`` when a vehicle drives no paid miles.
Callers format them through ``robotaxi_sim.formatting``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from robotaxi_sim.config.inputs import SimulationInputs
from robotaxi_sim.config.sweep import SweepRange, SweepVariable


class MarginStatus(str, Enum):
    LOSING = "Losing"
    BREAK_EVEN = "Break-even"
    PROFITABLE = "Profitable"


# ═══════════════════════════════════════════════════════════════════════════
# Unit economics
# ═══════════════════════════════════════════════════════════════════════════

class UnitEconomics(BaseModel):
    """Per-vehicle daily cost build-up and the two headline per-mile KPIs."""

    vehicle_cost_per_day: float
    """vehicle_cost / vehicle_lifetime_days."""

    ops_cost_per_day: float
    """operator_cost_per_hour × ops_hours_per_day / vehicles_per_operator."""

    fixed_daily_cost: float
    """vehicle_cost_per_day + ops_cost_per_day — independent of miles driven."""

    miles_per_day: float
    """max_miles_per_day × utilization."""

    paid_miles_per_day: float
    """miles_per_day × (1 − capped deadhead)."""

    total_cost_per_mile: float
    """fixed_daily_cost / paid_miles_per_day + variable_cost_per_mile, or +inf."""

    margin_per_mile: float
    """revenue_per_mile − total_cost_per_mile, or −inf."""


class MetricsSnapshot(BaseModel):
    """Everything the KPI row needs, computed from one input snapshot."""

    inputs: SimulationInputs
    economics: UnitEconomics
    break_even_utilization_percent: float | None = None
    status: MarginStatus
    gap_to_break_even_points: float | None = Field(
        default=None,
        description="Break-even utilization minus current utilization (percentage points). "
                    "Positive = utilization must rise to break even.",
    )


# ═══════════════════════════════════════════════════════════════════════════
# Cost curve
# ═══════════════════════════════════════════════════════════════════════════

class CurvePoint(BaseModel):
    x: float
    y: float
    """Total cost per mile, capped for display."""
    is_current_point: bool = False


class CostCurve(BaseModel):
    variable: SweepVariable
    sweep: SweepRange
    points: list[CurvePoint]

    @property
    def current_point(self) -> CurvePoint | None:
        return next((p for p in self.points if p.is_current_point), None)


# ═══════════════════════════════════════════════════════════════════════════
# Lever sensitivity
# ═══════════════════════════════════════════════════════════════════════════

class LeverImpact(BaseModel):
    """Margin effect of nudging one input, others held fixed."""

    name: str
    field: str
    base_value: float
    new_value: float
    base_margin: float
    new_margin: float
    margin_delta: float | None
    """new_margin − base_margin; None when either margin is non-finite."""


class LeverAnalysis(BaseModel):
    base_margin: float
    required_margin_improvement: float | None
    """max(0, −base_margin) per mile; None when base margin is non-finite."""
    impacts: list[LeverImpact]
    """Sorted by margin_delta descending, undefined deltas last."""
