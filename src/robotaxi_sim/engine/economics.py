"""Per-mile cost, margin, and break-even utilization.

Pure arithmetic: one ``SimulationInputs`` snapshot → metrics. Nothing here
raises for a valid snapshot; undefined results come back as ``inf``,
``-inf`` or ``None`` and the presentation layer formats them.
"""

from __future__ import annotations

import math

from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.config.inputs import SimulationInputs
from robotaxi_sim.models.results import MarginStatus, MetricsSnapshot, UnitEconomics

BREAK_EVEN_BAND = 0.25
"""Margins in [0, BREAK_EVEN_BAND] $/mile are reported as break-even."""


def _fixed_daily_cost(inputs: SimulationInputs, constants: ModelConstants) -> tuple[float, float, float]:
    vehicle_cost_per_day = inputs.vehicle_cost / constants.vehicle_lifetime_days
    ops_cost_per_day = (constants.operator_cost_per_hour * inputs.ops_hours_per_day) / inputs.vehicles_per_operator
    return vehicle_cost_per_day, ops_cost_per_day, vehicle_cost_per_day + ops_cost_per_day


def _deadhead_fraction(inputs: SimulationInputs, constants: ModelConstants) -> float:
    return min(inputs.deadhead_percent / 100.0, constants.max_deadhead_fraction)


def compute_metrics(
    inputs: SimulationInputs,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> UnitEconomics:
    """Compute total cost per mile and margin per mile."""
    vehicle_cost_per_day, ops_cost_per_day, fixed_daily_cost = _fixed_daily_cost(inputs, constants)

    utilization = inputs.utilization_percent / 100.0
    deadhead = _deadhead_fraction(inputs, constants)

    miles_per_day = constants.max_miles_per_day * utilization
    paid_miles_per_day = miles_per_day * (1.0 - deadhead)

    if paid_miles_per_day <= 0:
        total_cost_per_mile = math.inf
        margin_per_mile = -math.inf
    else:
        total_cost_per_mile = fixed_daily_cost / paid_miles_per_day + inputs.variable_cost_per_mile
        margin_per_mile = inputs.revenue_per_mile - total_cost_per_mile

    return UnitEconomics(
        vehicle_cost_per_day=vehicle_cost_per_day,
        ops_cost_per_day=ops_cost_per_day,
        fixed_daily_cost=fixed_daily_cost,
        miles_per_day=miles_per_day,
        paid_miles_per_day=paid_miles_per_day,
        total_cost_per_mile=total_cost_per_mile,
        margin_per_mile=margin_per_mile,
    )


def compute_break_even_utilization(
    inputs: SimulationInputs,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> float | None:
    """Utilization (%) at which margin per mile is exactly zero.

    Solving ``revenue − (fixed / (max_miles × u × (1 − d)) + variable) = 0``
    for ``u``. Returns None when the per-mile spread is not positive, when
    no paid miles are possible, or when the answer falls outside 0–100%.
    """
    spread = inputs.revenue_per_mile - inputs.variable_cost_per_mile
    if spread <= 0:
        return None

    paid_ratio = 1.0 - _deadhead_fraction(inputs, constants)
    if paid_ratio <= 0:
        return None

    _, _, fixed_daily_cost = _fixed_daily_cost(inputs, constants)
    break_even_pct = fixed_daily_cost / (constants.max_miles_per_day * paid_ratio * spread) * 100.0

    if not 0.0 <= break_even_pct <= 100.0:
        return None
    return break_even_pct


def classify_margin(margin_per_mile: float) -> MarginStatus:
    """Status badge: Losing (< 0), Break-even (≤ $0.25), Profitable."""
    if margin_per_mile < 0:
        return MarginStatus.LOSING
    if margin_per_mile <= BREAK_EVEN_BAND:
        return MarginStatus.BREAK_EVEN
    return MarginStatus.PROFITABLE


def compute_snapshot(
    inputs: SimulationInputs,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> MetricsSnapshot:
    """Metrics, break-even and status from the same input snapshot."""
    economics = compute_metrics(inputs, constants)
    break_even = compute_break_even_utilization(inputs, constants)
    gap = break_even - inputs.utilization_percent if break_even is not None else None
    return MetricsSnapshot(
        inputs=inputs,
        economics=economics,
        break_even_utilization_percent=break_even,
        status=classify_margin(economics.margin_per_mile),
        gap_to_break_even_points=gap,
    )
