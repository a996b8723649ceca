"""Lever sensitivity — which single change moves margin per mile the most.

One-at-a-time nudges, each lever applied to the base snapshot on its own:
  - utilization +5 pts
  - deadhead −5 pts
  - vehicles per operator +5
  - vehicle cost −10%
  - variable cost per mile −10%
  - revenue per mile +10%
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.config.inputs import SimulationInputs
from robotaxi_sim.engine.economics import compute_metrics
from robotaxi_sim.models.results import LeverAnalysis, LeverImpact


@dataclass(frozen=True)
class LeverSpec:
    """One candidate change to a single input."""

    name: str
    """Human-readable lever name."""

    field: str
    """``SimulationInputs`` field to change."""

    delta: float
    """Absolute change, or fractional change when mode='relative'."""

    mode: Literal["absolute", "relative"] = "absolute"


DEFAULT_LEVERS: list[LeverSpec] = [
    LeverSpec("Raise utilization", "utilization_percent", 5.0),
    LeverSpec("Cut deadhead", "deadhead_percent", -5.0),
    LeverSpec("More vehicles per operator", "vehicles_per_operator", 5.0),
    LeverSpec("Cheaper vehicle", "vehicle_cost", -0.10, "relative"),
    LeverSpec("Lower variable cost", "variable_cost_per_mile", -0.10, "relative"),
    LeverSpec("Raise fare", "revenue_per_mile", 0.10, "relative"),
]

# Physical bounds the nudged value is clamped to (upper None = unbounded).
_BOUNDS: dict[str, tuple[float, float | None]] = {
    "fleet_size": (0, None),
    "vehicles_per_operator": (1, None),
    "vehicle_cost": (0, None),
    "ops_hours_per_day": (0, 24),
    "deadhead_percent": (0, 100),
    "variable_cost_per_mile": (0, None),
    "revenue_per_mile": (0, None),
    "utilization_percent": (0, 100),
}


def _apply(spec: LeverSpec, base_value: float) -> float:
    if spec.mode == "relative":
        value = base_value * (1 + spec.delta)
    else:
        value = base_value + spec.delta
    low, high = _BOUNDS.get(spec.field, (0, None))
    value = max(value, low)
    if high is not None:
        value = min(value, high)
    if spec.field == "fleet_size":
        value = round(value)
    return value


def rank_levers(
    inputs: SimulationInputs,
    levers: list[LeverSpec] | None = None,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> LeverAnalysis:
    """Rank levers by margin-per-mile improvement (largest first)."""
    if levers is None:
        levers = DEFAULT_LEVERS

    base_margin = compute_metrics(inputs, constants).margin_per_mile

    impacts: list[LeverImpact] = []
    for spec in levers:
        base_value = float(getattr(inputs, spec.field))
        new_value = _apply(spec, base_value)
        new_margin = compute_metrics(inputs.with_value(spec.field, new_value), constants).margin_per_mile

        delta = None
        if math.isfinite(base_margin) and math.isfinite(new_margin):
            delta = new_margin - base_margin

        impacts.append(LeverImpact(
            name=spec.name,
            field=spec.field,
            base_value=base_value,
            new_value=new_value,
            base_margin=base_margin,
            new_margin=new_margin,
            margin_delta=delta,
        ))

    # Largest improvement first; undefined deltas sink to the bottom
    impacts.sort(key=lambda i: (i.margin_delta is None, -(i.margin_delta or 0.0)))

    required = max(0.0, -base_margin) if math.isfinite(base_margin) else None
    return LeverAnalysis(base_margin=base_margin, required_margin_improvement=required, impacts=impacts)
