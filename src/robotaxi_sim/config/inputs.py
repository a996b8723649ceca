"""Simulation inputs — the eight operating parameters behind every KPI."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SimulationInputs(BaseModel):
    """One immutable snapshot of the operating parameters.

    Bounds here are physical (no negative costs, percentages within 0–100).
    The narrower slider ranges live in ``SLIDER_RANGES`` so that API callers
    can still probe values the dashboard never offers, e.g. 0% utilization.
    Field names are snake_case; the JSON wire format is camelCase.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False,
    )

    fleet_size: int = Field(default=2_000, ge=0, description="Vehicles in the fleet")
    vehicles_per_operator: float = Field(
        default=5.0, gt=0, description="Vehicles supervised by one remote operator",
    )
    vehicle_cost: float = Field(default=170_000.0, ge=0, description="Purchase cost per vehicle ($)")
    ops_hours_per_day: float = Field(default=20.0, ge=0, le=24, description="Operating hours per day")
    deadhead_percent: float = Field(
        default=44.0, ge=0, le=100,
        description="Share of driven miles with no paying passenger (%). Capped at 95% inside the model.",
    )
    variable_cost_per_mile: float = Field(
        default=0.60, ge=0, description="Energy, maintenance, cleaning, insurance per mile ($/mile)",
    )
    revenue_per_mile: float = Field(default=2.50, ge=0, description="Fare revenue per paid mile ($/mile)")
    utilization_percent: float = Field(
        default=40.0, ge=0, le=100, description="Share of maximum daily miles actually driven (%)",
    )

    def with_value(self, field: str, value: float) -> SimulationInputs:
        """Return a copy with one field replaced (validated)."""
        data = self.model_dump()
        data[field] = value
        return SimulationInputs.model_validate(data)


class SliderRange(NamedTuple):
    """Dashboard slider bounds for one input."""

    label: str
    min: float
    max: float
    step: float
    unit: str


SLIDER_RANGES: dict[str, SliderRange] = {
    "fleet_size": SliderRange("Fleet Size", 500, 10_000, 100, "vehicles"),
    "utilization_percent": SliderRange("Utilization", 10, 90, 1, "%"),
    "vehicles_per_operator": SliderRange("Vehicles per Operator", 2, 60, 1, "vehicles/operator"),
    "vehicle_cost": SliderRange("Vehicle Cost", 50_000, 300_000, 5_000, "$"),
    "ops_hours_per_day": SliderRange("Ops Hours / Day", 8, 24, 1, "hours"),
    "deadhead_percent": SliderRange("Deadhead", 10, 70, 1, "%"),
    "variable_cost_per_mile": SliderRange("Variable Cost / Mile", 0.20, 2.00, 0.05, "$/mile"),
    "revenue_per_mile": SliderRange("Revenue / Mile", 1.00, 5.00, 0.10, "$/mile"),
}
