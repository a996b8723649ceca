"""Chart sweep configuration — which input the x-axis varies, and over what grid."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_SWEEP_POINTS = 10_000
"""Upper bound on (max − min) / step for one curve."""


class SweepVariable(str, Enum):
    """Inputs the cost curve can be plotted against."""

    UTILIZATION = "utilization"
    DEADHEAD = "deadhead"
    VEHICLES_PER_OPERATOR = "vehicles_per_operator"

    @property
    def field(self) -> str:
        """Name of the ``SimulationInputs`` field this variable sweeps."""
        return _SWEEP_FIELDS[self]

    @property
    def label(self) -> str:
        return _SWEEP_LABELS[self]


_SWEEP_FIELDS = {
    SweepVariable.UTILIZATION: "utilization_percent",
    SweepVariable.DEADHEAD: "deadhead_percent",
    SweepVariable.VEHICLES_PER_OPERATOR: "vehicles_per_operator",
}

_SWEEP_LABELS = {
    SweepVariable.UTILIZATION: "Utilization (%)",
    SweepVariable.DEADHEAD: "Deadhead (%)",
    SweepVariable.VEHICLES_PER_OPERATOR: "Vehicles per Operator",
}


class SweepRange(BaseModel):
    """Inclusive sampling grid ``min, min + step, …, max``."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    min: float = Field(description="First sampled x value")
    max: float = Field(description="Last sampled x value (inclusive)")
    step: float = Field(gt=0, description="Grid spacing")

    @model_validator(mode="after")
    def _check_order(self) -> SweepRange:
        if self.max < self.min:
            raise ValueError(f"sweep max ({self.max}) must be >= min ({self.min})")
        if (self.max - self.min) / self.step > MAX_SWEEP_POINTS:
            raise ValueError(f"sweep would sample more than {MAX_SWEEP_POINTS} points")
        return self


DEFAULT_SWEEPS: dict[SweepVariable, SweepRange] = {
    SweepVariable.UTILIZATION: SweepRange(min=10, max=90, step=2),
    SweepVariable.DEADHEAD: SweepRange(min=10, max=70, step=1.5),
    SweepVariable.VEHICLES_PER_OPERATOR: SweepRange(min=2, max=60, step=1.5),
}
