"""Fixed model constants — process-wide, not exposed as sliders."""

from pydantic import BaseModel, ConfigDict, Field


class ModelConstants(BaseModel):
    """Constants baked into the cost model.

    These are not user inputs in the dashboard; they are grouped here so
    tests and direct engine callers can see every number the formula uses.
    """

    model_config = ConfigDict(frozen=True)

    operator_cost_per_hour: float = Field(
        default=40.0, ge=0, description="Fully-loaded remote operator cost ($/hour)",
    )
    vehicle_lifetime_days: float = Field(
        default=1825.0, gt=0, description="Straight-line amortisation period for the vehicle (days, 5 years)",
    )
    max_miles_per_day: float = Field(
        default=300.0, gt=0, description="Miles a vehicle drives per day at 100% utilization",
    )
    max_deadhead_fraction: float = Field(
        default=0.95, ge=0, lt=1.0,
        description="Hard cap on the deadhead fraction so paid miles never reach zero from deadhead alone",
    )
    display_cost_cap: float = Field(
        default=10.0, gt=0, description="Chart y-axis cap for cost per mile ($/mile)",
    )


DEFAULT_CONSTANTS = ModelConstants()
