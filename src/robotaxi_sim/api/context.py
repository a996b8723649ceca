"""Context manifest generator — makes the simulator self-describing for LLMs.

Produces structured context at two detail levels:
  - ``compact``: input schema + outputs + endpoints
  - ``full``:    adds business model, formulas, interpretation guide
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.config.inputs import SLIDER_RANGES, SimulationInputs


class ParameterInfo(BaseModel):
    """One configurable parameter, machine-readable."""
    name: str
    alias: str
    type: str
    default: Any
    description: str
    constraints: dict[str, Any] = Field(default_factory=dict)
    slider: dict[str, Any] | None = None


class OutputFieldInfo(BaseModel):
    name: str
    type: str
    description: str
    unit: str = ""


class EndpointInfo(BaseModel):
    method: str
    path: str
    description: str


class SimulatorContext(BaseModel):
    simulator_name: str
    version: str
    description: str
    business_model: str
    key_formulas: list[dict[str, str]]
    inputs: list[ParameterInfo]
    constants: dict[str, float]
    key_outputs: list[OutputFieldInfo]
    endpoints: list[EndpointInfo]
    interpretation_guide: str


# ═══════════════════════════════════════════════════════════════════════════
# Schema extraction from Pydantic models
# ═══════════════════════════════════════════════════════════════════════════

def _extract_params(model_cls: type[BaseModel]) -> list[ParameterInfo]:
    """Extract parameter info from a Pydantic model class."""
    params: list[ParameterInfo] = []
    for name, field_info in model_cls.model_fields.items():
        constraints: dict[str, Any] = {}
        for attr in ("ge", "gt", "le", "lt"):
            for m in field_info.metadata:
                if getattr(m, attr, None) is not None:
                    constraints[attr] = getattr(m, attr)

        type_str = getattr(field_info.annotation, "__name__", str(field_info.annotation))
        slider = SLIDER_RANGES.get(name)
        params.append(ParameterInfo(
            name=name,
            alias=field_info.alias or name,
            type=type_str,
            default=field_info.default,
            description=field_info.description or "",
            constraints=constraints,
            slider=slider._asdict() if slider else None,
        ))
    return params


_BUSINESS_MODEL = """
Robotaxi Fleet Unit-Economics Simulator

WHAT IT DOES:
Computes the fully-loaded cost per paid mile of one autonomous vehicle and the
resulting margin, from eight operating parameters.

THE BUSINESS:
  - Each vehicle carries a fixed daily cost: its purchase price amortised over
    5 years, plus its share of remote-operator (teleops) wages.
  - A vehicle can drive at most 300 miles/day; utilization scales that down,
    and deadhead (empty repositioning) removes the unpaid share.
  - Fixed cost is spread over paid miles; variable cost is added per mile.
  - Margin per mile = revenue per mile − total cost per mile.

KEY DECISIONS:
  1. What utilization does this configuration need to break even?
  2. Which lever (utilization, deadhead, operator ratio, vehicle price, fares) moves margin most?
  3. Is the configuration salvageable, or does it need structural change?
"""

_INTERPRETATION_GUIDE = """
HOW TO INTERPRET RESULTS:

1. TOTAL COST PER MILE: lower is better. null = no paid miles (utilization 0).
2. MARGIN PER MILE: negative = losing money on every paid mile.
   Status: Losing (< $0), Break-even ($0–$0.25), Profitable (> $0.25).
3. BREAK-EVEN UTILIZATION: utilization at which margin is zero, all else fixed.
   null = unreachable (variable cost ≥ revenue, or above 100%).
   Above 75% = structurally stressed.
4. LEVER RANKING: margin change from one nudge each; rank by delta.
   A required improvement above $1.50/mile usually needs structural change.
5. COST CURVE: y is capped at $10/mile for display; the flagged point is the
   current configuration.
"""

_KEY_FORMULAS = [
    {"name": "Fixed daily cost", "formula": "vehicle_cost / 1825 + 40 × ops_hours_per_day / vehicles_per_operator"},
    {"name": "Paid miles per day", "formula": "300 × utilization × (1 − min(deadhead, 0.95))"},
    {"name": "Total cost per mile", "formula": "fixed_daily_cost / paid_miles_per_day + variable_cost_per_mile"},
    {"name": "Margin per mile", "formula": "revenue_per_mile − total_cost_per_mile"},
    {"name": "Break-even utilization", "formula": "fixed_daily_cost / (300 × (1 − deadhead) × (revenue − variable)) × 100"},
]

_KEY_OUTPUTS = [
    OutputFieldInfo(name="economics.total_cost_per_mile", type="float|null", description="Fully-loaded cost per paid mile", unit="$/mile"),
    OutputFieldInfo(name="economics.margin_per_mile", type="float|null", description="Revenue minus cost per paid mile", unit="$/mile"),
    OutputFieldInfo(name="economics.fixed_daily_cost", type="float", description="Vehicle amortisation + operator cost per day", unit="$/day"),
    OutputFieldInfo(name="economics.paid_miles_per_day", type="float", description="Revenue miles per vehicle per day", unit="miles"),
    OutputFieldInfo(name="break_even_utilization_percent", type="float|null", description="Utilization for zero margin", unit="%"),
    OutputFieldInfo(name="gap_to_break_even_points", type="float|null", description="Break-even minus current utilization", unit="pts"),
    OutputFieldInfo(name="status", type="str", description="Losing / Break-even / Profitable"),
]

_ENDPOINTS = [
    EndpointInfo(method="GET", path="/context", description="This manifest (detail_level=compact|full)."),
    EndpointInfo(method="GET", path="/schema", description="JSON schema for SimulationInputs."),
    EndpointInfo(method="GET", path="/inputs/defaults", description="Default inputs (camelCase)."),
    EndpointInfo(method="GET", path="/presets", description="All named presets."),
    EndpointInfo(method="GET", path="/presets/{name}", description="One named preset."),
    EndpointInfo(method="POST", path="/simulate", description="Metrics snapshot + lever ranking + narrative for partial inputs."),
    EndpointInfo(method="POST", path="/simulate/curve", description="Cost-per-mile curve over one swept input."),
    EndpointInfo(method="POST", path="/simulate/levers", description="Lever ranking by margin impact."),
    EndpointInfo(method="POST", path="/chat", description="Streamed advisory commentary for a question + sim state."),
    EndpointInfo(method="POST", path="/analytics", description="Record a product analytics event."),
]


def build_context(
    detail_level: Literal["compact", "full"] = "full",
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> SimulatorContext:
    """Build the self-describing context manifest."""
    full = detail_level == "full"
    return SimulatorContext(
        simulator_name="Robotaxi Unit Economics Simulator",
        version="1.0",
        description=(
            "Closed-form unit-economics model for robotaxi fleets: cost per mile, margin per mile, "
            "break-even utilization, cost curves and lever sensitivity."
        ),
        business_model=_BUSINESS_MODEL.strip() if full else "",
        key_formulas=_KEY_FORMULAS if full else [],
        inputs=_extract_params(SimulationInputs),
        constants=constants.model_dump(),
        key_outputs=_KEY_OUTPUTS,
        endpoints=_ENDPOINTS,
        interpretation_guide=_INTERPRETATION_GUIDE.strip() if full else "",
    )


def get_inputs_schema() -> dict:
    """Return the JSON Schema for SimulationInputs (camelCase property names)."""
    return SimulationInputs.model_json_schema(by_alias=True)


def get_default_inputs() -> dict:
    """Return default inputs as a camelCase JSON-serializable dict."""
    return SimulationInputs().model_dump(by_alias=True)
