"""Named parameter bundles offered in the dashboard preset selector."""

from __future__ import annotations

from enum import Enum

from robotaxi_sim.config.inputs import SimulationInputs


class PresetName(str, Enum):
    BASE_CASE = "base_case"
    EARLY_PILOT = "early_pilot"
    SCALED_NETWORK = "scaled_network"
    MATURE_NETWORK = "mature_network"
    PREMIUM_FLEET = "premium_fleet"


PRESETS: dict[PresetName, SimulationInputs] = {
    PresetName.BASE_CASE: SimulationInputs(),
    # Small launch fleet: heavy remote supervision, lots of empty repositioning.
    PresetName.EARLY_PILOT: SimulationInputs(
        fleet_size=500,
        vehicles_per_operator=2,
        vehicle_cost=250_000,
        ops_hours_per_day=16,
        deadhead_percent=55,
        variable_cost_per_mile=0.80,
        revenue_per_mile=3.00,
        utilization_percent=25,
    ),
    PresetName.SCALED_NETWORK: SimulationInputs(
        fleet_size=5_000,
        vehicles_per_operator=15,
        vehicle_cost=140_000,
        ops_hours_per_day=20,
        deadhead_percent=35,
        variable_cost_per_mile=0.50,
        revenue_per_mile=2.20,
        utilization_percent=55,
    ),
    PresetName.MATURE_NETWORK: SimulationInputs(
        fleet_size=10_000,
        vehicles_per_operator=40,
        vehicle_cost=90_000,
        ops_hours_per_day=24,
        deadhead_percent=25,
        variable_cost_per_mile=0.40,
        revenue_per_mile=1.80,
        utilization_percent=70,
    ),
    PresetName.PREMIUM_FLEET: SimulationInputs(
        fleet_size=1_500,
        vehicles_per_operator=8,
        vehicle_cost=220_000,
        ops_hours_per_day=18,
        deadhead_percent=40,
        variable_cost_per_mile=0.90,
        revenue_per_mile=4.00,
        utilization_percent=45,
    ),
}

PRESET_LABELS: dict[PresetName, str] = {
    PresetName.BASE_CASE: "Base case",
    PresetName.EARLY_PILOT: "Early pilot",
    PresetName.SCALED_NETWORK: "Scaled network",
    PresetName.MATURE_NETWORK: "Mature network",
    PresetName.PREMIUM_FLEET: "Premium fleet",
}


def get_preset(name: str | PresetName) -> SimulationInputs:
    """Look up a preset by name. Raises ``KeyError`` for unknown names."""
    try:
        key = PresetName(name)
    except ValueError:
        raise KeyError(name) from None
    return PRESETS[key]
