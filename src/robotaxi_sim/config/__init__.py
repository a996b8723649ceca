"""Configuration models — inputs, constants, presets, service settings."""

from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.config.inputs import SLIDER_RANGES, SimulationInputs, SliderRange
from robotaxi_sim.config.presets import PRESET_LABELS, PRESETS, PresetName, get_preset
from robotaxi_sim.config.settings import AppSettings

__all__ = [
    "DEFAULT_CONSTANTS",
    "ModelConstants",
    "SLIDER_RANGES",
    "SimulationInputs",
    "SliderRange",
    "PRESET_LABELS",
    "PRESETS",
    "PresetName",
    "get_preset",
    "AppSettings",
]
