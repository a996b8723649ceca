"""YAML scenario files → ``SimulationInputs``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from robotaxi_sim.config.inputs import SimulationInputs


def parse_inputs(data: dict[str, Any] | None) -> SimulationInputs:
    """Build inputs from a partial mapping; missing fields take defaults.

    Accepts snake_case or camelCase keys. An optional top-level ``inputs``
    key is unwrapped so API request bodies and scenario files share a shape.
    """
    data = dict(data or {})
    if isinstance(data.get("inputs"), dict):
        data = data["inputs"]
    return SimulationInputs.model_validate(data)


def load_inputs(path: str | Path) -> SimulationInputs:
    """Load a scenario YAML file. Raises ``pydantic.ValidationError`` on bad values."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Scenario file {path} must contain a mapping, got {type(data).__name__}")
    return parse_inputs(data)
