"""Tests for YAML scenario loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from robotaxi_sim.config import SimulationInputs
from robotaxi_sim.config.loader import load_inputs, parse_inputs

SCENARIOS = Path(__file__).resolve().parent.parent / "scenarios"


def test_base_case_file_matches_defaults():
    assert load_inputs(SCENARIOS / "base_case.yaml") == SimulationInputs()


def test_partial_file_fills_defaults():
    inputs = load_inputs(SCENARIOS / "stress_high_deadhead.yaml")
    assert inputs.deadhead_percent == 99
    assert inputs.utilization_percent == 30
    assert inputs.vehicle_cost == 170_000


def test_empty_file_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_inputs(path) == SimulationInputs()


def test_top_level_keys_without_wrapper(tmp_path: Path):
    path = tmp_path / "flat.yaml"
    path.write_text("utilizationPercent: 65\nrevenue_per_mile: 3.1\n")
    inputs = load_inputs(path)
    assert inputs.utilization_percent == 65
    assert inputs.revenue_per_mile == pytest.approx(3.1)


def test_out_of_range_value_rejected(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("inputs:\n  vehicles_per_operator: 0\n")
    with pytest.raises(ValidationError):
        load_inputs(path)


def test_non_mapping_rejected(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        load_inputs(path)


def test_parse_inputs_none():
    assert parse_inputs(None) == SimulationInputs()
