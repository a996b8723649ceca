"""Tests for engine/economics.py — hand-calculated expected values."""

from __future__ import annotations

import math

import numpy as np
import pytest

from robotaxi_sim.config import SimulationInputs
from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.engine.economics import (
    BREAK_EVEN_BAND,
    classify_margin,
    compute_metrics,
    compute_snapshot,
)
from robotaxi_sim.models import MarginStatus


# Base case fixed cost: 170000/1825 + 40×20/5 = 93.1507 + 160 = 253.1507 $/day
BASE_FIXED = 170_000 / 1_825 + 40 * 20 / 5
# Paid miles: 300 × 0.40 × (1 − 0.44) = 67.2
BASE_PAID = 300 * 0.40 * 0.56


class TestComputeMetrics:

    def test_fixed_cost_breakdown(self, base_inputs: SimulationInputs):
        m = compute_metrics(base_inputs)
        assert m.vehicle_cost_per_day == pytest.approx(93.150685, rel=1e-6)
        assert m.ops_cost_per_day == pytest.approx(160.0)
        assert m.fixed_daily_cost == pytest.approx(BASE_FIXED)

    def test_mileage(self, base_inputs: SimulationInputs):
        m = compute_metrics(base_inputs)
        assert m.miles_per_day == pytest.approx(120.0)
        assert m.paid_miles_per_day == pytest.approx(BASE_PAID)

    def test_base_case_cost_and_margin(self, base_inputs: SimulationInputs):
        m = compute_metrics(base_inputs)
        # 253.1507 / 67.2 + 0.60 = 4.3671
        assert m.total_cost_per_mile == pytest.approx(4.3671, abs=1e-4)
        assert m.margin_per_mile == pytest.approx(-1.8671, abs=1e-4)

    def test_total_at_least_variable(self, base_inputs: SimulationInputs):
        for util in (10, 40, 90, 100):
            m = compute_metrics(base_inputs.with_value("utilization_percent", util))
            assert m.total_cost_per_mile >= base_inputs.variable_cost_per_mile

    def test_zero_utilization_is_infinite(self, zero_util_inputs: SimulationInputs):
        m = compute_metrics(zero_util_inputs)
        assert m.paid_miles_per_day == 0
        assert m.total_cost_per_mile == math.inf
        assert m.margin_per_mile == -math.inf

    def test_deadhead_capped_at_95_percent(self, base_inputs: SimulationInputs):
        at_99 = compute_metrics(base_inputs.with_value("deadhead_percent", 99))
        at_95 = compute_metrics(base_inputs.with_value("deadhead_percent", 95))
        at_100 = compute_metrics(base_inputs.with_value("deadhead_percent", 100))
        assert math.isfinite(at_99.total_cost_per_mile)
        # 300 × 0.40 × 0.05 = 6 paid miles
        assert at_99.paid_miles_per_day == pytest.approx(6.0)
        assert at_99.total_cost_per_mile == pytest.approx(at_95.total_cost_per_mile)
        assert at_100.total_cost_per_mile == pytest.approx(at_95.total_cost_per_mile)

    def test_pure_same_inputs_same_outputs(self, base_inputs: SimulationInputs):
        assert compute_metrics(base_inputs) == compute_metrics(base_inputs)

    def test_custom_constants(self, base_inputs: SimulationInputs):
        cheap_ops = ModelConstants(operator_cost_per_hour=20)
        m = compute_metrics(base_inputs, cheap_ops)
        assert m.ops_cost_per_day == pytest.approx(80.0)
        assert m.total_cost_per_mile < compute_metrics(base_inputs).total_cost_per_mile

    def test_default_constants(self):
        assert DEFAULT_CONSTANTS.operator_cost_per_hour == 40
        assert DEFAULT_CONSTANTS.vehicle_lifetime_days == 1825
        assert DEFAULT_CONSTANTS.max_miles_per_day == 300


class TestMonotonicity:

    def _costs(self, inputs: SimulationInputs, field: str, values) -> np.ndarray:
        return np.array([
            compute_metrics(inputs.with_value(field, float(v))).total_cost_per_mile for v in values
        ])

    def test_cost_falls_with_utilization(self, base_inputs: SimulationInputs):
        costs = self._costs(base_inputs, "utilization_percent", np.linspace(5, 100, 40))
        assert np.all(np.diff(costs) < 0)

    def test_cost_rises_with_deadhead(self, base_inputs: SimulationInputs):
        costs = self._costs(base_inputs, "deadhead_percent", np.linspace(0, 95, 40))
        assert np.all(np.diff(costs) > 0)

    def test_cost_falls_with_vehicles_per_operator(self, base_inputs: SimulationInputs):
        costs = self._costs(base_inputs, "vehicles_per_operator", np.linspace(1, 60, 30))
        assert np.all(np.diff(costs) < 0)

    def test_cost_rises_with_vehicle_cost(self, base_inputs: SimulationInputs):
        costs = self._costs(base_inputs, "vehicle_cost", np.linspace(50_000, 300_000, 20))
        assert np.all(np.diff(costs) > 0)


class TestClassifyMargin:

    @pytest.mark.parametrize("margin, status", [
        (-1.87, MarginStatus.LOSING),
        (-0.0001, MarginStatus.LOSING),
        (-math.inf, MarginStatus.LOSING),
        (0.0, MarginStatus.BREAK_EVEN),
        (BREAK_EVEN_BAND, MarginStatus.BREAK_EVEN),
        (0.2501, MarginStatus.PROFITABLE),
        (1.5, MarginStatus.PROFITABLE),
    ])
    def test_thresholds(self, margin: float, status: MarginStatus):
        assert classify_margin(margin) == status

    def test_status_labels(self):
        assert MarginStatus.LOSING.value == "Losing"
        assert MarginStatus.BREAK_EVEN.value == "Break-even"
        assert MarginStatus.PROFITABLE.value == "Profitable"


class TestSnapshot:

    def test_base_case_snapshot(self, base_inputs: SimulationInputs):
        s = compute_snapshot(base_inputs)
        assert s.inputs == base_inputs
        assert s.status == MarginStatus.LOSING
        # 253.1507 / (300 × 0.56 × 1.90) = 79.31%
        assert s.break_even_utilization_percent == pytest.approx(79.308, abs=1e-3)
        assert s.gap_to_break_even_points == pytest.approx(39.308, abs=1e-3)

    def test_profitable_scenario(self, base_inputs: SimulationInputs):
        inputs = (
            base_inputs
            .with_value("utilization_percent", 85)
            .with_value("deadhead_percent", 20)
            .with_value("vehicles_per_operator", 30)
            .with_value("revenue_per_mile", 3.0)
        )
        s = compute_snapshot(inputs)
        # fixed = 93.15 + 26.67 = 119.82; paid = 300 × 0.85 × 0.8 = 204
        assert s.economics.total_cost_per_mile == pytest.approx(119.817 / 204 + 0.60, abs=1e-3)
        assert s.status == MarginStatus.PROFITABLE
        assert s.gap_to_break_even_points < 0

    def test_no_break_even_no_gap(self, base_inputs: SimulationInputs):
        inputs = base_inputs.with_value("revenue_per_mile", 0.60)
        s = compute_snapshot(inputs)
        assert s.break_even_utilization_percent is None
        assert s.gap_to_break_even_points is None
