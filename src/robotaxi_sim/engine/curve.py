"""Cost-per-mile curve over one swept input — the dashboard chart data."""

from __future__ import annotations

import math

from robotaxi_sim.config.constants import DEFAULT_CONSTANTS, ModelConstants
from robotaxi_sim.config.inputs import SimulationInputs
from robotaxi_sim.config.sweep import DEFAULT_SWEEPS, SweepRange, SweepVariable
from robotaxi_sim.engine.economics import compute_metrics
from robotaxi_sim.models.results import CostCurve, CurvePoint

_GRID_EPS = 1e-9


def grid_values(sweep: SweepRange) -> list[float]:
    """x values ``min + i × step`` for i = 0..n, with ``max`` included when on-grid.

    Each value is computed from its index rather than by repeated addition,
    so drift never drops the last point (e.g. 10 → 70 in steps of 1.5).
    """
    n = int(math.floor((sweep.max - sweep.min) / sweep.step + _GRID_EPS))
    return [sweep.min + i * sweep.step for i in range(n + 1)]


def sample_curve(
    inputs: SimulationInputs,
    variable: SweepVariable | str,
    sweep: SweepRange | None = None,
    constants: ModelConstants = DEFAULT_CONSTANTS,
) -> CostCurve:
    """Sample total cost per mile across ``sweep`` for one input.

    Every other input is held at its current value. ``y`` is capped at
    ``constants.display_cost_cap``. At most one point is flagged as the
    current configuration: the sample nearest the live value, provided it
    sits strictly within half a step of it.

    Raises ``pydantic.ValidationError`` if the sweep leaves the input's
    physical bounds (e.g. zero vehicles per operator).
    """
    variable = SweepVariable(variable)
    if sweep is None:
        sweep = DEFAULT_SWEEPS[variable]

    field = variable.field
    live_value = float(getattr(inputs, field))
    xs = grid_values(sweep)

    ys: list[float] = []
    for x in xs:
        metrics = compute_metrics(inputs.with_value(field, x), constants)
        ys.append(min(metrics.total_cost_per_mile, constants.display_cost_cap))

    current_idx: int | None = None
    if xs:
        nearest = min(range(len(xs)), key=lambda i: abs(xs[i] - live_value))
        if abs(xs[nearest] - live_value) < sweep.step / 2:
            current_idx = nearest

    points = [
        CurvePoint(x=x, y=y, is_current_point=(i == current_idx))
        for i, (x, y) in enumerate(zip(xs, ys))
    ]
    return CostCurve(variable=variable, sweep=sweep, points=points)
