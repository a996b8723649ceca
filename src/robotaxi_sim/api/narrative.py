"""Narrative generator — plain-English read-out of a metrics snapshot.

Deterministic: same snapshot in, same text out. Served by ``/simulate`` and
used as the advisory reply when no LLM key is configured.
"""

from __future__ import annotations

import math

from robotaxi_sim.formatting import format_money, format_percent
from robotaxi_sim.models.results import LeverAnalysis, MarginStatus, MetricsSnapshot

STRESSED_BREAK_EVEN_PCT = 75.0
"""Break-even utilization above this means the configuration is structurally stressed."""

STRUCTURAL_GAP_PER_MILE = 1.50
"""Required margin improvement above this ($/mile) needs structural change, not tuning."""


def generate_narrative(snapshot: MetricsSnapshot, levers: LeverAnalysis | None = None) -> str:
    """Generate a plain-English narrative from a metrics snapshot.

    Returns a structured text block covering:
      1. Unit economics
      2. Break-even position
      3. Lever ranking (if ``levers`` given)
      4. Structural assessment
    """
    inp = snapshot.inputs
    e = snapshot.economics
    be = snapshot.break_even_utilization_percent

    sections: list[str] = []

    # ── 1. Unit economics ──
    sections.append("=" * 60)
    sections.append("UNIT ECONOMICS")
    sections.append("=" * 60)
    sections.append(
        f"Fleet: {inp.fleet_size:,} vehicles · {inp.vehicles_per_operator:g} vehicles per operator\n"
        f"Utilization: {inp.utilization_percent:g}% · Deadhead: {inp.deadhead_percent:g}%\n"
        f"Fixed daily cost per vehicle: {format_money(e.fixed_daily_cost)} "
        f"(vehicle {format_money(e.vehicle_cost_per_day)} + operators {format_money(e.ops_cost_per_day)})\n"
        f"Paid miles per day: {e.paid_miles_per_day:.1f} of {e.miles_per_day:.1f} driven\n"
        f"Total cost per mile: {format_money(e.total_cost_per_mile)}\n"
        f"Revenue per mile: {format_money(inp.revenue_per_mile)}\n"
        f"Margin per mile: {format_money(e.margin_per_mile)} ({snapshot.status.value})"
    )

    # ── 2. Break-even ──
    sections.append("")
    sections.append("=" * 60)
    sections.append("BREAK-EVEN")
    sections.append("=" * 60)
    if be is None:
        if inp.revenue_per_mile <= inp.variable_cost_per_mile:
            sections.append(
                "Break-even is UNREACHABLE: variable cost per mile "
                f"({format_money(inp.variable_cost_per_mile)}) already meets or exceeds revenue "
                f"({format_money(inp.revenue_per_mile)}). No utilization level closes the gap."
            )
        else:
            sections.append("Break-even is UNREACHABLE within 0–100% utilization under these inputs.")
    else:
        gap = snapshot.gap_to_break_even_points or 0.0
        if gap > 0:
            position = f"{gap:.1f} pts below break-even"
        else:
            position = f"{-gap:.1f} pts of headroom above break-even"
        sections.append(
            f"Break-even utilization: {format_percent(be)}\n"
            f"Current utilization: {format_percent(inp.utilization_percent)} ({position})"
        )

    # ── 3. Levers ──
    if levers is not None and levers.impacts:
        sections.append("")
        sections.append("=" * 60)
        sections.append("LEVER RANKING (by margin impact)")
        sections.append("=" * 60)
        for i, impact in enumerate(levers.impacts, 1):
            delta = (
                f"{'+' if impact.margin_delta >= 0 else '-'}${abs(impact.margin_delta):.2f}/mile"
                if impact.margin_delta is not None else "n/a"
            )
            sections.append(
                f"  {i}. {impact.name:30s} {impact.base_value:g} → {impact.new_value:g}   {delta}"
            )

    # ── 4. Structural assessment ──
    sections.append("")
    sections.append("=" * 60)
    sections.append("STRUCTURAL ASSESSMENT")
    sections.append("=" * 60)

    notes: list[str] = []
    if be is None:
        notes.append("No break-even point exists in range. The configuration is not salvageable by utilization alone.")
    elif be > STRESSED_BREAK_EVEN_PCT:
        notes.append(
            f"Break-even utilization of {format_percent(be)} exceeds {STRESSED_BREAK_EVEN_PCT:.0f}%: "
            "the model is structurally stressed."
        )

    margin = e.margin_per_mile
    if math.isfinite(margin) and -margin > STRUCTURAL_GAP_PER_MILE:
        notes.append(
            f"Closing the {format_money(-margin)}/mile gap exceeds {format_money(STRUCTURAL_GAP_PER_MILE)}/mile: "
            "structural changes may be required (vehicle cost, operator ratio, or pricing)."
        )
    elif not math.isfinite(margin):
        notes.append("No paid miles are driven, so every per-mile metric is undefined.")

    if snapshot.status is MarginStatus.PROFITABLE and not notes:
        notes.append(f"Configuration is profitable at {format_money(margin)}/mile. Stress-test deadhead and utilization.")
    elif not notes:
        notes.append("Gap is within tuning range. Work the top-ranked levers first.")

    for i, note in enumerate(notes, 1):
        sections.append(f"  {i}. {note}")

    return "\n".join(sections)
