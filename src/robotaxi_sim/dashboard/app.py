"""Robotaxi Unit Economics — Streamlit dashboard.

Layout: sidebar presets + sliders → main area with KPI cards, cost curve,
lever ranking, and the Ask AI panel.
The slider values in ``st.session_state`` are the only mutable state; every
rerun builds a fresh ``SimulationInputs`` snapshot and recomputes from it.

Run with:
    streamlit run src/robotaxi_sim/dashboard/app.py
"""

from __future__ import annotations

import uuid

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from robotaxi_sim.api.advisor import (
    ERROR_REPLY,
    Advisor,
    build_sim_state,
    create_openai_client,
    render_structured_reply,
)
from robotaxi_sim.api.store import (
    ChatEvent,
    EventStore,
    InMemoryEventStore,
    SupabaseEventStore,
    check_rate_limit,
    log_chat_event,
)
from robotaxi_sim.api.streaming import StreamAssembler
from robotaxi_sim.config import (
    DEFAULT_CONSTANTS,
    PRESET_LABELS,
    PRESETS,
    SLIDER_RANGES,
    AppSettings,
    PresetName,
    SimulationInputs,
)
from robotaxi_sim.config.sweep import DEFAULT_SWEEPS, SweepVariable
from robotaxi_sim.engine.curve import sample_curve
from robotaxi_sim.engine.economics import compute_snapshot
from robotaxi_sim.engine.levers import rank_levers
from robotaxi_sim.formatting import format_money, format_percent
from robotaxi_sim.models.results import MarginStatus

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Robotaxi Cost Model", page_icon="🚕", layout="wide")

st.markdown("""
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap');

html, body, [class*="css"] {
    font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif !important;
}
h2 {
    font-size: 1.15rem !important;
    font-weight: 700 !important;
    border-left: 3px solid #3b82f6;
    padding-left: 12px !important;
}
section[data-testid="stSidebar"] label {
    font-size: 0.75rem !important;
    font-weight: 500 !important;
}
</style>
""", unsafe_allow_html=True)

_STATUS_COLORS = {
    MarginStatus.LOSING: "#ef4444",
    MarginStatus.BREAK_EVEN: "#eab308",
    MarginStatus.PROFITABLE: "#22c55e",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _card(label: str, value: str, accent: str = "#3b82f6") -> str:
    """Return HTML for a metric card with a colored top accent."""
    return f"""
    <div style="
        border: 1px solid rgba(128,128,128,0.15);
        border-top: 3px solid {accent};
        border-radius: 8px;
        padding: 14px 16px 12px;
        text-align: center;
    ">
        <div style="font-size: 1.5rem; font-weight: 700; letter-spacing: -0.3px;">{value}</div>
        <div style="font-size: 0.65rem; opacity: 0.6; text-transform: uppercase; letter-spacing: 0.6px; margin-top: 3px;">{label}</div>
    </div>
    """


@st.cache_resource
def _settings() -> AppSettings:
    return AppSettings.from_env()


@st.cache_resource
def _store() -> EventStore:
    s = _settings()
    if s.supabase_configured:
        return SupabaseEventStore.from_credentials(s.supabase_url, s.supabase_service_role_key)
    return InMemoryEventStore()


@st.cache_resource
def _advisor() -> Advisor:
    s = _settings()
    return Advisor(create_openai_client(s), s)


def _slider_type(field: str) -> type:
    rng = SLIDER_RANGES[field]
    return int if float(rng.step).is_integer() and float(rng.min).is_integer() else float


def _load_preset() -> None:
    preset = PRESETS[PresetName(st.session_state["preset"])]
    for field in SLIDER_RANGES:
        st.session_state[f"inp_{field}"] = _slider_type(field)(getattr(preset, field))


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
if "session_id" not in st.session_state:
    st.session_state["session_id"] = str(uuid.uuid4())
if "preset" not in st.session_state:
    st.session_state["preset"] = PresetName.BASE_CASE.value
    _load_preset()

# ---------------------------------------------------------------------------
# SIDEBAR — Inputs
# ---------------------------------------------------------------------------
st.sidebar.header("Parameters")

st.sidebar.selectbox(
    "Preset",
    [p.value for p in PresetName],
    format_func=lambda v: PRESET_LABELS[PresetName(v)],
    key="preset",
    on_change=_load_preset,
)

values: dict[str, float] = {}
for field, rng in SLIDER_RANGES.items():
    cast = _slider_type(field)
    values[field] = st.sidebar.slider(
        f"{rng.label} ({rng.unit})",
        min_value=cast(rng.min),
        max_value=cast(rng.max),
        step=cast(rng.step),
        key=f"inp_{field}",
    )

sweep_variable = SweepVariable(st.sidebar.selectbox(
    "X-Axis Variable",
    [v.value for v in SweepVariable],
    format_func=lambda v: SweepVariable(v).label,
))

# ---------------------------------------------------------------------------
# COMPUTE — one snapshot per rerun
# ---------------------------------------------------------------------------
inputs = SimulationInputs(**values)
snapshot = compute_snapshot(inputs)
levers = rank_levers(inputs)
curve = sample_curve(inputs, sweep_variable)
econ = snapshot.economics

# ---------------------------------------------------------------------------
# HEADER + KPIs
# ---------------------------------------------------------------------------
st.title("Robotaxi Cost Model")
st.caption("Unit economics simulator for robotaxi fleets")

k1, k2, k3, k4 = st.columns(4)
k1.markdown(_card("Cost / Mile", format_money(econ.total_cost_per_mile)), unsafe_allow_html=True)
k2.markdown(
    _card("Margin / Mile", format_money(econ.margin_per_mile),
          "#ef4444" if econ.margin_per_mile < 0 else "#3b82f6"),
    unsafe_allow_html=True,
)
k3.markdown(_card("Break-even Utilization", format_percent(snapshot.break_even_utilization_percent)),
            unsafe_allow_html=True)
k4.markdown(_card("Status", snapshot.status.value, _STATUS_COLORS[snapshot.status]), unsafe_allow_html=True)

with st.expander("Show the math"):
    st.markdown(
        f"**Vehicle cost / day** — `{inputs.vehicle_cost:,.0f} / {DEFAULT_CONSTANTS.vehicle_lifetime_days:,.0f}` "
        f"= **{format_money(econ.vehicle_cost_per_day)}**"
    )
    st.markdown(
        f"**Operator cost / day** — `{DEFAULT_CONSTANTS.operator_cost_per_hour:g} × {inputs.ops_hours_per_day:g} "
        f"/ {inputs.vehicles_per_operator:g}` = **{format_money(econ.ops_cost_per_day)}**"
    )
    st.markdown(
        f"**Paid miles / day** — `{DEFAULT_CONSTANTS.max_miles_per_day:g} × {inputs.utilization_percent:g}% "
        f"× (1 − {min(inputs.deadhead_percent, DEFAULT_CONSTANTS.max_deadhead_fraction * 100):g}%)` "
        f"= **{econ.paid_miles_per_day:.1f}**"
    )
    st.markdown(
        f"**Cost / mile** — `{format_money(econ.fixed_daily_cost)} / {econ.paid_miles_per_day:.1f} "
        f"+ {format_money(inputs.variable_cost_per_mile)}` = **{format_money(econ.total_cost_per_mile)}**"
    )

# ---------------------------------------------------------------------------
# COST CURVE
# ---------------------------------------------------------------------------
st.header("Total Cost per Mile")

xs = [p.x for p in curve.points]
ys = [p.y for p in curve.points]
fig = go.Figure()
fig.add_trace(go.Scatter(
    x=xs, y=ys, mode="lines", name="Cost per mile",
    line=dict(color="#3b82f6", width=2),
    hovertemplate=f"{sweep_variable.label}: %{{x:.1f}}<br>Cost per mile: $%{{y:.2f}}<extra></extra>",
))
current = curve.current_point
if current is not None:
    fig.add_trace(go.Scatter(
        x=[current.x], y=[current.y], mode="markers", name="Current",
        marker=dict(size=11, color="#3b82f6", line=dict(color="#ffffff", width=2)),
    ))
fig.add_hline(y=2.0, line_dash="dash", line_color="#ff6b6b",
              annotation_text="Break-even $2", annotation_position="top left")
fig.add_hline(y=1.5, line_dash="dash", line_color="#51cf66",
              annotation_text="Healthy $1.50", annotation_position="top left")
fig.update_layout(
    height=380,
    margin=dict(l=40, r=30, t=20, b=40),
    xaxis_title=sweep_variable.label,
    yaxis_title="Total Cost / Mile ($)",
    yaxis_range=[0, DEFAULT_CONSTANTS.display_cost_cap],
    showlegend=False,
)
st.plotly_chart(fig, use_container_width=True)

with st.expander("Curve data"):
    sweep = DEFAULT_SWEEPS[sweep_variable]
    st.caption(f"Sampled {sweep.min:g} → {sweep.max:g} in steps of {sweep.step:g}; cost capped at "
               f"${DEFAULT_CONSTANTS.display_cost_cap:g}/mile for display.")
    st.dataframe(
        pd.DataFrame([p.model_dump() for p in curve.points]).rename(columns={
            "x": sweep_variable.label, "y": "Cost / mile ($)", "is_current_point": "Current",
        }),
        use_container_width=True,
        hide_index=True,
    )

# ---------------------------------------------------------------------------
# LEVERS
# ---------------------------------------------------------------------------
st.header("Lever Ranking")
ranked = [i for i in levers.impacts if i.margin_delta is not None]
if ranked:
    fig_lev = go.Figure(go.Bar(
        x=[i.margin_delta for i in ranked][::-1],
        y=[f"{i.name} ({i.base_value:g} → {i.new_value:g})" for i in ranked][::-1],
        orientation="h",
        marker_color=["#22c55e" if i.margin_delta >= 0 else "#ef4444" for i in ranked][::-1],
        hovertemplate="%{y}<br>Δ margin: $%{x:.2f}/mile<extra></extra>",
    ))
    fig_lev.update_layout(height=300, margin=dict(l=10, r=30, t=10, b=40),
                          xaxis_title="Margin change ($/mile)")
    st.plotly_chart(fig_lev, use_container_width=True)
else:
    st.info("No paid miles at the current settings — lever deltas are undefined.")

if levers.required_margin_improvement:
    st.caption(f"Margin improvement needed to break even: {format_money(levers.required_margin_improvement)}/mile")

# ---------------------------------------------------------------------------
# ASK AI
# ---------------------------------------------------------------------------
st.header("Ask AI")
question = st.text_area("Question", placeholder="Ask about your robotaxi economics...", label_visibility="collapsed")
if st.button("Ask AI", type="primary", disabled=not question.strip()):
    settings = _settings()
    store = _store()
    session_id = st.session_state["session_id"]
    if not check_rate_limit(store, session_id, settings.chat_daily_limit):
        st.error(f"Rate limit exceeded. Maximum {settings.chat_daily_limit} messages per day.")
    else:
        assembler = StreamAssembler()
        with st.container(border=True):
            reply_slot = st.empty()
            with reply_slot.container():
                st.write_stream(assembler.assemble(_advisor().stream_reply(question, snapshot, levers)))
            if assembler.structured is not None:
                rendered = render_structured_reply(assembler.structured)
                if assembler.structured.get("headline") == ERROR_REPLY["headline"]:
                    reply_slot.error(rendered)
                else:
                    reply_slot.markdown(rendered)
        log_chat_event(store, ChatEvent(
            session_id=session_id,
            user_message=question,
            assistant_message=assembler.text,
            sim_state=build_sim_state(snapshot),
        ))
