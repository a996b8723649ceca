"""Advisory commentary — relays a question plus the sim state to an LLM.

The engine's only job here is to hand over a complete, consistent
snapshot; the reply is passed through uninterpreted.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import openai
from loguru import logger

from robotaxi_sim.api.narrative import generate_narrative
from robotaxi_sim.config.settings import AppSettings
from robotaxi_sim.formatting import fmt, sanitize
from robotaxi_sim.models.results import LeverAnalysis, MetricsSnapshot

_SYSTEM_PROMPT = """You are a Principal PM / Fleet GM evaluating robotaxi unit economics.

You must behave like an operator making real capital decisions.

Rules:
1. Always use the current simState values provided.
2. When discussing prioritization or sensitivity:
   - Compute approximate margin deltas numerically.
   - Compare magnitude of impact explicitly.
   - Rank levers strictly by margin improvement.
3. Always reference:
   - Current margin
   - Break-even utilization
   - Gap to break-even
4. If break-even utilization exceeds 75%, explicitly state that the model is structurally stressed.
5. If margin improvement required exceeds $1.50/mile, explicitly state structural changes may be required.
6. Do NOT recommend:
   - Marketing by default
   - Fleet expansion casually
7. Be decisive. Avoid hedging language.

Tone: Direct. Quantitative. Operator-grade. No MBA fluff.

Format:

🎯 **Direct Answer**
Clear, decisive recommendation.

📊 **Quantitative Reasoning**
Show numbers using current simState.

🔧 **Lever Ranking (by margin impact)**
1. Lever — estimated margin delta
2. Lever — estimated margin delta

⚠️ **Structural Assessment**
State whether configuration is salvageable under current constraints."""

ERROR_REPLY: dict[str, Any] = {
    "headline": "Error occurred",
    "insights": ["I encountered an error while processing your request. Please try again."],
    "top_levers": [],
    "recommended_next_change": "Please retry your question.",
    "sanity_checks": ["Technical error - please try again."],
}


def render_structured_reply(reply: dict[str, Any]) -> str:
    """Markdown for a JSON reply (``headline``, ``insights``, ``top_levers``, ...)."""
    lines: list[str] = []
    if reply.get("headline"):
        lines.append(f"**{reply['headline']}**")
    for insight in reply.get("insights") or []:
        lines.append(f"- {insight}")
    levers = reply.get("top_levers") or []
    if levers:
        lines.append("")
        lines.append("**Top levers**")
        lines.extend(f"{i}. {lever}" for i, lever in enumerate(levers, 1))
    if reply.get("recommended_next_change"):
        lines.append("")
        lines.append(f"**Next change:** {reply['recommended_next_change']}")
    checks = reply.get("sanity_checks") or []
    if checks:
        lines.append("")
        lines.extend(f"_{check}_" for check in checks)
    return "\n".join(lines)


def build_sim_state(snapshot: MetricsSnapshot, levers: LeverAnalysis | None = None) -> dict[str, Any]:
    """camelCase sim state: inputs + server-computed metrics. Non-finite values → None."""
    e = snapshot.economics
    state: dict[str, Any] = snapshot.inputs.model_dump(by_alias=True)
    state.update({
        "totalCostPerMile": e.total_cost_per_mile,
        "marginPerMile": e.margin_per_mile,
        "breakEvenUtilization": snapshot.break_even_utilization_percent,
        "gapToBreakEven": snapshot.gap_to_break_even_points,
        "status": snapshot.status.value,
    })
    if levers is not None:
        state["leverRanking"] = [
            {"lever": i.name, "from": i.base_value, "to": i.new_value,
             "marginDelta": i.margin_delta}
            for i in levers.impacts
        ]
    return sanitize(state)


def build_system_prompt(snapshot: MetricsSnapshot) -> str:
    inp = snapshot.inputs
    e = snapshot.economics
    current = (
        f"Current state: Fleet={inp.fleet_size}, Utilization={fmt(inp.utilization_percent, 0)}%, "
        f"Deadhead={fmt(inp.deadhead_percent, 0)}%, Cost/mile=${fmt(e.total_cost_per_mile)}, "
        f"Margin/mile=${fmt(e.margin_per_mile)}, Break-even={fmt(snapshot.break_even_utilization_percent)}%, "
        f"Revenue/mile=${fmt(inp.revenue_per_mile)}, Vehicle cost=${fmt(inp.vehicle_cost / 1000)}k, "
        f"Vehicles/operator={fmt(inp.vehicles_per_operator, 0)}."
    )
    return f"{_SYSTEM_PROMPT}\n\n{current}"


def build_messages(
    question: str,
    snapshot: MetricsSnapshot,
    levers: LeverAnalysis | None = None,
) -> list[dict[str, str]]:
    sim_state = build_sim_state(snapshot, levers)
    return [
        {"role": "system", "content": build_system_prompt(snapshot)},
        {
            "role": "user",
            "content": f"USER_QUESTION: {question}\n\nSIM_STATE:\n{json.dumps(sim_state, indent=2)}",
        },
    ]


def create_openai_client(settings: AppSettings) -> openai.OpenAI | None:
    """OpenAI client from settings, or None when no key is configured."""
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set; advisory replies fall back to the built-in narrative")
        return None
    return openai.OpenAI(api_key=settings.openai_api_key)


class Advisor:
    """Streams commentary for one question at a time.

    Parameters
    ----------
    client : openai.OpenAI | None
        Anything exposing ``chat.completions.create``. None = narrative fallback.
    settings : AppSettings
        Model name, token budget, temperature.
    """

    def __init__(self, client: Any, settings: AppSettings | None = None) -> None:
        self.client = client
        self.settings = settings or AppSettings()

    def stream_reply(
        self,
        question: str,
        snapshot: MetricsSnapshot,
        levers: LeverAnalysis | None = None,
    ) -> Iterator[str]:
        """Yield reply text chunks. Never raises for API errors."""
        if self.client is None:
            yield generate_narrative(snapshot, levers)
            return

        try:
            stream = self.client.chat.completions.create(
                model=self.settings.llm_model,
                messages=build_messages(question, snapshot, levers),
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
                stream=True,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except openai.OpenAIError as exc:
            logger.error("OpenAI request failed: {exc}", exc=str(exc))
            yield json.dumps(ERROR_REPLY)
