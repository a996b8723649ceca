"""Tests for the HTTP API layer.

Covers:
  - Context manifest (compact + full), schema, defaults, presets
  - Simulation endpoints (/simulate, /simulate/curve, /simulate/levers)
  - Advisory chat relay (/chat): validation, rate limit, streaming, logging
  - Analytics events
"""

from __future__ import annotations

from datetime import datetime, timezone

import openai
import pytest

from robotaxi_sim.api.advisor import ERROR_REPLY
from robotaxi_sim.api.context import _extract_params, build_context
from robotaxi_sim.api.store import ChatEvent, InMemoryEventStore
from robotaxi_sim.config import AppSettings, SimulationInputs


# ═══════════════════════════════════════════════════════════════════════════
# Context manifest
# ═══════════════════════════════════════════════════════════════════════════


class TestContext:

    def test_build_context_full(self):
        ctx = build_context("full")
        assert ctx.simulator_name == "Robotaxi Unit Economics Simulator"
        assert len(ctx.business_model) > 100
        assert len(ctx.key_formulas) >= 5
        assert len(ctx.inputs) == 8
        assert len(ctx.endpoints) >= 10
        assert ctx.constants["operator_cost_per_hour"] == 40

    def test_build_context_compact(self):
        ctx = build_context("compact")
        assert ctx.business_model == ""
        assert ctx.key_formulas == []
        assert ctx.interpretation_guide == ""
        assert len(ctx.inputs) == 8

    def test_extract_params(self):
        params = {p.name: p for p in _extract_params(SimulationInputs)}
        vpo = params["vehicles_per_operator"]
        assert vpo.alias == "vehiclesPerOperator"
        assert vpo.constraints == {"gt": 0}
        assert vpo.slider["max"] == 60
        assert params["utilization_percent"].constraints == {"ge": 0, "le": 100}

    def test_context_endpoint(self, api):
        resp = api.get("/context", params={"detail_level": "compact"})
        assert resp.status_code == 200
        assert resp.json()["business_model"] == ""


class TestMetaEndpoints:

    def test_health(self, api):
        assert api.get("/health").json() == {"status": "ok"}

    def test_root(self, api):
        assert "start_here" in api.get("/").json()

    def test_schema(self, api):
        schema = api.get("/schema").json()
        assert "utilizationPercent" in schema["properties"]

    def test_defaults(self, api):
        data = api.get("/inputs/defaults").json()
        assert data["utilizationPercent"] == 40
        assert data["vehicleCost"] == 170_000

    def test_presets(self, api):
        data = api.get("/presets").json()
        assert set(data) == {"base_case", "early_pilot", "scaled_network", "mature_network", "premium_fleet"}
        assert data["base_case"]["deadheadPercent"] == 44

    def test_single_preset(self, api):
        assert api.get("/presets/early_pilot").json()["vehiclesPerOperator"] == 2

    def test_unknown_preset_404(self, api):
        assert api.get("/presets/moon_base").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Simulation endpoints
# ═══════════════════════════════════════════════════════════════════════════


class TestSimulate:

    def test_defaults(self, api):
        resp = api.post("/simulate", json={})
        assert resp.status_code == 200
        data = resp.json()
        econ = data["snapshot"]["economics"]
        assert econ["total_cost_per_mile"] == pytest.approx(4.3671, abs=1e-4)
        assert data["snapshot"]["status"] == "Losing"
        assert len(data["levers"]["impacts"]) == 6
        assert "UNIT ECONOMICS" in data["narrative"]

    def test_partial_camel_case_inputs(self, api):
        resp = api.post("/simulate", json={"inputs": {"utilizationPercent": 90, "revenuePerMile": 5.0}})
        assert resp.json()["snapshot"]["status"] == "Profitable"

    def test_zero_utilization_returns_nulls(self, api):
        resp = api.post("/simulate", json={"inputs": {"utilizationPercent": 0}})
        assert resp.status_code == 200
        econ = resp.json()["snapshot"]["economics"]
        assert econ["total_cost_per_mile"] is None
        assert econ["margin_per_mile"] is None

    def test_invalid_input_422(self, api):
        resp = api.post("/simulate", json={"inputs": {"vehiclesPerOperator": 0}})
        assert resp.status_code == 422


class TestCurve:

    def test_default_utilization_curve(self, api):
        data = api.post("/simulate/curve", json={}).json()
        assert data["variable"] == "utilization"
        assert len(data["points"]) == 41
        assert sum(p["is_current_point"] for p in data["points"]) == 1

    def test_deadhead_curve(self, api):
        data = api.post("/simulate/curve", json={"variable": "deadhead"}).json()
        assert data["points"][-1]["x"] == pytest.approx(70)

    def test_custom_sweep(self, api):
        body = {"variable": "vehicles_per_operator", "sweep": {"min": 5, "max": 25, "step": 5}}
        data = api.post("/simulate/curve", json=body).json()
        assert [p["x"] for p in data["points"]] == [5, 10, 15, 20, 25]

    def test_sweep_outside_bounds_422(self, api):
        body = {"variable": "vehicles_per_operator", "sweep": {"min": 0, "max": 10, "step": 1}}
        assert api.post("/simulate/curve", json=body).status_code == 422

    def test_reversed_sweep_422(self, api):
        body = {"sweep": {"min": 90, "max": 10, "step": 2}}
        assert api.post("/simulate/curve", json=body).status_code == 422

    @pytest.mark.parametrize("raw", [
        '{"variable": "utilization", "sweep": {"min": 0, "max": Infinity, "step": 1}}',
        '{"variable": "utilization", "sweep": {"min": 0, "max": NaN, "step": 1}}',
        '{"variable": "utilization", "sweep": {"min": -Infinity, "max": 10, "step": 1}}',
    ])
    def test_non_finite_sweep_422(self, api, raw):
        resp = api.post("/simulate/curve", content=raw, headers={"Content-Type": "application/json"})
        assert resp.status_code == 422
        assert resp.json()["detail"]

    def test_oversized_sweep_422(self, api):
        body = {"variable": "utilization", "sweep": {"min": 0, "max": 100, "step": 1e-7}}
        assert api.post("/simulate/curve", json=body).status_code == 422

    def test_non_finite_inputs_422(self, api):
        raw = '{"inputs": {"revenuePerMile": Infinity, "variableCostPerMile": Infinity}}'
        resp = api.post("/simulate", content=raw, headers={"Content-Type": "application/json"})
        assert resp.status_code == 422


class TestLevers:

    def test_default_levers(self, api):
        data = api.post("/simulate/levers", json={}).json()
        deltas = [i["margin_delta"] for i in data["impacts"]]
        assert deltas == sorted(deltas, reverse=True)
        assert data["required_margin_improvement"] == pytest.approx(1.8671, abs=1e-4)

    def test_custom_levers(self, api):
        body = {"levers": [{"name": "Fare +$0.50", "field": "revenue_per_mile", "delta": 0.5}]}
        data = api.post("/simulate/levers", json=body).json()
        assert data["impacts"][0]["margin_delta"] == pytest.approx(0.5)

    def test_unknown_field_422(self, api):
        body = {"levers": [{"name": "x", "field": "color", "delta": 1}]}
        assert api.post("/simulate/levers", json=body).status_code == 422

    def test_empty_lever_list_means_no_levers(self, api):
        data = api.post("/simulate/levers", json={"levers": []}).json()
        assert data["impacts"] == []
        assert data["required_margin_improvement"] == pytest.approx(1.8671, abs=1e-4)

    def test_omitted_levers_use_defaults(self, api):
        assert len(api.post("/simulate/levers", json={"levers": None}).json()["impacts"]) == 6

    def test_non_finite_delta_422(self, api):
        raw = '{"levers": [{"name": "x", "field": "revenue_per_mile", "delta": Infinity}]}'
        resp = api.post("/simulate/levers", content=raw, headers={"Content-Type": "application/json"})
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# Advisory chat
# ═══════════════════════════════════════════════════════════════════════════


class TestChat:

    def test_missing_state_fields_reply(self, api, store: InMemoryEventStore, fake_client, base_state):
        state = dict(base_state)
        del state["deadheadPercent"]
        del state["revenuePerMile"]
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi", "simState": state})
        assert resp.status_code == 200
        assert resp.json() == {"reply": "missing: deadheadPercent, revenuePerMile"}
        assert len(store.chat_events) == 1
        assert store.chat_events[0].assistant_message.startswith("missing:")
        assert fake_client.chat.completions.calls == []

    def test_missing_state_entirely(self, api):
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi"})
        assert resp.json()["reply"].startswith("missing: utilizationPercent")

    def test_missing_session_400(self, api, base_state):
        resp = api.post("/chat", json={"userMessage": "hi", "simState": base_state})
        assert resp.status_code == 400

    def test_missing_message_400(self, api, base_state):
        resp = api.post("/chat", json={"sessionId": "s1", "simState": base_state})
        assert resp.status_code == 400

    def test_invalid_state_400(self, api, base_state):
        state = dict(base_state, vehiclesPerOperator=0)
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi", "simState": state})
        assert resp.status_code == 400

    def test_rate_limited_429(self, api, store: InMemoryEventStore, fake_client, base_state):
        now = datetime.now(timezone.utc)
        for _ in range(30):
            store.insert_chat_event(ChatEvent(session_id="s1", user_message="q", assistant_message="a", created_at=now))
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi", "simState": base_state})
        assert resp.status_code == 429
        assert resp.json()["detail"] == "Rate limit exceeded. Maximum 30 messages per day."
        assert fake_client.chat.completions.calls == []

    def test_custom_limit(self, api, store: InMemoryEventStore, settings: AppSettings, base_state):
        settings.chat_daily_limit = 1
        body = {"sessionId": "s2", "userMessage": "hi", "simState": base_state}
        assert api.post("/chat", json=body).status_code == 200
        assert api.post("/chat", json=body).status_code == 429

    def test_streams_reply_and_logs(self, api, store: InMemoryEventStore, base_state):
        state = dict(base_state, totalCostPerMile=1.0)
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "What first?", "simState": state})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "Cut deadhead first."
        assert len(store.chat_events) == 1
        event = store.chat_events[0]
        assert event.assistant_message == "Cut deadhead first."
        assert event.user_message == "What first?"
        # Derived metrics are recomputed, not taken from the client
        assert event.sim_state["totalCostPerMile"] == pytest.approx(4.3671, abs=1e-4)

    def test_snake_case_state_accepted(self, api, base_state):
        state = SimulationInputs.model_validate(base_state).model_dump()
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi", "simState": state})
        assert resp.status_code == 200

    def test_prompt_reaches_client(self, api, fake_client, base_state):
        api.post("/chat", json={"sessionId": "s1", "userMessage": "Is this salvageable?", "simState": base_state})
        call = fake_client.chat.completions.calls[0]
        assert "USER_QUESTION: Is this salvageable?" in call["messages"][1]["content"]

    def test_upstream_error_streams_error_json(self, api, base_state, fake_client):
        fake_client.chat.completions.error = openai.OpenAIError("boom")
        resp = api.post("/chat", json={"sessionId": "s1", "userMessage": "hi", "simState": base_state})
        assert resp.status_code == 200
        assert resp.json() == ERROR_REPLY


# ═══════════════════════════════════════════════════════════════════════════
# Analytics
# ═══════════════════════════════════════════════════════════════════════════


class TestAnalytics:

    def test_records_event(self, api, store: InMemoryEventStore):
        resp = api.post("/analytics", json={"sessionId": "s1", "event": "preset_selected", "payload": {"preset": "early_pilot"}})
        assert resp.json() == {"ok": True}
        assert store.analytics_events[0].payload == {"preset": "early_pilot"}

    def test_missing_event_400(self, api):
        assert api.post("/analytics", json={"sessionId": "s1"}).status_code == 400

    def test_missing_session_400(self, api):
        assert api.post("/analytics", json={"event": "x"}).status_code == 400
