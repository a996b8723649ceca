"""FastAPI server — unit-economics API + advisory chat relay.

Run with:
    uvicorn robotaxi_sim.api.server:app --reload --port 8000

Or:
    robotaxi-sim-api

Endpoints:
    GET  /context              — self-describing manifest (model + schemas)
    GET  /schema               — JSON Schema for SimulationInputs
    GET  /inputs/defaults      — default inputs as JSON
    GET  /presets              — named presets
    GET  /presets/{name}       — one preset
    POST /simulate             — metrics snapshot + levers + narrative
    POST /simulate/curve       — cost-per-mile curve over a swept input
    POST /simulate/levers      — lever ranking by margin impact
    POST /chat                 — streamed advisory commentary
    POST /analytics            — product analytics event
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from robotaxi_sim.api.advisor import Advisor, build_sim_state, create_openai_client
from robotaxi_sim.api.context import build_context, get_default_inputs, get_inputs_schema
from robotaxi_sim.api.narrative import generate_narrative
from robotaxi_sim.api.store import (
    AnalyticsEvent,
    ChatEvent,
    EventStore,
    InMemoryEventStore,
    SupabaseEventStore,
    check_rate_limit,
    log_chat_event,
)
from robotaxi_sim.api.streaming import StreamAssembler
from robotaxi_sim.config.inputs import SimulationInputs
from robotaxi_sim.config.loader import parse_inputs
from robotaxi_sim.config.presets import PRESETS, get_preset
from robotaxi_sim.config.settings import AppSettings
from robotaxi_sim.config.sweep import SweepRange, SweepVariable
from robotaxi_sim.engine.curve import sample_curve
from robotaxi_sim.engine.economics import compute_snapshot
from robotaxi_sim.engine.levers import LeverSpec, rank_levers
from robotaxi_sim.formatting import sanitize
from robotaxi_sim.logs import configure_logging


# ═══════════════════════════════════════════════════════════════════════════
# App setup
# ═══════════════════════════════════════════════════════════════════════════

app = FastAPI(
    title="Robotaxi Unit Economics API",
    version="1.0",
    description=(
        "Cost per mile, margin, break-even utilization and cost curves for robotaxi fleets, "
        "plus an advisory chat relay. Start by calling GET /context."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

REQUIRED_STATE_FIELDS = [
    "utilizationPercent",
    "deadheadPercent",
    "vehicleCost",
    "vehiclesPerOperator",
    "opsHoursPerDay",
    "variableCostPerMile",
    "revenuePerMile",
]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with non-finite echoed inputs nulled so the body stays valid JSON."""
    return JSONResponse(status_code=422, content={"detail": sanitize(jsonable_encoder(exc.errors()))})


# ═══════════════════════════════════════════════════════════════════════════
# Dependencies
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings.from_env()


@lru_cache(maxsize=1)
def _default_store() -> EventStore:
    settings = get_settings()
    if settings.supabase_configured:
        logger.info("Using Supabase event store at {url}", url=settings.supabase_url)
        return SupabaseEventStore.from_credentials(settings.supabase_url, settings.supabase_service_role_key)
    logger.warning("Supabase not configured; chat events kept in memory only")
    return InMemoryEventStore()


def get_store() -> EventStore:
    return _default_store()


@lru_cache(maxsize=1)
def _default_advisor() -> Advisor:
    settings = get_settings()
    return Advisor(create_openai_client(settings), settings)


def get_advisor() -> Advisor:
    return _default_advisor()


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SimulateRequest(BaseModel):
    """Request body for /simulate. Missing input fields use defaults."""
    inputs: SimulationInputs = Field(
        default_factory=SimulationInputs,
        description="Partial or full inputs (snake_case or camelCase). "
                    "Example: {'utilizationPercent': 55, 'deadheadPercent': 30}",
    )


class CurveRequest(BaseModel):
    inputs: SimulationInputs = Field(default_factory=SimulationInputs)
    variable: SweepVariable = Field(default=SweepVariable.UTILIZATION, description="Input to sweep on the x-axis")
    sweep: SweepRange | None = Field(default=None, description="Custom grid. None = default range for the variable")


class LeverRequestItem(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    field: Literal[
        "fleet_size", "vehicles_per_operator", "vehicle_cost", "ops_hours_per_day",
        "deadhead_percent", "variable_cost_per_mile", "revenue_per_mile", "utilization_percent",
    ]
    delta: float
    mode: Literal["absolute", "relative"] = "absolute"


class LeversRequest(BaseModel):
    inputs: SimulationInputs = Field(default_factory=SimulationInputs)
    levers: list[LeverRequestItem] | None = Field(default=None, description="None = default lever set")


class ChatRequest(_CamelModel):
    """Advisory request. Validated by hand so missing fields get the original replies."""
    session_id: str | None = None
    user_message: str | None = None
    sim_state: dict[str, Any] | None = None


class AnalyticsRequest(_CamelModel):
    session_id: str | None = None
    event: str | None = None
    payload: dict[str, Any] | None = None


class SimulateResponse(BaseModel):
    snapshot: dict[str, Any]
    levers: dict[str, Any]
    narrative: str = ""


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _missing_state_fields(sim_state: dict[str, Any]) -> list[str]:
    """Required keys absent or null, accepting camelCase or snake_case."""
    missing: list[str] = []
    for key in REQUIRED_STATE_FIELDS:
        if sim_state.get(key) is None and sim_state.get(_to_snake(key)) is None:
            missing.append(key)
    return missing


def _to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
def health_check():
    """Health check for deployment platforms."""
    return {"status": "ok"}


@app.get("/")
def root():
    return {
        "name": "Robotaxi Unit Economics API",
        "version": "1.0",
        "start_here": "GET /context?detail_level=full",
        "docs": "GET /docs (interactive Swagger UI)",
    }


@app.get("/context")
def get_context(
    detail_level: Literal["compact", "full"] = Query(
        default="full",
        description="'compact' for schemas only, 'full' for business model + formulas + guide",
    ),
):
    """Self-describing context manifest for LLM consumption."""
    return build_context(detail_level)


@app.get("/schema")
def get_schema():
    return get_inputs_schema()


@app.get("/inputs/defaults")
def get_defaults():
    return get_default_inputs()


@app.get("/presets")
def list_presets():
    return {name.value: inputs.model_dump(by_alias=True) for name, inputs in PRESETS.items()}


@app.get("/presets/{name}")
def read_preset(name: str):
    try:
        return get_preset(name).model_dump(by_alias=True)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown preset '{name}'") from None


@app.post("/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest):
    """Compute the metrics snapshot, lever ranking and narrative for one input set."""
    snapshot = compute_snapshot(req.inputs)
    levers = rank_levers(req.inputs)
    return SimulateResponse(
        snapshot=sanitize(snapshot.model_dump()),
        levers=sanitize(levers.model_dump()),
        narrative=generate_narrative(snapshot, levers),
    )


@app.post("/simulate/curve")
def simulate_curve(req: CurveRequest):
    """Sample total cost per mile across the chosen sweep."""
    try:
        curve = sample_curve(req.inputs, req.variable, req.sweep)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Sweep leaves valid input range: {exc.errors()[0]['msg']}") from None
    return sanitize(curve.model_dump())


@app.post("/simulate/levers")
def simulate_levers(req: LeversRequest):
    """Rank single-input changes by their effect on margin per mile."""
    specs = None
    if req.levers is not None:
        specs = [LeverSpec(item.name, item.field, item.delta, item.mode) for item in req.levers]
    return sanitize(rank_levers(req.inputs, specs).model_dump())


@app.post("/chat")
def chat(
    req: ChatRequest,
    store: EventStore = Depends(get_store),
    advisor: Advisor = Depends(get_advisor),
    settings: AppSettings = Depends(get_settings),
):
    """Relay a question plus the current sim state to the advisory model.

    The reply streams back as ``text/plain``; the full reply is logged once
    the stream ends.
    """
    sim_state = req.sim_state or {}
    try:
        missing = _missing_state_fields(sim_state)
        if missing:
            reply = f"missing: {', '.join(missing)}"
            logger.info("Chat request missing state fields: {missing}", missing=missing)
            log_chat_event(store, ChatEvent(
                session_id=req.session_id or "missing",
                user_message=req.user_message or "",
                assistant_message=reply,
                sim_state=sim_state,
            ))
            return {"reply": reply}

        if not req.session_id or not req.user_message:
            raise HTTPException(status_code=400, detail="Missing required fields: sessionId, userMessage, simState")

        if not check_rate_limit(store, req.session_id, settings.chat_daily_limit):
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {settings.chat_daily_limit} messages per day.",
            )

        try:
            inputs = parse_inputs(sim_state)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid simState: {exc.errors()[0]['msg']}") from None

        snapshot = compute_snapshot(inputs)
        levers = rank_levers(inputs)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Chat request failed")
        return JSONResponse(status_code=500, content={"error": "Internal server error", "detail": str(exc)})

    session_id = req.session_id
    question = req.user_message
    logged_state = build_sim_state(snapshot)

    def _stream():
        assembler = StreamAssembler()
        try:
            yield from assembler.assemble(advisor.stream_reply(question, snapshot, levers))
        finally:
            logger.debug("Chat stream for {session} ended: {how}", session=session_id, how=assembler.ended)
            log_chat_event(store, ChatEvent(
                session_id=session_id,
                user_message=question,
                assistant_message=assembler.text,
                sim_state=logged_state,
            ))

    return StreamingResponse(
        _stream(),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )


@app.post("/analytics")
def analytics(req: AnalyticsRequest, store: EventStore = Depends(get_store)):
    """Record a product analytics event."""
    if not req.session_id or not req.event:
        raise HTTPException(status_code=400, detail="Missing required fields: sessionId, event")
    try:
        store.insert_analytics_event(AnalyticsEvent(
            session_id=req.session_id, event=req.event, payload=req.payload or {},
        ))
    except Exception as exc:
        logger.error("Analytics insert failed: {exc}", exc=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return {"ok": True}


# ═══════════════════════════════════════════════════════════════════════════
# CLI entry point
# ═══════════════════════════════════════════════════════════════════════════

def main():
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "robotaxi_sim.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    main()
