"""Shared test fixtures — base-case inputs and fakes for the advisory stack."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from robotaxi_sim.api.advisor import Advisor
from robotaxi_sim.api.server import app, get_advisor, get_settings, get_store
from robotaxi_sim.api.store import InMemoryEventStore
from robotaxi_sim.config import AppSettings, SimulationInputs


@pytest.fixture
def base_inputs() -> SimulationInputs:
    return SimulationInputs(
        fleet_size=2_000,
        vehicles_per_operator=5,
        vehicle_cost=170_000,
        ops_hours_per_day=20,
        deadhead_percent=44,
        variable_cost_per_mile=0.60,
        revenue_per_mile=2.50,
        utilization_percent=40,
    )


@pytest.fixture
def zero_util_inputs(base_inputs: SimulationInputs) -> SimulationInputs:
    return base_inputs.with_value("utilization_percent", 0)


@pytest.fixture
def base_state() -> dict:
    """camelCase sim state as the browser sends it."""
    return {
        "fleetSize": 2000,
        "vehiclesPerOperator": 5,
        "vehicleCost": 170000,
        "opsHoursPerDay": 20,
        "deadheadPercent": 44,
        "variableCostPerMile": 0.60,
        "revenuePerMile": 2.50,
        "utilizationPercent": 40,
    }


# ---------------------------------------------------------------------------
# Fake OpenAI client
# ---------------------------------------------------------------------------

def _chunk(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


class FakeCompletions:
    """Stands in for ``client.chat.completions``."""

    def __init__(self, chunks: list[str | None] | None = None, error: Exception | None = None):
        self.chunks = chunks or []
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return iter([_chunk(c) for c in self.chunks])


def make_fake_client(chunks=None, error=None) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(chunks, error)))


@pytest.fixture
def fake_client_factory():
    return make_fake_client


# ---------------------------------------------------------------------------
# API client with injected store / advisor
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(chat_daily_limit=30)


@pytest.fixture
def fake_client() -> SimpleNamespace:
    return make_fake_client(["Cut ", "deadhead ", "first."])


@pytest.fixture
def api(store: InMemoryEventStore, settings: AppSettings, fake_client: SimpleNamespace):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_advisor] = lambda: Advisor(fake_client, settings)
    yield TestClient(app)
    app.dependency_overrides.clear()
