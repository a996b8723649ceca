"""Chat / analytics event storage and the per-session daily rate limit.

Two backends share the ``EventStore`` protocol:
  - ``InMemoryEventStore`` — process-local, used in tests and when no
    Supabase project is configured.
  - ``SupabaseEventStore`` — ``chat_events`` / ``analytics_events`` tables.
"""

from __future__ import annotations

import threading
from datetime import datetime, time, timezone
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatEvent(BaseModel):
    session_id: str
    user_message: str
    assistant_message: str
    sim_state: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class AnalyticsEvent(BaseModel):
    session_id: str
    event: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class EventStore(Protocol):
    def count_chat_events_since(self, session_id: str, since: datetime) -> int: ...

    def insert_chat_event(self, event: ChatEvent) -> None: ...

    def insert_analytics_event(self, event: AnalyticsEvent) -> None: ...


class InMemoryEventStore:
    """Thread-safe list-backed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.chat_events: list[ChatEvent] = []
        self.analytics_events: list[AnalyticsEvent] = []

    def count_chat_events_since(self, session_id: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for e in self.chat_events
                if e.session_id == session_id and e.created_at >= since
            )

    def insert_chat_event(self, event: ChatEvent) -> None:
        with self._lock:
            self.chat_events.append(event)

    def insert_analytics_event(self, event: AnalyticsEvent) -> None:
        with self._lock:
            self.analytics_events.append(event)


class SupabaseEventStore:
    """Supabase (PostgREST) backed store."""

    CHAT_TABLE = "chat_events"
    ANALYTICS_TABLE = "analytics_events"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_credentials(cls, url: str, key: str) -> SupabaseEventStore:
        from supabase import create_client

        return cls(create_client(url, key))

    def count_chat_events_since(self, session_id: str, since: datetime) -> int:
        resp = (
            self._client.table(self.CHAT_TABLE)
            .select("id", count="exact")
            .eq("session_id", session_id)
            .gte("created_at", since.isoformat())
            .execute()
        )
        if resp.count is not None:
            return resp.count
        return len(resp.data or [])

    def insert_chat_event(self, event: ChatEvent) -> None:
        self._client.table(self.CHAT_TABLE).insert(event.model_dump(mode="json")).execute()

    def insert_analytics_event(self, event: AnalyticsEvent) -> None:
        self._client.table(self.ANALYTICS_TABLE).insert(event.model_dump(mode="json")).execute()


def start_of_day(now: datetime) -> datetime:
    """Midnight UTC of ``now``'s UTC date."""
    now = now.astimezone(timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


def check_rate_limit(
    store: EventStore,
    session_id: str,
    limit: int,
    now: datetime | None = None,
) -> bool:
    """True if the session may send another message today.

    A store failure denies the request.
    """
    since = start_of_day(now or _utcnow())
    try:
        used = store.count_chat_events_since(session_id, since)
    except Exception as exc:
        logger.error("Rate limit lookup failed for {session}: {exc}", session=session_id, exc=str(exc))
        return False
    if used >= limit:
        logger.info("Rate limit reached for {session} ({used}/{limit})", session=session_id, used=used, limit=limit)
        return False
    return True


def log_chat_event(store: EventStore, event: ChatEvent) -> None:
    """Best-effort insert: failures are logged, never raised to the client."""
    try:
        store.insert_chat_event(event)
    except Exception as exc:
        logger.error("Chat event insert failed for {session}: {exc}", session=event.session_id, exc=str(exc))
