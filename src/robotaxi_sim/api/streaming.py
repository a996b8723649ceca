"""Incremental assembly of a streamed advisory reply.

The reply arrives as text chunks. ``StreamAssembler`` passes each chunk
through, keeps the running text, and opportunistically parses it as JSON
(error payloads and structured replies are JSON; free-form commentary
is not). Consumption stops early if ``cancel()`` is called; either way
``ended`` records how the stream terminated.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any


class StreamEnd(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StreamAssembler:
    """Consume a chunk stream once; read ``text`` / ``structured`` / ``ended`` afterwards."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._cancel = threading.Event()
        self.structured: dict[str, Any] | None = None
        self.ended: StreamEnd | None = None

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def cancel(self) -> None:
        """Stop consuming after the chunk currently being handled."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def assemble(self, chunks: Iterable[str]) -> Iterator[str]:
        """Yield non-empty chunks while accumulating them."""
        self.ended = None
        it = iter(chunks)
        try:
            for chunk in it:
                if self._cancel.is_set():
                    self.ended = StreamEnd.CANCELLED
                    return
                if not chunk:
                    continue
                self._parts.append(chunk)
                self._try_parse()
                yield chunk
            self.ended = StreamEnd.CANCELLED if self._cancel.is_set() else StreamEnd.COMPLETED
        finally:
            if self.ended is None:
                # Consumer stopped iterating before the source was exhausted
                self.ended = StreamEnd.CANCELLED
            close = getattr(it, "close", None)
            if close is not None:
                close()

    def _try_parse(self) -> None:
        try:
            parsed = json.loads(self.text)
        except ValueError:
            return
        if isinstance(parsed, dict):
            self.structured = parsed


def collect(chunks: Iterable[str]) -> StreamAssembler:
    """Drain a chunk stream to completion and return the assembler."""
    assembler = StreamAssembler()
    for _ in assembler.assemble(chunks):
        pass
    return assembler
