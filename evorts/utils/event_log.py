"""Thread-safe ring buffer for simulation events.

Unit controllers receive an EventLog at construction and report their
notifications (exploration, analysis, behavior errors) into it; the API
reads slices of it.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SimEvent:
    """A single simulation event."""

    time_ms: float
    category: str
    message: str
    entity_ids: tuple[int, ...] = ()
    metadata: dict[str, Any] | None = None


class EventLog:
    """Bounded event log. Writers append; readers snapshot a slice.

    Thread-safe via a simple lock: the engine thread writes, API threads read.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, maxlen: int | None = 5000) -> None:
        self._buffer: deque[SimEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def append(self, event: SimEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def emit(
        self,
        time_ms: float,
        category: str,
        message: str,
        entity_ids: tuple[int, ...] = (),
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.append(SimEvent(time_ms, category, message, entity_ids, metadata))

    def since(self, time_ms: float) -> list[SimEvent]:
        """Return all events with time_ms >= *time_ms*."""
        with self._lock:
            return [e for e in self._buffer if e.time_ms >= time_ms]

    def by_category(self, category: str) -> list[SimEvent]:
        with self._lock:
            return [e for e in self._buffer if e.category == category]

    def latest(self, count: int = 50) -> list[SimEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
