"""TickScheduler: fixed-timestep accumulator decoupled from the render clock.

Host code calls ``update(now_ms)`` as often as it likes (every frame, every
timer callback). Scaled elapsed time accumulates until at least one full
tick interval is available, then every registered entity is stepped with
exactly that interval. Under load at most ``max_ticks_per_update`` ticks
run per call; any backlog beyond that is dropped, not deferred.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Hashable

logger = logging.getLogger(__name__)

MIN_TICK_RATE = 1
MAX_TICK_RATE = 60
MIN_TIME_SCALE = 0.1
MAX_TIME_SCALE = 10.0


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Point-in-time scheduler statistics."""

    tick_rate: int
    average_tick_time: float       # ms of wall-clock time per tick
    tick_count: int
    entities_count: int
    time_scale: float
    elapsed_game_time: float       # ms of scaled game time


class TickScheduler:
    """Steps registered entities at a fixed rate."""

    __slots__ = (
        "_tick_rate", "_tick_interval", "_accumulator", "_time_scale", "_paused",
        "_last_timestamp", "_entities", "_tick_count", "_elapsed_game_time",
        "_history", "_max_ticks_per_update",
    )

    def __init__(
        self,
        tick_rate: int = 30,
        time_scale: float = 1.0,
        max_ticks_per_update: int = 5,
        history_length: int = 60,
    ) -> None:
        self._tick_rate = MIN_TICK_RATE
        self._tick_interval = 1000.0
        self._time_scale = 1.0
        self.set_tick_rate(tick_rate)
        self.set_time_scale(time_scale)

        self._accumulator = 0.0
        self._paused = False
        self._last_timestamp: float | None = None
        self._entities: dict[Hashable, Any] = {}
        self._tick_count = 0
        self._elapsed_game_time = 0.0
        self._history: deque[float] = deque(maxlen=history_length)
        self._max_ticks_per_update = max_ticks_per_update

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def tick_rate(self) -> int:
        return self._tick_rate

    @property
    def tick_interval(self) -> float:
        return self._tick_interval

    @property
    def time_scale(self) -> float:
        return self._time_scale

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def accumulator(self) -> float:
        return self._accumulator

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def elapsed_game_time(self) -> float:
        return self._elapsed_game_time

    @property
    def entities(self) -> dict[Hashable, Any]:
        return self._entities

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_tick_rate(self, rate: int) -> None:
        self._tick_rate = int(max(MIN_TICK_RATE, min(MAX_TICK_RATE, rate)))
        self._tick_interval = 1000.0 / self._tick_rate
        logger.debug("Tick rate %d (interval %.2f ms)", self._tick_rate, self._tick_interval)

    def set_time_scale(self, scale: float) -> None:
        self._time_scale = max(MIN_TIME_SCALE, min(MAX_TIME_SCALE, scale))

    def set_paused(self, paused: bool) -> None:
        self._paused = paused

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_entity(self, entity_id: Hashable, entity: Any) -> bool:
        """Add *entity* to the tick set. Rejects objects without a callable ``update``."""
        if not callable(getattr(entity, "update", None)):
            logger.error("Refusing to register %r: no update() method", entity_id)
            return False
        self._entities[entity_id] = entity
        return True

    def unregister_entity(self, entity_id: Hashable) -> bool:
        return self._entities.pop(entity_id, None) is not None

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def update(self, now_ms: float) -> int:
        """Advance to *now_ms* (host clock). Returns the number of ticks run."""
        if self._last_timestamp is None:
            self._last_timestamp = now_ms
            return 0

        delta = now_ms - self._last_timestamp
        self._last_timestamp = now_ms
        if self._paused:
            return 0

        scaled = max(0.0, delta) * self._time_scale
        self._accumulator += scaled
        self._elapsed_game_time += scaled

        interval = self._tick_interval
        ticks = 0
        while self._accumulator >= interval:
            if ticks >= self._max_ticks_per_update:
                logger.warning(
                    "Scheduler falling behind: dropping %.1f ms after %d ticks",
                    self._accumulator, ticks,
                )
                self._accumulator = 0.0
                break
            self._run_tick(interval)
            self._accumulator -= interval
            ticks += 1
        return ticks

    def _run_tick(self, interval: float) -> None:
        started = time.perf_counter()
        for entity_id, entity in list(self._entities.items()):
            try:
                entity.update(interval)
            except Exception:
                logger.exception("Entity %r failed during tick %d", entity_id, self._tick_count)
        elapsed_ms = (time.perf_counter() - started) * 1000
        self._history.append(elapsed_ms)
        self._tick_count += 1

        if elapsed_ms > interval * 0.8:
            logger.warning(
                "Tick %d took %.1f ms (%.0f%% of the %.1f ms budget)",
                self._tick_count, elapsed_ms, 100 * elapsed_ms / interval, interval,
            )

    def step(self) -> None:
        """Run exactly one tick now, regardless of the accumulator or pause state."""
        self._run_tick(self._tick_interval)
        self._elapsed_game_time += self._tick_interval

    def reset_clock(self) -> None:
        """Forget the last timestamp; the next update only re-anchors."""
        self._last_timestamp = None
        self._accumulator = 0.0

    def get_performance_metrics(self) -> PerformanceMetrics:
        avg = sum(self._history) / len(self._history) if self._history else 0.0
        return PerformanceMetrics(
            tick_rate=self._tick_rate,
            average_tick_time=avg,
            tick_count=self._tick_count,
            entities_count=len(self._entities),
            time_scale=self._time_scale,
            elapsed_game_time=self._elapsed_game_time,
        )
