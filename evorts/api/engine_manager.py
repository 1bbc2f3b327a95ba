"""EngineManager: runs the Simulation on a background thread.

The API reads from an atomically swapped immutable Snapshot; the engine
thread is the only writer of simulation state. Commands that mutate the
simulation (speed, time scale) are applied under the same lock the loop
holds while ticking.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import TYPE_CHECKING

from evorts.engine.simulation import Simulation
from evorts.utils.event_log import EventLog

if TYPE_CHECKING:
    from evorts.config import SimulationConfig
    from evorts.core.grid import Grid
    from evorts.core.snapshot import Snapshot
    from evorts.engine.scheduler import PerformanceMetrics

logger = logging.getLogger(__name__)

# Host frame period for the background loop, in seconds.
FRAME_SECONDS = 1 / 60


class EngineManager:
    """Manages the simulation lifecycle on a background thread.

    Provides thread-safe access to:
      - latest snapshot (atomic reference swap)
      - event log (lock-guarded ring buffer)
      - control commands (start / pause / resume / step / reset)
    """

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config

        self._sim_lock = threading.Lock()
        self._snapshot_lock = threading.Lock()
        self._latest_snapshot: Snapshot | None = None
        self._event_log = EventLog()
        self._sim: Simulation | None = None

        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def simulation(self) -> Simulation:
        assert self._sim is not None
        return self._sim

    @property
    def tick_rate(self) -> int:
        return self.simulation.scheduler.tick_rate

    @tick_rate.setter
    def tick_rate(self, value: int) -> None:
        with self._sim_lock:
            self.simulation.scheduler.set_tick_rate(value)

    @property
    def time_scale(self) -> float:
        return self.simulation.scheduler.time_scale

    @time_scale.setter
    def time_scale(self, value: float) -> None:
        with self._sim_lock:
            self.simulation.scheduler.set_time_scale(value)

    # -- snapshot access --

    def get_snapshot(self) -> Snapshot | None:
        with self._snapshot_lock:
            return self._latest_snapshot

    def get_grid(self) -> Grid | None:
        snap = self.get_snapshot()
        return snap.grid if snap else None

    def get_metrics(self) -> PerformanceMetrics:
        with self._sim_lock:
            return self.simulation.scheduler.get_performance_metrics()

    def unit_detail(self, unit_id: int):
        """Return ``(view, perceived_objects, explored, visible)`` for a unit, or None."""
        with self._sim_lock:
            engine = self.simulation.engines.get(unit_id)
            if engine is None:
                return None
            return (
                engine.entity.view(),
                [replace(o, properties=list(o.properties)) for o in engine.get_perception_map()],
                len(engine.fog.explored),
                len(engine.fog.visible),
            )

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="engine-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (%d tps)", self.tick_rate)

    def pause(self) -> None:
        self._paused.set()
        with self._sim_lock:
            self.simulation.scheduler.set_paused(True)
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._paused.clear()
        with self._sim_lock:
            self.simulation.scheduler.set_paused(False)
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> None:
        """Execute exactly one tick (must be paused)."""
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        with self._sim_lock:
            self.simulation.scheduler.set_paused(False)
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        logger.info("EngineManager stopped.")

    def reset(self) -> None:
        """Stop, rebuild, and leave stopped, ready to start."""
        self.stop()
        self._event_log.clear()
        self._build()
        logger.info("EngineManager reset.")

    # -- internals --

    def _build(self) -> None:
        with self._sim_lock:
            self._sim = Simulation(self.config, event_log=self._event_log)
        self._publish_snapshot()

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Engine thread started.")
        sim = self.simulation
        with self._sim_lock:
            sim.scheduler.reset_clock()
            sim.scheduler.update(time.perf_counter() * 1000)

        while not self._stop_requested.is_set():
            if self._paused.is_set() and not self._step_requested.is_set():
                # Paused scheduler keeps its timestamp current without accumulating.
                with self._sim_lock:
                    sim.scheduler.update(time.perf_counter() * 1000)
                time.sleep(0.01)
                continue

            if self._step_requested.is_set():
                self._step_requested.clear()
                with self._sim_lock:
                    sim.scheduler.step()
                self._publish_snapshot()
                continue

            with self._sim_lock:
                ticks = sim.scheduler.update(time.perf_counter() * 1000)
            if ticks:
                self._publish_snapshot()
            time.sleep(FRAME_SECONDS)

        self._running.clear()
        logger.info("Engine thread exited.")

    def _publish_snapshot(self) -> None:
        with self._sim_lock:
            snap = self.simulation.snapshot()
        with self._snapshot_lock:
            self._latest_snapshot = snap

    def _current_tick(self) -> int:
        return self._sim.scheduler.tick_count if self._sim else 0
