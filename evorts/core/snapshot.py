"""Immutable snapshot of the simulation for readers on other threads."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from evorts.core.models import Base, UnitView, WorldObject

if TYPE_CHECKING:
    from evorts.core.grid import Grid
    from evorts.engine.simulation import Simulation


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only view of units, resources and the base at one instant.

    Units are frozen UnitViews; resources and the base are copies. The grid
    is shared since terrain never changes after generation.
    """

    tick: int
    game_time_ms: float
    seed: int
    units: tuple[UnitView, ...]
    resources: tuple[WorldObject, ...]
    base: Base
    grid: Grid

    @classmethod
    def from_simulation(cls, sim: Simulation) -> Snapshot:
        return cls(
            tick=sim.scheduler.tick_count,
            game_time_ms=sim.scheduler.elapsed_game_time,
            seed=sim.rng.seed,
            units=tuple(engine.entity.view() for engine in sim.engines.values()),
            resources=tuple(replace(obj) for obj in sim.world.resources()),
            base=replace(sim.base),
            grid=sim.world.grid,
        )
