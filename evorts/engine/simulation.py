"""Simulation: assembles terrain, world, base, resources and workers, then runs them.

The scheduler owns the clock. ``advance`` feeds it a host timestamp that
moves forward by one frame; ``run_for`` repeats that for a duration.
"""

from __future__ import annotations

import logging

from evorts.ai.behaviors import worker_behaviors
from evorts.ai.controller import BehaviorEngine
from evorts.ai.pathfinding import GridNavigator
from evorts.config import SimulationConfig
from evorts.core.enums import Domain, ObjectType, ResourceType
from evorts.core.memory import PerceptionMemory
from evorts.core.models import Base, Entity, Stats, Vector2, WorldObject
from evorts.core.snapshot import Snapshot
from evorts.core.world import World
from evorts.engine.scheduler import TickScheduler
from evorts.systems.rng import DeterministicRNG
from evorts.systems.terrain import TerrainGenerator
from evorts.utils.event_log import EventLog

logger = logging.getLogger(__name__)

# Properties revealed to units by analysis, in reveal order.
RESOURCE_PROPERTIES: dict[ResourceType, tuple[str, ...]] = {
    ResourceType.ENERGY: ("luminous", "volatile", "crystalline", "conductive"),
    ResourceType.MATTER: ("dense", "metallic", "brittle", "inert"),
}

RESOURCE_APPEARANCE: dict[ResourceType, tuple[str, str]] = {
    ResourceType.ENERGY: ("small", "cyan"),
    ResourceType.MATTER: ("medium", "ochre"),
}

WORLD_TICKER_ID = "world"


class Simulation:
    """One self-contained run: world state plus the scheduler that drives it."""

    __slots__ = (
        "config", "rng", "event_log", "terrain", "world", "navigator", "base",
        "scheduler", "engines", "_clock", "_next_unit_id",
    )

    def __init__(self, config: SimulationConfig | None = None, event_log: EventLog | None = None) -> None:
        self.config = config or SimulationConfig()
        cfg = self.config
        self.rng = DeterministicRNG(cfg.world_seed)
        self.event_log = event_log if event_log is not None else EventLog()

        self.terrain = TerrainGenerator(self.rng, cfg.spawn_half_extent)
        if cfg.target_wall_percent is not None:
            grid = self.terrain.generate_with_density(
                cfg.grid_width, cfg.grid_height, cfg.target_wall_percent,
                fill_probability=cfg.fill_probability,
                iterations=cfg.smoothing_iterations,
                birth_limit=cfg.birth_limit,
                death_limit=cfg.death_limit,
                tolerance=cfg.density_tolerance,
                max_attempts=cfg.density_max_attempts,
            )
        else:
            grid = self.terrain.generate(
                cfg.grid_width, cfg.grid_height, cfg.fill_probability,
                cfg.smoothing_iterations, cfg.birth_limit, cfg.death_limit,
            )

        self.world = World(grid, cfg.tile_size, collision_index=self.terrain.collision_index)
        self.navigator = GridNavigator(grid, cfg.tile_size, cfg.nearest_walkable_radius)
        self.base = Base(pos=self.world.cell_center(grid.width // 2, grid.height // 2))

        self.scheduler = TickScheduler(
            cfg.tick_rate, cfg.time_scale, cfg.max_ticks_per_update, cfg.tick_history_length,
        )
        self.scheduler.register_entity(WORLD_TICKER_ID, self.world)
        self.engines: dict[int, BehaviorEngine] = {}
        self._next_unit_id = 1

        self._spawn_resources()
        for _ in range(cfg.initial_worker_count):
            self.spawn_worker()

        self._clock = 0.0
        self.scheduler.update(self._clock)
        logger.info(
            "Simulation ready: seed=%d, %dx%d grid (%.1f%% wall), %d workers, %d resources",
            self.rng.seed, grid.width, grid.height, grid.wall_percentage(),
            len(self.engines), len(self.world.resources()),
        )

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def spawn_worker(self, pos: Vector2 | None = None) -> BehaviorEngine:
        cfg = self.config
        uid = self._next_unit_id
        self._next_unit_id += 1

        if pos is None:
            # Scatter around the base inside the always-open spawn area.
            spread = (cfg.spawn_half_extent - 1) * cfg.tile_size
            ox = (self.rng.next_float(Domain.SPAWN, uid, 0) * 2 - 1) * spread
            oy = (self.rng.next_float(Domain.SPAWN, uid, 1) * 2 - 1) * spread
            pos = Vector2(self.base.pos.x + ox, self.base.pos.y + oy)

        entity = Entity(
            id=uid,
            kind="worker",
            pos=pos,
            stats=Stats(
                speed=cfg.worker_speed,
                base_speed=cfg.worker_speed,
                carry_capacity=cfg.worker_carry_capacity,
                gathering_speed=cfg.worker_gathering_speed,
                perception_radius=cfg.worker_perception_radius,
                attack_power=5,
                defense=3,
            ),
            behaviors=worker_behaviors(),
            memory=PerceptionMemory(cfg.memory_capacity),
        )
        engine = BehaviorEngine(
            entity, self.world, self.base,
            config=cfg, event_log=self.event_log, rng=self.rng,
            navigator=self.navigator if cfg.use_pathfinding else None,
        )
        engine.update_fog_of_war()
        self.engines[uid] = engine
        self.scheduler.register_entity(uid, engine)
        logger.debug("Spawned worker #%d at %s", uid, pos)
        return engine

    def remove_unit(self, unit_id: int) -> bool:
        engine = self.engines.pop(unit_id, None)
        if engine is None:
            return False
        self.scheduler.unregister_entity(unit_id)
        return True

    def _spawn_resources(self) -> None:
        cfg = self.config
        world = self.world
        cells = [
            c for c in world.open_cells()
            if world.cell_center(*c).distance(self.base.pos) >= cfg.resource_min_base_distance
        ]
        self.rng.shuffle(cells, Domain.RESOURCE, 0)

        plan = [ResourceType.ENERGY] * cfg.energy_nodes + [ResourceType.MATTER] * cfg.matter_nodes
        for idx, (rtype, cell) in enumerate(zip(plan, cells)):
            qty = self.rng.next_int(
                Domain.RESOURCE, idx, 1, cfg.resource_min_quantity, cfg.resource_max_quantity,
            )
            regen = cfg.energy_regen_per_second if rtype == ResourceType.ENERGY else cfg.matter_regen_per_second
            size, color = RESOURCE_APPEARANCE[rtype]
            world.add_object(WorldObject(
                id=world.allocate_object_id(),
                pos=world.cell_center(*cell),
                type=ObjectType.RESOURCE,
                size=size,
                color=color,
                resource_type=rtype,
                quantity=float(qty),
                max_quantity=float(qty),
                regeneration_rate=regen,
                properties=RESOURCE_PROPERTIES[rtype],
            ))
        if len(cells) < len(plan):
            logger.warning("Only %d of %d resource nodes fit on open terrain", len(cells), len(plan))

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    @property
    def clock_ms(self) -> float:
        return self._clock

    def advance(self, frame_ms: float) -> int:
        """Move the host clock forward by *frame_ms*; returns ticks processed."""
        self._clock += frame_ms
        return self.scheduler.update(self._clock)

    def run_for(self, duration_ms: float, frame_ms: float = 16.0) -> int:
        """Advance in *frame_ms* steps until *duration_ms* of host time has passed."""
        ticks = 0
        elapsed = 0.0
        while elapsed < duration_ms:
            step = min(frame_ms, duration_ms - elapsed)
            ticks += self.advance(step)
            elapsed += step
        return ticks

    def snapshot(self) -> Snapshot:
        return Snapshot.from_simulation(self)
