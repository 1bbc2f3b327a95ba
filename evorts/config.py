"""Simulation configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable configuration for the simulation run."""

    # World
    world_seed: int | None = None          # None = fresh OS entropy each run
    grid_width: int = 80
    grid_height: int = 60
    tile_size: float = 50.0                # world units per terrain cell

    # Terrain (cellular automata)
    fill_probability: float = 0.36
    smoothing_iterations: int = 3
    birth_limit: int = 4
    death_limit: int = 3
    spawn_half_extent: int = 5             # spawn rectangle: |x - w/2| < extent
    target_wall_percent: float | None = 35.0
    density_tolerance: float = 3.0
    density_max_attempts: int = 5

    # Timing
    tick_rate: int = 30                    # ticks per second
    time_scale: float = 1.0
    max_ticks_per_update: int = 5
    tick_history_length: int = 60

    # Units
    initial_worker_count: int = 4
    fog_of_war: bool = True
    fog_cell_size: float = 50.0
    fog_interval_ms: float = 200.0
    perception_interval_ms: float = 250.0
    decision_interval_ms: float = 400.0
    interaction_range: float = 15.0
    world_margin: float = 50.0
    memory_capacity: int = 256

    # Worker defaults
    worker_speed: float = 30.0
    worker_carry_capacity: int = 30
    worker_gathering_speed: int = 5
    worker_perception_radius: float = 150.0
    resource_search_radius: float = 30.0

    # Pathfinding
    use_pathfinding: bool = True
    nearest_walkable_radius: int = 10

    # Resources
    energy_nodes: int = 12
    matter_nodes: int = 12
    resource_min_quantity: int = 100
    resource_max_quantity: int = 199
    energy_regen_per_second: float = 0.1
    matter_regen_per_second: float = 0.05
    resource_min_base_distance: float = 250.0

    # Logging
    log_level: str = "INFO"
