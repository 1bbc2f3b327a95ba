"""GET /api/v1/config and /metrics: configuration and scheduler statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from evorts.api.dependencies import get_engine_manager
from evorts.api.engine_manager import EngineManager
from evorts.api.schemas import PerformanceMetricsResponse, SimulationConfigResponse

router = APIRouter()


@router.get("/config", response_model=SimulationConfigResponse)
def get_config(
    manager: EngineManager = Depends(get_engine_manager),
) -> SimulationConfigResponse:
    cfg = manager.config
    return SimulationConfigResponse(
        world_seed=manager.simulation.rng.seed,
        grid_width=cfg.grid_width,
        grid_height=cfg.grid_height,
        tile_size=cfg.tile_size,
        tick_rate=manager.tick_rate,
        time_scale=manager.time_scale,
        initial_worker_count=cfg.initial_worker_count,
        fog_of_war=cfg.fog_of_war,
        use_pathfinding=cfg.use_pathfinding,
        target_wall_percent=cfg.target_wall_percent,
    )


@router.get("/metrics", response_model=PerformanceMetricsResponse)
def get_metrics(
    manager: EngineManager = Depends(get_engine_manager),
) -> PerformanceMetricsResponse:
    m = manager.get_metrics()
    return PerformanceMetricsResponse(
        tick_rate=m.tick_rate,
        average_tick_time=m.average_tick_time,
        tick_count=m.tick_count,
        entities_count=m.entities_count,
        time_scale=m.time_scale,
        elapsed_game_time=m.elapsed_game_time,
        running=manager.running,
        paused=manager.paused,
    )
