"""Pydantic response models for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# --- Units ---

class UnitSchema(BaseModel):
    id: int
    kind: str
    x: float
    y: float
    state: str
    health: float
    max_health: float
    level: int
    energy: int
    matter: int
    cargo_weight: float
    carry_capacity: int
    destination_x: float | None = None
    destination_y: float | None = None
    has_task: bool = False


class PerceivedObjectSchema(BaseModel):
    id: int
    x: float
    y: float
    type: str
    size: str
    color: str
    analyzed_percentage: float
    analyzed: bool
    properties: list[str] = Field(default_factory=list)
    first_seen: float
    last_seen: float


class UnitDetailResponse(BaseModel):
    unit: UnitSchema
    explored_cells: int
    visible_cells: int
    memory: list[PerceivedObjectSchema] = Field(default_factory=list)


# --- Map ---

class MapResponse(BaseModel):
    width: int
    height: int
    tile_size: float
    grid: list[int] = Field(description="Run-length encoded tiles: [value, count, value, count, ...] (0=open, 1=wall)")


# --- World State ---

class EventSchema(BaseModel):
    time_ms: float
    category: str
    message: str
    entity_ids: list[int] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


class ResourceSchema(BaseModel):
    id: int
    resource_type: str
    x: float
    y: float
    quantity: float
    max_quantity: float
    depleted: bool


class BaseSchema(BaseModel):
    x: float
    y: float
    energy: int
    matter: int


class WorldStateResponse(BaseModel):
    tick: int
    game_time_ms: float
    units: list[UnitSchema]
    resources: list[ResourceSchema] = Field(default_factory=list)
    base: BaseSchema
    events: list[EventSchema] = Field(default_factory=list)


# --- Control ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int = 0


# --- Config ---

class SimulationConfigResponse(BaseModel):
    world_seed: int
    grid_width: int
    grid_height: int
    tile_size: float
    tick_rate: int
    time_scale: float
    initial_worker_count: int
    fog_of_war: bool
    use_pathfinding: bool
    target_wall_percent: float | None = None


# --- Metrics ---

class PerformanceMetricsResponse(BaseModel):
    tick_rate: int
    average_tick_time: float
    tick_count: int
    entities_count: int
    time_scale: float
    elapsed_game_time: float
    running: bool
    paused: bool
