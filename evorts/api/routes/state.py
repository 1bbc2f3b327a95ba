"""GET /api/v1/state: dynamic unit, resource and event data (polled by UI)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from evorts.api.dependencies import get_engine_manager
from evorts.api.engine_manager import EngineManager
from evorts.api.schemas import (
    BaseSchema,
    EventSchema,
    PerceivedObjectSchema,
    ResourceSchema,
    UnitDetailResponse,
    UnitSchema,
    WorldStateResponse,
)
from evorts.core.models import UnitView
from evorts.utils.event_log import SimEvent

router = APIRouter()


def _serialize_unit(u: UnitView) -> UnitSchema:
    return UnitSchema(
        id=u.id,
        kind=u.kind,
        x=u.pos.x,
        y=u.pos.y,
        state=u.state.name.lower(),
        health=u.health,
        max_health=u.max_health,
        level=u.level,
        energy=u.energy,
        matter=u.matter,
        cargo_weight=u.cargo_weight,
        carry_capacity=u.carry_capacity,
        destination_x=u.destination.x if u.destination else None,
        destination_y=u.destination.y if u.destination else None,
        has_task=u.has_task,
    )


def _serialize_event(ev: SimEvent) -> EventSchema:
    return EventSchema(
        time_ms=ev.time_ms,
        category=ev.category,
        message=ev.message,
        entity_ids=list(ev.entity_ids),
        metadata=ev.metadata,
    )


@router.get("/state", response_model=WorldStateResponse)
def get_state(
    since_ms: float = Query(0.0, ge=0.0, description="Only include events at or after this game time"),
    limit: int = Query(100, ge=0, le=1000),
    manager: EngineManager = Depends(get_engine_manager),
) -> WorldStateResponse:
    snap = manager.get_snapshot()
    if snap is None:
        raise HTTPException(status_code=503, detail="Simulation not initialized yet.")

    events = manager.event_log.since(since_ms)[-limit:] if limit else []
    return WorldStateResponse(
        tick=snap.tick,
        game_time_ms=snap.game_time_ms,
        units=[_serialize_unit(u) for u in snap.units],
        resources=[
            ResourceSchema(
                id=r.id,
                resource_type=r.resource_type.value if r.resource_type else "unknown",
                x=r.pos.x,
                y=r.pos.y,
                quantity=r.quantity,
                max_quantity=r.max_quantity,
                depleted=r.depleted,
            )
            for r in snap.resources
        ],
        base=BaseSchema(x=snap.base.pos.x, y=snap.base.pos.y, energy=snap.base.energy, matter=snap.base.matter),
        events=[_serialize_event(ev) for ev in events],
    )


@router.get("/events", response_model=list[EventSchema])
def get_events(
    category: str | None = Query(None, description="Filter by event category, e.g. area_explored"),
    limit: int = Query(50, ge=1, le=1000),
    manager: EngineManager = Depends(get_engine_manager),
) -> list[EventSchema]:
    log = manager.event_log
    events = log.by_category(category)[-limit:] if category else log.latest(limit)
    return [_serialize_event(ev) for ev in events]


@router.get("/units/{unit_id}", response_model=UnitDetailResponse)
def get_unit(
    unit_id: int,
    manager: EngineManager = Depends(get_engine_manager),
) -> UnitDetailResponse:
    detail = manager.unit_detail(unit_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Unit {unit_id} not found.")
    view, memory, explored, visible = detail
    return UnitDetailResponse(
        unit=_serialize_unit(view),
        explored_cells=explored,
        visible_cells=visible,
        memory=[
            PerceivedObjectSchema(
                id=o.id,
                x=o.position.x,
                y=o.position.y,
                type=o.type,
                size=o.size,
                color=o.color,
                analyzed_percentage=o.analyzed_percentage,
                analyzed=o.analyzed,
                properties=list(o.properties),
                first_seen=o.first_seen,
                last_seen=o.last_seen,
            )
            for o in memory
        ],
    )
