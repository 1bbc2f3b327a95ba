"""Behavior callbacks: the programmable decision layer of a unit.

A behavior is a plain callable ``fn(unit, ctx) -> ActionDescriptor | None``
registered per BehaviorEvent on an entity. ``unit`` is a read-only UnitView;
``ctx`` carries the event payload. Returning None (or a CONTINUE action)
means "no transition".

The worker defaults below explore when idle, gather what they spot, run from
enemies and back off when hurt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from evorts.core.enums import BehaviorEvent, ObjectType
from evorts.core.models import ActionDescriptor, Vector2

if TYPE_CHECKING:
    from evorts.core.memory import PerceivedObject
    from evorts.core.models import BehaviorFn, UnitView


@dataclass(frozen=True, slots=True)
class BehaviorContext:
    """Everything a behavior callback may look at besides the unit itself.

    Only the fields relevant to ``event`` are populated.
    """

    event: BehaviorEvent
    time_ms: float = 0.0
    position: Vector2 | None = None           # spotted object / resource position
    resource_type: str | None = None
    enemy_type: str | None = None
    damage: float = 0.0
    source: Vector2 | None = None             # attacker position, when known
    source_health: float | None = None
    perceived: PerceivedObject | None = None
    base_position: Vector2 | None = None


# How close a worker must be before it stops approaching and starts analysing.
ANALYZE_APPROACH_DISTANCE = 20.0


def _away_from(unit: UnitView, threat: Vector2, scale: float = 1.0) -> Vector2:
    return Vector2(
        unit.pos.x + (unit.pos.x - threat.x) * scale,
        unit.pos.y + (unit.pos.y - threat.y) * scale,
    )


def default_idle(unit: UnitView, ctx: BehaviorContext) -> ActionDescriptor:
    return ActionDescriptor.explore()


def default_resource_spotted(unit: UnitView, ctx: BehaviorContext) -> ActionDescriptor | None:
    if unit.cargo_full:
        return ActionDescriptor.return_to_base()
    if ctx.position is None:
        return None
    return ActionDescriptor.gather(ctx.position)


def default_enemy_spotted(unit: UnitView, ctx: BehaviorContext) -> ActionDescriptor | None:
    """Workers are not fighters: run directly away from the threat."""
    if ctx.position is None:
        return None
    return ActionDescriptor.flee(_away_from(unit, ctx.position))


def default_damaged(unit: UnitView, ctx: BehaviorContext) -> ActionDescriptor | None:
    """Flee when critical; fight back against a much weaker attacker; else flee."""
    src = ctx.source
    if unit.is_critical:
        if src is not None:
            return ActionDescriptor.flee(_away_from(unit, src))
        return ActionDescriptor.return_to_base()

    if src is None:
        return None

    if ctx.source_health is not None and ctx.source_health < unit.health * 0.5:
        if unit.distance_to(src) < 15:
            return ActionDescriptor.move_and_attack(_away_from(unit, src, 0.5))
        return ActionDescriptor.attack(src)

    return ActionDescriptor.flee(_away_from(unit, src))


def default_object_perceived(unit: UnitView, ctx: BehaviorContext) -> ActionDescriptor | None:
    obj = ctx.perceived
    if obj is None:
        return None

    if not obj.analyzed:
        if unit.distance_to(obj.position) > ANALYZE_APPROACH_DISTANCE:
            return ActionDescriptor.approach(obj.position)
        return ActionDescriptor.analyze(obj.id, obj.position)

    if obj.type == ObjectType.RESOURCE and not unit.cargo_full:
        return ActionDescriptor.gather(obj.position)
    if obj.type == ObjectType.ENEMY:
        return ActionDescriptor.flee(_away_from(unit, obj.position))
    return ActionDescriptor.keep_going()


DEFAULT_WORKER_BEHAVIORS: dict[BehaviorEvent, BehaviorFn] = {
    BehaviorEvent.ON_IDLE: default_idle,
    BehaviorEvent.ON_RESOURCE_SPOTTED: default_resource_spotted,
    BehaviorEvent.ON_ENEMY_SPOTTED: default_enemy_spotted,
    BehaviorEvent.ON_DAMAGED: default_damaged,
    BehaviorEvent.ON_NEW_OBJECT_PERCEIVED: default_object_perceived,
}


def worker_behaviors() -> dict[BehaviorEvent, BehaviorFn | None]:
    """A fresh, mutable copy of the worker defaults."""
    return dict(DEFAULT_WORKER_BEHAVIORS)
