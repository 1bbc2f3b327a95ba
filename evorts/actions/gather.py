"""Resource gathering and depositing for worker units.

Cargo never exceeds the carrier's capacity: the amount taken per gather is
capped by gathering speed, what the resource holds, and the room left.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from evorts.core.enums import ObjectType, UnitState

if TYPE_CHECKING:
    from evorts.ai.controller import BehaviorEngine
    from evorts.core.models import WorldObject

logger = logging.getLogger(__name__)

# XP granted per unit of resource collected.
XP_PER_UNIT = 0.5


def find_nearby_resource(engine: BehaviorEngine) -> WorldObject | None:
    """Closest non-depleted resource within the search radius, or None."""
    if engine.world is None:
        return None
    pos = engine.entity.pos
    candidates = [
        r for r in engine.world.get_objects_in_radius(
            pos.x, pos.y, engine.config.resource_search_radius, ObjectType.RESOURCE,
        )
        if not r.depleted
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda r: (pos.distance(r.pos), r.id))


def gather_resource(engine: BehaviorEngine, resource: WorldObject) -> int:
    """Take one load from *resource*. Returns the amount collected.

    Out of reach: heads toward the resource and collects nothing.
    """
    entity = engine.entity
    if entity.cargo_full():
        return_home(engine)
        return 0

    if not engine.in_reach(resource.pos):
        engine.set_destination(resource.pos)
        return 0

    room = entity.stats.carry_capacity - entity.cargo_weight
    amount = min(entity.stats.gathering_speed, math.floor(resource.quantity), room)
    if amount <= 0 or resource.resource_type is None:
        if resource.depleted:
            entity.set_state(UnitState.IDLE)
        return 0

    collected = min(math.floor(amount * entity.stats.mining_efficiency), math.floor(room))
    resource.extract(collected)
    entity.cargo.add(resource.resource_type, collected)
    entity.resources_collected += collected
    engine.award_xp(collected * XP_PER_UNIT)

    logger.debug("Unit %d gathered %d %s", entity.id, collected, resource.resource_type.value)
    engine.emit("resource_gathered", {
        "object_id": resource.id, "amount": collected, "resource_type": resource.resource_type.value,
    })

    if entity.cargo_full():
        return_home(engine)
    elif resource.depleted:
        entity.set_state(UnitState.IDLE)
    else:
        entity.set_state(UnitState.GATHERING)
    return collected


def return_home(engine: BehaviorEngine) -> bool:
    entity = engine.entity
    if engine.base is None:
        return False
    engine.set_destination(engine.base.pos)
    entity.set_state(UnitState.RETURNING)
    return True


def deposit_resources(engine: BehaviorEngine) -> bool:
    """Unload all cargo at the base if it is within reach; otherwise go there."""
    entity = engine.entity
    base = engine.base
    if base is None:
        return False

    if not engine.in_reach(base.pos):
        engine.set_destination(base.pos)
        return False

    energy, matter = entity.cargo.clear()
    base.receive_resources(energy, matter)
    entity.set_state(UnitState.IDLE)
    logger.debug("Unit %d deposited %d energy, %d matter", entity.id, energy, matter)
    engine.emit("resources_deposited", {"energy": energy, "matter": matter})
    return True
