"""Core data models and world representation."""

from evorts.core.enums import ActionKind, BehaviorEvent, Domain, Material, ObjectType, ResourceType, UnitState
from evorts.core.memory import PerceivedObject, PerceptionMemory
from evorts.core.models import ActionDescriptor, Base, Entity, Stats, Vector2, WorldObject
from evorts.core.grid import Grid
from evorts.core.world import World

__all__ = [
    "ActionDescriptor",
    "ActionKind",
    "Base",
    "BehaviorEvent",
    "Domain",
    "Entity",
    "Grid",
    "Material",
    "ObjectType",
    "PerceivedObject",
    "PerceptionMemory",
    "ResourceType",
    "Stats",
    "UnitState",
    "Vector2",
    "World",
    "WorldObject",
]
