"""Enumerations used throughout the engine."""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class UnitState(IntEnum):
    """Finite-state-machine states for a unit controller."""

    IDLE = 0
    MOVING = 1
    GATHERING = 2
    ATTACKING = 3
    ANALYZING = 4
    EXPLORING = 5
    FLEEING = 6
    RETURNING = 7
    DEPOSITING = 8


@unique
class ActionKind(IntEnum):
    """Kinds of action a behavior callback can ask for."""

    MOVE = 0
    APPROACH = 1
    FLEE = 2
    GATHER = 3
    ATTACK = 4
    MOVE_AND_ATTACK = 5
    RETURN_TO_BASE = 6
    ANALYZE = 7
    EXPLORE = 8
    CONTINUE = 9        # keep doing whatever the unit was doing


@unique
class BehaviorEvent(str, Enum):
    """Events a unit can attach a behavior callback to."""

    ON_IDLE = "on_idle"
    ON_RESOURCE_SPOTTED = "on_resource_spotted"
    ON_ENEMY_SPOTTED = "on_enemy_spotted"
    ON_DAMAGED = "on_damaged"
    ON_NEW_OBJECT_PERCEIVED = "on_new_object_perceived"


@unique
class TaskType(IntEnum):
    """Long-running tasks a unit can be committed to."""

    ANALYZE = 0


@unique
class Material(IntEnum):
    """Tile materials on the terrain grid."""

    OPEN = 0
    WALL = 1


@unique
class Domain(IntEnum):
    """RNG domains for randomness isolation."""

    MAP_GEN = 0
    DENSITY = 1
    EXPLORE = 2
    SPAWN = 3
    RESOURCE = 4


@unique
class ObjectType(str, Enum):
    """Kinds of world object a unit can perceive."""

    RESOURCE = "resource"
    ENEMY = "enemy"
    STRUCTURE = "structure"
    UNKNOWN = "unknown"


@unique
class ResourceType(str, Enum):
    """Cargo resource types."""

    ENERGY = "energy"
    MATTER = "matter"
