"""AI layer: fog of war, pathfinding, behavior callbacks and the unit controller."""

from evorts.ai.controller import BehaviorEngine
from evorts.ai.pathfinding import GridNavigator
from evorts.ai.perception import FogOfWar

__all__ = ["BehaviorEngine", "FogOfWar", "GridNavigator"]
