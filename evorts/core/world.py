"""The world a unit lives in: terrain collision, world objects, bounds."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Protocol

from evorts.core.enums import ObjectType
from evorts.core.models import Bounds, Vector2, WorldObject
from evorts.systems.spatial_hash import SpatialHash

if TYPE_CHECKING:
    from evorts.core.grid import Grid


class WorldLike(Protocol):
    """What a unit controller needs from its world."""

    def is_wall(self, x: float, y: float) -> bool: ...

    def get_bounds(self) -> Bounds: ...

    def get_objects_in_radius(
        self, x: float, y: float, radius: float, type: ObjectType | None = None,
    ) -> list[WorldObject]: ...

    def get_object(self, object_id: int) -> WorldObject | None: ...


class World:
    """Terrain grid plus every perceivable object, in continuous world units.

    ``tile_size`` world units make one grid cell. Collision checks go through
    the immutable set of wall cells built from the grid.
    """

    __slots__ = ("grid", "tile_size", "_walls", "objects", "_index", "_next_object_id")

    def __init__(self, grid: Grid, tile_size: float = 50.0, collision_index: frozenset[tuple[int, int]] | None = None) -> None:
        self.grid = grid
        self.tile_size = tile_size
        self._walls = collision_index if collision_index is not None else grid.wall_cells()
        self.objects: dict[int, WorldObject] = {}
        self._index = SpatialHash(cell_size=tile_size * 2)
        self._next_object_id = 1

    # -- terrain --

    def world_to_cell(self, x: float, y: float) -> tuple[int, int]:
        return math.floor(x / self.tile_size), math.floor(y / self.tile_size)

    def cell_center(self, cx: int, cy: int) -> Vector2:
        half = self.tile_size / 2
        return Vector2(cx * self.tile_size + half, cy * self.tile_size + half)

    def is_wall(self, x: float, y: float) -> bool:
        cx, cy = self.world_to_cell(x, y)
        if not self.grid.in_bounds(cx, cy):
            return True
        return (cx, cy) in self._walls

    def get_bounds(self) -> Bounds:
        return Bounds(0.0, 0.0, self.grid.width * self.tile_size, self.grid.height * self.tile_size)

    def open_cells(self) -> list[tuple[int, int]]:
        return self.grid.open_cells()

    # -- objects --

    def allocate_object_id(self) -> int:
        oid = self._next_object_id
        self._next_object_id += 1
        return oid

    def add_object(self, obj: WorldObject) -> None:
        self.objects[obj.id] = obj
        self._index.insert(obj.id, obj.pos)
        self._next_object_id = max(self._next_object_id, obj.id + 1)

    def remove_object(self, object_id: int) -> WorldObject | None:
        obj = self.objects.pop(object_id, None)
        if obj is not None:
            self._index.remove(object_id, obj.pos)
        return obj

    def get_object(self, object_id: int) -> WorldObject | None:
        return self.objects.get(object_id)

    def get_objects_in_radius(
        self, x: float, y: float, radius: float, type: ObjectType | None = None,
    ) -> list[WorldObject]:
        """Objects within *radius* of ``(x, y)``, nearest first."""
        center = Vector2(x, y)
        found: list[tuple[float, WorldObject]] = []
        for oid in self._index.query_radius(center, radius):
            obj = self.objects[oid]
            if type is not None and obj.type != type:
                continue
            d = center.distance(obj.pos)
            if d <= radius:
                found.append((d, obj))
        found.sort(key=lambda pair: (pair[0], pair[1].id))
        return [obj for _, obj in found]

    def resources(self) -> list[WorldObject]:
        return [o for o in self.objects.values() if o.type == ObjectType.RESOURCE]

    def update(self, delta_ms: float) -> None:
        """Regenerate resource quantities."""
        for obj in self.objects.values():
            if obj.type == ObjectType.RESOURCE:
                obj.regenerate(delta_ms)
