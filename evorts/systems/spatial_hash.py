"""Spatial hashing for O(1) neighbor lookups."""

from __future__ import annotations

import math
from collections import defaultdict

from evorts.core.models import Vector2


class SpatialHash:
    """Bucket index mapping cell keys to sets of object IDs.

    Positions are continuous world coordinates; ``cell_size`` is in world units.
    """

    __slots__ = ("_cell_size", "_cells")

    def __init__(self, cell_size: float = 100.0) -> None:
        self._cell_size = cell_size
        self._cells: dict[tuple[int, int], set[int]] = defaultdict(set)

    def _key(self, pos: Vector2) -> tuple[int, int]:
        return math.floor(pos.x / self._cell_size), math.floor(pos.y / self._cell_size)

    def insert(self, object_id: int, pos: Vector2) -> None:
        self._cells[self._key(pos)].add(object_id)

    def remove(self, object_id: int, pos: Vector2) -> None:
        key = self._key(pos)
        bucket = self._cells.get(key)
        if bucket is not None:
            bucket.discard(object_id)
            if not bucket:
                del self._cells[key]

    def move(self, object_id: int, old_pos: Vector2, new_pos: Vector2) -> None:
        if self._key(old_pos) != self._key(new_pos):
            self.remove(object_id, old_pos)
            self.insert(object_id, new_pos)

    def query_radius(self, pos: Vector2, radius: float) -> set[int]:
        """Return candidate IDs in every cell overlapping the circle.

        Candidates still need an exact distance check.
        """
        cx, cy = self._key(pos)
        r = math.ceil(radius / self._cell_size)
        result: set[int] = set()
        for dx in range(-r, r + 1):
            for dy in range(-r, r + 1):
                bucket = self._cells.get((cx + dx, cy + dy))
                if bucket:
                    result.update(bucket)
        return result

    def clear(self) -> None:
        self._cells.clear()
