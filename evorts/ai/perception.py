"""Fog of war: which coarse cells a unit can currently see or has ever seen."""

from __future__ import annotations

import math

from evorts.core.models import Vector2

Cell = tuple[int, int]


class FogOfWar:
    """Per-unit visibility over a coarse cell lattice.

    ``visible`` is rebuilt on every refresh from the unit's position and
    perception radius. ``explored`` only ever grows. With fog disabled every
    position counts as visible and explored.
    """

    __slots__ = ("cell_size", "enabled", "visible", "explored")

    def __init__(self, cell_size: float = 50.0, enabled: bool = True) -> None:
        self.cell_size = cell_size
        self.enabled = enabled
        self.visible: set[Cell] = set()
        self.explored: set[Cell] = set()

    def cell_of(self, pos: Vector2) -> Cell:
        return math.floor(pos.x / self.cell_size), math.floor(pos.y / self.cell_size)

    def cell_center(self, cell: Cell) -> Vector2:
        half = self.cell_size / 2
        return Vector2(cell[0] * self.cell_size + half, cell[1] * self.cell_size + half)

    def vision_radius(self, perception_radius: float) -> int:
        return math.ceil(perception_radius / self.cell_size)

    def update(self, pos: Vector2, perception_radius: float) -> list[Cell]:
        """Rebuild the visible set. Returns cells explored for the first time."""
        if not self.enabled:
            return []
        cx, cy = self.cell_of(pos)
        r = self.vision_radius(perception_radius)
        visible: set[Cell] = set()
        newly_explored: list[Cell] = []
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if cx + dx < 0 or cy + dy < 0 or math.sqrt(dx * dx + dy * dy) > r:
                    continue
                cell = (cx + dx, cy + dy)
                visible.add(cell)
                if cell not in self.explored:
                    self.explored.add(cell)
                    newly_explored.append(cell)
        self.visible = visible
        return newly_explored

    def is_position_visible(self, pos: Vector2) -> bool:
        return not self.enabled or self.cell_of(pos) in self.visible

    def is_position_explored(self, pos: Vector2) -> bool:
        return not self.enabled or self.cell_of(pos) in self.explored

    def unexplored_cells_near(self, pos: Vector2, radius_cells: int) -> list[Cell]:
        """Unexplored cells within a square of *radius_cells* around *pos*, row-major."""
        if not self.enabled:
            return []
        cx, cy = self.cell_of(pos)
        return [
            (cx + dx, cy + dy)
            for dy in range(-radius_cells, radius_cells + 1)
            for dx in range(-radius_cells, radius_cells + 1)
            if cx + dx >= 0 and cy + dy >= 0 and (cx + dx, cy + dy) not in self.explored
        ]

    def reset(self) -> None:
        self.visible.clear()
        self.explored.clear()
