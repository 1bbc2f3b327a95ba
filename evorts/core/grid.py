"""Grid / occupancy map."""

from __future__ import annotations

from evorts.core.enums import Material


class Grid:
    """2D tile grid backed by a flat list for cache-friendly access.

    Cells are addressed by integer ``(x, y)``; anything off-grid reads as WALL.
    """

    __slots__ = ("width", "height", "_tiles")

    def __init__(self, width: int, height: int, default: Material = Material.OPEN) -> None:
        self.width = width
        self.height = height
        self._tiles: list[Material] = [default] * (width * height)

    # -- access --

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Material:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self._tiles[y * self.width + x]
        return Material.WALL

    def set(self, x: int, y: int, material: Material) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self._tiles[y * self.width + x] = material

    def is_wall(self, x: int, y: int) -> bool:
        return self.get(x, y) == Material.WALL

    def is_open(self, x: int, y: int) -> bool:
        return self.get(x, y) == Material.OPEN

    def is_border(self, x: int, y: int) -> bool:
        return x == 0 or y == 0 or x == self.width - 1 or y == self.height - 1

    # -- aggregates --

    def wall_count(self) -> int:
        return sum(1 for t in self._tiles if t == Material.WALL)

    def wall_percentage(self) -> float:
        total = self.width * self.height
        return 100.0 * self.wall_count() / total if total else 0.0

    def wall_cells(self) -> frozenset[tuple[int, int]]:
        """Build the collision index: the set of every wall cell."""
        w = self.width
        return frozenset(
            (i % w, i // w) for i, t in enumerate(self._tiles) if t == Material.WALL
        )

    def open_cells(self) -> list[tuple[int, int]]:
        w = self.width
        return [(i % w, i // w) for i, t in enumerate(self._tiles) if t == Material.OPEN]

    def count_wall_neighbors(self, x: int, y: int) -> int:
        """Count the 8 surrounding cells that are WALL; off-grid counts as WALL."""
        count = 0
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                if self.get(x + dx, y + dy) == Material.WALL:
                    count += 1
        return count

    def rows(self) -> list[str]:
        """Render as strings, ``#`` for walls and ``.`` for open cells."""
        w = self.width
        return [
            "".join("#" if t == Material.WALL else "." for t in self._tiles[y * w:(y + 1) * w])
            for y in range(self.height)
        ]

    # -- copy --

    def copy(self) -> Grid:
        new = Grid.__new__(Grid)
        new.width = self.width
        new.height = self.height
        new._tiles = list(self._tiles)
        return new

    @classmethod
    def from_rows(cls, rows: list[str]) -> Grid:
        """Build a grid from strings where ``#`` marks a wall."""
        height = len(rows)
        width = len(rows[0]) if rows else 0
        grid = cls(width, height)
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                if ch == "#":
                    grid.set(x, y, Material.WALL)
        return grid
