"""A* navigation over the terrain occupancy grid.

Provides a `GridNavigator` that plans 4-connected, unit-cost paths between
world positions, redirecting wall goals to the nearest open cell found by a
bounded breadth-first search.

Usage:
    nav = GridNavigator(grid, tile_size=50)
    path = nav.find_path(start, goal)      # list[Vector2] of cell centres, or None
"""

from __future__ import annotations

import heapq
import math
from collections import deque
from typing import TYPE_CHECKING

from evorts.core.models import Vector2

if TYPE_CHECKING:
    from evorts.core.grid import Grid

Cell = tuple[int, int]

# Cardinal directions only
_DIRS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class GridNavigator:
    """A* pathfinder operating on a terrain Grid.

    Read-only over the grid. When *max_nodes* is set, gives up after
    expanding that many nodes.
    """

    __slots__ = ("_grid", "_tile_size", "_fallback_radius", "_max_nodes")

    def __init__(
        self,
        grid: Grid,
        tile_size: float = 50.0,
        fallback_radius: int = 10,
        max_nodes: int | None = None,
    ) -> None:
        self._grid = grid
        self._tile_size = tile_size
        self._fallback_radius = fallback_radius
        self._max_nodes = max_nodes

    @property
    def tile_size(self) -> float:
        return self._tile_size

    # ------------------------------------------------------------------
    # Coordinate conversion
    # ------------------------------------------------------------------

    def world_to_cell(self, pos: Vector2) -> Cell:
        return math.floor(pos.x / self._tile_size), math.floor(pos.y / self._tile_size)

    def cell_to_world(self, cell: Cell) -> Vector2:
        half = self._tile_size / 2
        return Vector2(cell[0] * self._tile_size + half, cell[1] * self._tile_size + half)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_path(self, start: Vector2, goal: Vector2) -> list[Vector2] | None:
        """Plan a path between two world positions.

        Returns the cell centres from the start cell to the (possibly
        redirected) goal cell inclusive, or None if no path exists.
        """
        cells = self.find_cell_path(self.world_to_cell(start), self.world_to_cell(goal))
        if cells is None:
            return None
        return [self.cell_to_world(c) for c in cells]

    def find_cell_path(self, start: Cell, goal: Cell) -> list[Cell] | None:
        """A* between two cells. Path includes both endpoints."""
        grid = self._grid
        if not grid.in_bounds(*start):
            return None

        if not grid.in_bounds(*goal) or grid.is_wall(*goal):
            redirected = self.nearest_walkable(goal)
            if redirected is None:
                return None
            goal = redirected

        if start == goal:
            return [start]

        gx, gy = goal

        # A* open set: (f_score, counter, x, y)
        counter = 0
        open_heap: list[tuple[int, int, int, int]] = []
        heapq.heappush(open_heap, (abs(start[0] - gx) + abs(start[1] - gy), counter, start[0], start[1]))

        g_score: dict[Cell, int] = {start: 0}
        came_from: dict[Cell, Cell] = {}
        closed: set[Cell] = set()
        nodes_explored = 0

        while open_heap:
            if self._max_nodes is not None and nodes_explored >= self._max_nodes:
                break
            _, _, cx, cy = heapq.heappop(open_heap)
            ckey = (cx, cy)

            if ckey == goal:
                return self._reconstruct(came_from, ckey)

            if ckey in closed:
                continue
            closed.add(ckey)
            nodes_explored += 1

            tentative_g = g_score[ckey] + 1
            for dx, dy in _DIRS:
                nx, ny = cx + dx, cy + dy
                nkey = (nx, ny)
                if nkey in closed:
                    continue
                if not grid.in_bounds(nx, ny) or grid.is_wall(nx, ny):
                    continue
                if tentative_g < g_score.get(nkey, 1 << 30):
                    g_score[nkey] = tentative_g
                    came_from[nkey] = ckey
                    f = tentative_g + abs(nx - gx) + abs(ny - gy)  # Manhattan heuristic
                    counter += 1
                    heapq.heappush(open_heap, (f, counter, nx, ny))

        return None

    def nearest_walkable(self, origin: Cell, max_radius: int | None = None) -> Cell | None:
        """BFS outward from *origin* for the closest open cell.

        Only cells within *max_radius* steps (default: the navigator's
        fallback radius) are examined.
        """
        radius = self._fallback_radius if max_radius is None else max_radius
        grid = self._grid
        if grid.in_bounds(*origin) and not grid.is_wall(*origin):
            return origin

        visited: set[Cell] = {origin}
        queue: deque[tuple[Cell, int]] = deque([(origin, 0)])
        while queue:
            (x, y), depth = queue.popleft()
            if depth >= radius:
                continue
            for dx, dy in _DIRS:
                nkey = (x + dx, y + dy)
                if nkey in visited:
                    continue
                visited.add(nkey)
                if grid.in_bounds(*nkey) and not grid.is_wall(*nkey):
                    return nkey
                queue.append((nkey, depth + 1))
        return None

    @staticmethod
    def _reconstruct(came_from: dict[Cell, Cell], current: Cell) -> list[Cell]:
        """Walk back through came_from to build the path, start first."""
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path
