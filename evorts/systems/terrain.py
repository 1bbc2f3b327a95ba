"""Cave terrain via cellular automata, with optional wall-density targeting.

The generator seeds a random wall/open grid, then smooths it with a
birth/death rule over the 8 neighbours. The outer border is always wall and
a centred spawn rectangle is always open; both are re-applied after every
smoothing round so the final grid honours them.

All randomness flows through DeterministicRNG.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from evorts.core.enums import Domain, Material
from evorts.core.grid import Grid

if TYPE_CHECKING:
    from evorts.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)


class TerrainGenerator:
    """Builds occupancy grids and the matching collision index."""

    __slots__ = ("_rng", "_spawn_half_extent", "_generation", "_collision_index")

    def __init__(self, rng: DeterministicRNG, spawn_half_extent: int = 5) -> None:
        self._rng = rng
        self._spawn_half_extent = spawn_half_extent
        self._generation = 0
        self._collision_index: frozenset[tuple[int, int]] = frozenset()

    @property
    def collision_index(self) -> frozenset[tuple[int, int]]:
        """Wall cells of the most recently generated grid."""
        return self._collision_index

    def in_spawn_area(self, grid: Grid, x: int, y: int) -> bool:
        e = self._spawn_half_extent
        return abs(x - grid.width / 2) < e and abs(y - grid.height / 2) < e

    def is_fixed(self, grid: Grid, x: int, y: int) -> bool:
        """True for cells whose material the generator always forces."""
        return grid.is_border(x, y) or self.in_spawn_area(grid, x, y)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(
        self,
        width: int,
        height: int,
        fill_probability: float = 0.36,
        iterations: int = 3,
        birth_limit: int = 4,
        death_limit: int = 3,
    ) -> Grid:
        """Generate a cave grid. Always terminates; never raises for valid sizes."""
        self._generation += 1
        grid = self._seed(width, height, fill_probability)
        for _ in range(iterations):
            grid = self._smooth(grid, birth_limit, death_limit)
            self._clamp(grid)
        self._collision_index = grid.wall_cells()
        logger.debug(
            "Generated %dx%d terrain: %.1f%% wall after %d rounds",
            width, height, grid.wall_percentage(), iterations,
        )
        return grid

    def generate_with_density(
        self,
        width: int,
        height: int,
        target_percent: float,
        fill_probability: float = 0.36,
        iterations: int = 3,
        birth_limit: int = 4,
        death_limit: int = 3,
        tolerance: float = 3.0,
        max_attempts: int = 5,
    ) -> Grid:
        """Generate a grid whose wall share matches *target_percent* as closely as possible.

        Regenerates with a rescaled fill probability until the measured
        density is within *tolerance* points of the target (at most
        *max_attempts* tries), then flips individual non-fixed cells until
        the exact target wall count is reached or no candidates remain.
        """
        grid = self.generate(width, height, fill_probability, iterations, birth_limit, death_limit)
        attempts = 1
        while abs(grid.wall_percentage() - target_percent) > tolerance and attempts < max_attempts:
            if grid.wall_percentage() > target_percent:
                fill_probability *= 0.8
            else:
                fill_probability *= 1.2
            fill_probability = min(max(fill_probability, 0.0), 1.0)
            grid = self.generate(width, height, fill_probability, iterations, birth_limit, death_limit)
            attempts += 1

        self._correct_density(grid, target_percent)
        self._collision_index = grid.wall_cells()
        logger.info(
            "Terrain density %.2f%% (target %.2f%%) after %d attempt(s)",
            grid.wall_percentage(), target_percent, attempts,
        )
        return grid

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _seed(self, width: int, height: int, fill_probability: float) -> Grid:
        grid = Grid(width, height)
        gen = self._generation
        for y in range(height):
            for x in range(width):
                if self._rng.next_bool(Domain.MAP_GEN, y * width + x, gen, fill_probability):
                    grid.set(x, y, Material.WALL)
        self._clamp(grid)
        return grid

    @staticmethod
    def _smooth(grid: Grid, birth_limit: int, death_limit: int) -> Grid:
        """One automata round. Reads from *grid*, writes into a copy."""
        out = grid.copy()
        for y in range(grid.height):
            for x in range(grid.width):
                walls = grid.count_wall_neighbors(x, y)
                if grid.is_wall(x, y):
                    if walls < death_limit:
                        out.set(x, y, Material.OPEN)
                elif walls > birth_limit:
                    out.set(x, y, Material.WALL)
        return out

    def _clamp(self, grid: Grid) -> None:
        for y in range(grid.height):
            for x in range(grid.width):
                if grid.is_border(x, y):
                    grid.set(x, y, Material.WALL)
                elif self.in_spawn_area(grid, x, y):
                    grid.set(x, y, Material.OPEN)

    def _correct_density(self, grid: Grid, target_percent: float) -> None:
        total = grid.width * grid.height
        target = round(total * target_percent / 100)
        current = grid.wall_count()
        if current == target:
            return

        add_walls = current < target
        want = Material.OPEN if add_walls else Material.WALL
        candidates = [
            (x, y)
            for y in range(grid.height)
            for x in range(grid.width)
            if grid.get(x, y) == want and not self.is_fixed(grid, x, y)
        ]
        self._rng.shuffle(candidates, Domain.DENSITY, self._generation)

        flip_to = Material.WALL if add_walls else Material.OPEN
        needed = abs(target - current)
        for x, y in candidates[:needed]:
            grid.set(x, y, flip_to)

        if needed > len(candidates):
            logger.warning(
                "Exact density unreachable: %d of %d cells flipped", len(candidates), needed,
            )
