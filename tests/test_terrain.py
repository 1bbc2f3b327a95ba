"""Tests for cellular-automata cave generation and density targeting."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from evorts.core.enums import Material
from evorts.core.grid import Grid
from evorts.systems.rng import DeterministicRNG
from evorts.systems.terrain import TerrainGenerator


def _gen(seed: int = 42) -> TerrainGenerator:
    return TerrainGenerator(DeterministicRNG(seed))


def _assert_fixed_cells(gen: TerrainGenerator, grid: Grid) -> None:
    for y in range(grid.height):
        for x in range(grid.width):
            if grid.is_border(x, y):
                assert grid.is_wall(x, y), f"border cell {(x, y)} is open"
            elif gen.in_spawn_area(grid, x, y):
                assert grid.is_open(x, y), f"spawn cell {(x, y)} is wall"


# ---------------------------------------------------------------------------
# Cave generation
# ---------------------------------------------------------------------------

class TestCaveGeneration:
    def test_border_is_wall_and_spawn_open(self):
        gen = _gen()
        grid = gen.generate(40, 30)
        _assert_fixed_cells(gen, grid)

    def test_fixed_cells_hold_for_dense_fill(self):
        """Even a very dense seed cannot close the spawn area."""
        gen = _gen(7)
        grid = gen.generate(40, 30, fill_probability=0.7, iterations=5)
        _assert_fixed_cells(gen, grid)

    def test_spawn_area_is_centered_rectangle(self):
        gen = _gen()
        grid = Grid(40, 30)
        cells = [(x, y) for y in range(30) for x in range(40) if gen.in_spawn_area(grid, x, y)]
        assert len(cells) == 81
        assert min(x for x, _ in cells) == 16
        assert max(x for x, _ in cells) == 24
        assert min(y for _, y in cells) == 11
        assert max(y for _, y in cells) == 19

    def test_full_fill_leaves_only_spawn_open(self):
        gen = _gen()
        grid = gen.generate(40, 30, fill_probability=1.0)
        assert grid.wall_count() == 40 * 30 - 81

    def test_same_seed_same_grid(self):
        a = _gen(123).generate(40, 30)
        b = _gen(123).generate(40, 30)
        assert a.rows() == b.rows()

    def test_different_seed_differs(self):
        a = _gen(1).generate(40, 30)
        b = _gen(2).generate(40, 30)
        assert a.rows() != b.rows()

    def test_regeneration_draws_fresh_noise(self):
        gen = _gen(5)
        a = gen.generate(40, 30)
        b = gen.generate(40, 30)
        assert a.rows() != b.rows()

    def test_collision_index_matches_grid(self):
        gen = _gen()
        grid = gen.generate(40, 30)
        assert gen.collision_index == grid.wall_cells()
        assert (0, 0) in gen.collision_index


class TestSmoothingRule:
    def test_isolated_wall_dies(self):
        grid = Grid.from_rows([
            ".....",
            ".....",
            "..#..",
            ".....",
            ".....",
        ])
        out = TerrainGenerator._smooth(grid, birth_limit=4, death_limit=3)
        assert out.is_open(2, 2)

    def test_off_grid_counts_as_wall(self):
        """A corner cell sees 5 off-grid walls, which exceeds the birth limit."""
        grid = Grid(5, 5)
        out = TerrainGenerator._smooth(grid, birth_limit=4, death_limit=3)
        assert out.is_wall(0, 0)
        assert out.is_open(2, 2)

    def test_supported_wall_survives(self):
        grid = Grid.from_rows([
            ".....",
            ".###.",
            ".###.",
            ".###.",
            ".....",
        ])
        out = TerrainGenerator._smooth(grid, birth_limit=4, death_limit=3)
        assert out.is_wall(2, 2)
        # Edge of the block has 5 wall neighbours: stays wall
        assert out.is_wall(1, 2)

    def test_smoothing_reads_previous_generation(self):
        grid = Grid.from_rows([
            ".....",
            ".....",
            "..#..",
            ".....",
            ".....",
        ])
        TerrainGenerator._smooth(grid, birth_limit=4, death_limit=3)
        assert grid.get(2, 2) == Material.WALL


# ---------------------------------------------------------------------------
# Density targeting
# ---------------------------------------------------------------------------

class TestDensityTargeting:
    def test_hits_exact_wall_count(self):
        gen = _gen()
        grid = gen.generate_with_density(40, 30, target_percent=45.0)
        assert grid.wall_count() == round(40 * 30 * 0.45)

    def test_fixed_cells_survive_correction(self):
        gen = _gen(9)
        grid = gen.generate_with_density(40, 30, target_percent=60.0)
        _assert_fixed_cells(gen, grid)

    def test_low_target_stops_at_border(self):
        """Border walls cannot be flipped, so 0% ends at the border count."""
        gen = _gen()
        grid = gen.generate_with_density(40, 30, target_percent=0.0)
        assert grid.wall_count() == 2 * 40 + 2 * 28

    def test_high_target_stops_at_spawn(self):
        gen = _gen()
        grid = gen.generate_with_density(40, 30, target_percent=100.0)
        assert grid.wall_count() == 40 * 30 - 81

    def test_collision_index_rebuilt_after_correction(self):
        gen = _gen()
        grid = gen.generate_with_density(40, 30, target_percent=30.0)
        assert gen.collision_index == grid.wall_cells()
        assert len(gen.collision_index) == grid.wall_count()
