"""Unit tests for the A* grid navigator and its nearest-walkable fallback."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from evorts.ai.pathfinding import GridNavigator
from evorts.core.enums import Material
from evorts.core.grid import Grid
from evorts.core.models import Vector2


def _nav(grid: Grid, **kwargs) -> GridNavigator:
    return GridNavigator(grid, tile_size=10.0, **kwargs)


def _assert_adjacent_steps(grid: Grid, path: list[tuple[int, int]]) -> None:
    for (ax, ay), (bx, by) in zip(path, path[1:]):
        assert abs(ax - bx) + abs(ay - by) == 1, f"{(ax, ay)} -> {(bx, by)} is not a 4-step"
    for cell in path:
        assert grid.is_open(*cell), f"path crosses wall at {cell}"


# ---------------------------------------------------------------------------
# Basic A* tests
# ---------------------------------------------------------------------------

class TestAStarBasic:
    def test_open_grid_corner_to_corner(self):
        grid = Grid(5, 5)
        path = _nav(grid).find_cell_path((0, 0), (4, 4))
        assert path is not None
        assert len(path) == 9
        assert path[0] == (0, 0)
        assert path[-1] == (4, 4)
        _assert_adjacent_steps(grid, path)

    def test_g_score_increases_by_one_per_step(self):
        grid = Grid(5, 5)
        path = _nav(grid).find_cell_path((0, 0), (4, 4))
        for i, (x, y) in enumerate(path):
            assert x + y == i

    def test_world_path_uses_cell_centres(self):
        grid = Grid(5, 5)
        path = _nav(grid).find_path(Vector2(1, 2), Vector2(48, 41))
        assert path is not None
        assert len(path) == 9
        assert path[0] == Vector2(5, 5)
        assert path[-1] == Vector2(45, 45)

    def test_same_cell_returns_single_point(self):
        grid = Grid(5, 5)
        path = _nav(grid).find_path(Vector2(21, 22), Vector2(28, 27))
        assert path == [Vector2(25, 25)]

    def test_path_around_wall(self):
        grid = Grid.from_rows([
            "..#..",
            "..#..",
            "..#..",
            "..#..",
            ".....",
        ])
        path = _nav(grid).find_cell_path((0, 0), (4, 0))
        assert path is not None
        assert len(path) == 13
        _assert_adjacent_steps(grid, path)

    def test_enclosed_goal_is_unreachable(self):
        grid = Grid.from_rows([
            ".....",
            ".###.",
            ".#.#.",
            ".###.",
            ".....",
        ])
        assert _nav(grid).find_cell_path((0, 0), (2, 2)) is None

    def test_start_off_grid_returns_none(self):
        grid = Grid(5, 5)
        assert _nav(grid).find_path(Vector2(-15, 5), Vector2(45, 45)) is None

    def test_node_budget_gives_up(self):
        grid = Grid(10, 10)
        assert _nav(grid, max_nodes=3).find_cell_path((0, 0), (9, 9)) is None

    def test_without_budget_long_path_found(self):
        grid = Grid(30, 30)
        path = _nav(grid).find_cell_path((0, 0), (29, 29))
        assert path is not None
        assert len(path) == 59


# ---------------------------------------------------------------------------
# Wall goals and the nearest-walkable fallback
# ---------------------------------------------------------------------------

class TestWallGoal:
    def test_wall_goal_redirects_to_nearest_open(self):
        grid = Grid(5, 5)
        grid.set(4, 4, Material.WALL)
        path = _nav(grid).find_cell_path((0, 0), (4, 4))
        assert path is not None
        assert path[-1] == (3, 4)
        assert len(path) == 8
        _assert_adjacent_steps(grid, path)

    def test_wall_goal_without_open_cell_in_radius(self):
        grid = Grid.from_rows([
            ".####",
            "#####",
            "#####",
            "#####",
            "#####",
        ])
        nav = _nav(grid, fallback_radius=2)
        assert nav.find_cell_path((0, 0), (4, 4)) is None
        assert nav.find_path(Vector2(5, 5), Vector2(45, 45)) is None

    def test_fallback_radius_bounds_search(self):
        grid = Grid.from_rows([
            ".####",
            "#####",
            "#####",
            "#####",
            "#####",
        ])
        assert _nav(grid).nearest_walkable((4, 4), max_radius=7) is None
        assert _nav(grid).nearest_walkable((4, 4), max_radius=8) == (0, 0)

    def test_open_origin_is_its_own_nearest(self):
        grid = Grid(5, 5)
        assert _nav(grid).nearest_walkable((2, 3)) == (2, 3)

    def test_off_grid_goal_redirected_inside(self):
        grid = Grid(5, 5)
        path = _nav(grid).find_cell_path((0, 0), (5, 2))
        assert path is not None
        assert path[-1] == (4, 2)
