"""Tests for World, SpatialHash, EventLog and resource objects."""

import sys
import os
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from evorts.core.enums import ObjectType, ResourceType
from evorts.core.grid import Grid
from evorts.core.models import Bounds, Vector2, WorldObject
from evorts.core.world import World
from evorts.systems.spatial_hash import SpatialHash
from evorts.utils.event_log import EventLog, SimEvent


def _world() -> World:
    grid = Grid.from_rows([
        "#####",
        "#...#",
        "#...#",
        "#####",
    ])
    return World(grid, tile_size=10.0)


def _obj(oid: int, x: float, y: float, type: ObjectType = ObjectType.RESOURCE, **kw) -> WorldObject:
    return WorldObject(id=oid, pos=Vector2(x, y), type=type, **kw)


# ---------------------------------------------------------------------------
# Terrain queries
# ---------------------------------------------------------------------------

class TestTerrain:
    def test_is_wall_world_coords(self):
        world = _world()
        assert world.is_wall(5, 5)
        assert not world.is_wall(15, 15)
        assert world.is_wall(45, 15)

    def test_off_grid_is_wall(self):
        world = _world()
        assert world.is_wall(-1, 15)
        assert world.is_wall(15, 400)

    def test_bounds(self):
        assert _world().get_bounds() == Bounds(0.0, 0.0, 50.0, 40.0)

    def test_cell_center(self):
        assert _world().cell_center(2, 1) == Vector2(25, 15)

    def test_explicit_collision_index(self):
        grid = Grid(3, 3)
        world = World(grid, tile_size=10.0, collision_index=frozenset({(1, 1)}))
        assert world.is_wall(15, 15)
        assert not world.is_wall(5, 5)

    def test_bounds_clamp_with_margin(self):
        bounds = Bounds(0, 0, 100, 100)
        assert bounds.clamp(Vector2(-5, 120), margin=10) == Vector2(10, 90)


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------

class TestObjects:
    def test_radius_query_sorted_nearest_first(self):
        world = _world()
        world.add_object(_obj(1, 30, 15))
        world.add_object(_obj(2, 12, 15))
        world.add_object(_obj(3, 20, 15))
        found = world.get_objects_in_radius(10, 15, 25)
        assert [o.id for o in found] == [2, 3, 1]

    def test_radius_query_exact_distance(self):
        world = _world()
        world.add_object(_obj(1, 30, 15))
        assert world.get_objects_in_radius(10, 15, 19.9) == []

    def test_radius_query_type_filter(self):
        world = _world()
        world.add_object(_obj(1, 12, 15))
        world.add_object(_obj(2, 14, 15, type=ObjectType.ENEMY))
        found = world.get_objects_in_radius(10, 15, 10, ObjectType.ENEMY)
        assert [o.id for o in found] == [2]

    def test_remove(self):
        world = _world()
        world.add_object(_obj(1, 12, 15))
        assert world.remove_object(1).id == 1
        assert world.remove_object(1) is None
        assert world.get_object(1) is None
        assert world.get_objects_in_radius(12, 15, 5) == []

    def test_allocate_ids_skip_existing(self):
        world = _world()
        world.add_object(_obj(7, 12, 15))
        assert world.allocate_object_id() == 8

    def test_resources_listing(self):
        world = _world()
        world.add_object(_obj(1, 12, 15))
        world.add_object(_obj(2, 14, 15, type=ObjectType.STRUCTURE))
        assert [o.id for o in world.resources()] == [1]


class TestResourceObjects:
    def test_regeneration(self):
        world = _world()
        res = _obj(1, 12, 15, resource_type=ResourceType.ENERGY,
                   quantity=10.0, max_quantity=20.0, regeneration_rate=0.1)
        world.add_object(res)
        world.update(1000)
        assert res.quantity == pytest.approx(10.1)

    def test_regeneration_capped(self):
        res = _obj(1, 0, 0, quantity=19.99, max_quantity=20.0, regeneration_rate=1.0)
        res.regenerate(1000)
        assert res.quantity == 20.0

    def test_depleted_does_not_regenerate(self):
        res = _obj(1, 0, 0, quantity=1.0, max_quantity=20.0, regeneration_rate=1.0)
        res.extract(0.6)
        assert res.depleted
        assert res.quantity == 0.0
        res.regenerate(5000)
        assert res.quantity == 0.0

    def test_extract_returns_taken(self):
        res = _obj(1, 0, 0, quantity=4.0, max_quantity=4.0)
        assert res.extract(10) == pytest.approx(4.0)
        assert res.extract(1) == 0.0


# ---------------------------------------------------------------------------
# SpatialHash
# ---------------------------------------------------------------------------

class TestSpatialHash:
    def test_query_returns_candidates(self):
        sh = SpatialHash(cell_size=10)
        sh.insert(1, Vector2(5, 5))
        sh.insert(2, Vector2(95, 95))
        assert sh.query_radius(Vector2(0, 0), 10) == {1}

    def test_move_between_cells(self):
        sh = SpatialHash(cell_size=10)
        sh.insert(1, Vector2(5, 5))
        sh.move(1, Vector2(5, 5), Vector2(95, 95))
        assert sh.query_radius(Vector2(0, 0), 10) == set()
        assert sh.query_radius(Vector2(95, 95), 1) == {1}

    def test_remove_and_clear(self):
        sh = SpatialHash(cell_size=10)
        sh.insert(1, Vector2(5, 5))
        sh.insert(2, Vector2(6, 6))
        sh.remove(1, Vector2(5, 5))
        assert sh.query_radius(Vector2(5, 5), 1) == {2}
        sh.clear()
        assert sh.query_radius(Vector2(5, 5), 100) == set()


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------

class TestEventLog:
    def test_bounded(self):
        log = EventLog(maxlen=3)
        for i in range(5):
            log.emit(float(i), "tick", f"event {i}")
        assert len(log) == 3
        assert [e.message for e in log.latest(10)] == ["event 2", "event 3", "event 4"]

    def test_since_and_category(self):
        log = EventLog()
        log.emit(10.0, "area_explored", "a", entity_ids=(1,))
        log.emit(20.0, "level_up", "b", entity_ids=(1,), metadata={"level": 2})
        log.emit(30.0, "area_explored", "c")
        assert [e.message for e in log.since(20.0)] == ["b", "c"]
        assert [e.message for e in log.by_category("area_explored")] == ["a", "c"]
        assert log.by_category("level_up")[0].metadata == {"level": 2}

    def test_append_and_clear(self):
        log = EventLog()
        log.append(SimEvent(1.0, "x", "y"))
        assert log.latest(1)[0].category == "x"
        log.clear()
        assert len(log) == 0

    def test_concurrent_writers(self):
        log = EventLog(maxlen=None)

        def writer(n: int) -> None:
            for i in range(200):
                log.emit(float(i), "w", str(n))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 800
