"""Tests for the default worker behavior callbacks."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from evorts.ai.behaviors import (
    DEFAULT_WORKER_BEHAVIORS,
    BehaviorContext,
    default_damaged,
    default_enemy_spotted,
    default_idle,
    default_object_perceived,
    default_resource_spotted,
    worker_behaviors,
)
from evorts.core.enums import ActionKind, BehaviorEvent
from evorts.core.memory import PerceivedObject
from evorts.core.models import Cargo, Entity, Stats, Vector2


def _unit(health: float = 100.0, cargo_energy: int = 0, pos: Vector2 = Vector2(100, 100)):
    entity = Entity(
        id=1, kind="worker", pos=pos,
        stats=Stats(health=health, carry_capacity=30),
        cargo=Cargo(energy=cargo_energy),
    )
    return entity.view()


def _ctx(event: BehaviorEvent, **fields) -> BehaviorContext:
    return BehaviorContext(event=event, **fields)


class TestIdle:
    def test_explores(self):
        action = default_idle(_unit(), _ctx(BehaviorEvent.ON_IDLE))
        assert action.kind == ActionKind.EXPLORE


class TestResourceSpotted:
    def test_gathers(self):
        action = default_resource_spotted(
            _unit(), _ctx(BehaviorEvent.ON_RESOURCE_SPOTTED, position=Vector2(150, 100)),
        )
        assert action.kind == ActionKind.GATHER
        assert action.target == Vector2(150, 100)

    def test_full_cargo_returns(self):
        action = default_resource_spotted(
            _unit(cargo_energy=30), _ctx(BehaviorEvent.ON_RESOURCE_SPOTTED, position=Vector2(150, 100)),
        )
        assert action.kind == ActionKind.RETURN_TO_BASE

    def test_missing_position(self):
        assert default_resource_spotted(_unit(), _ctx(BehaviorEvent.ON_RESOURCE_SPOTTED)) is None


class TestEnemySpotted:
    def test_flees_directly_away(self):
        action = default_enemy_spotted(
            _unit(), _ctx(BehaviorEvent.ON_ENEMY_SPOTTED, position=Vector2(120, 90)),
        )
        assert action.kind == ActionKind.FLEE
        assert action.target == Vector2(80, 110)


class TestDamaged:
    def test_critical_flees_from_source(self):
        action = default_damaged(
            _unit(health=20), _ctx(BehaviorEvent.ON_DAMAGED, damage=5, source=Vector2(90, 100)),
        )
        assert action.kind == ActionKind.FLEE
        assert action.target == Vector2(110, 100)

    def test_critical_without_source_returns(self):
        action = default_damaged(_unit(health=20), _ctx(BehaviorEvent.ON_DAMAGED, damage=5))
        assert action.kind == ActionKind.RETURN_TO_BASE

    def test_weak_attacker_close_is_engaged(self):
        action = default_damaged(
            _unit(), _ctx(BehaviorEvent.ON_DAMAGED, source=Vector2(110, 100), source_health=20),
        )
        assert action.kind == ActionKind.MOVE_AND_ATTACK
        assert action.target == Vector2(95, 100)

    def test_weak_attacker_far_is_attacked(self):
        action = default_damaged(
            _unit(), _ctx(BehaviorEvent.ON_DAMAGED, source=Vector2(200, 100), source_health=20),
        )
        assert action.kind == ActionKind.ATTACK
        assert action.target == Vector2(200, 100)

    def test_strong_attacker_flee(self):
        action = default_damaged(
            _unit(), _ctx(BehaviorEvent.ON_DAMAGED, source=Vector2(200, 100), source_health=90),
        )
        assert action.kind == ActionKind.FLEE

    def test_unknown_source_ignored(self):
        assert default_damaged(_unit(), _ctx(BehaviorEvent.ON_DAMAGED, damage=3)) is None


class TestObjectPerceived:
    def _perceived(self, pos: Vector2, analyzed: bool = False, type: str = "resource"):
        return PerceivedObject(id=4, position=pos, type=type, analyzed=analyzed)

    def test_far_unanalyzed_is_approached(self):
        obj = self._perceived(Vector2(150, 100))
        action = default_object_perceived(_unit(), _ctx(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=obj))
        assert action.kind == ActionKind.APPROACH
        assert action.target == Vector2(150, 100)

    def test_close_unanalyzed_is_analyzed(self):
        obj = self._perceived(Vector2(110, 100))
        action = default_object_perceived(_unit(), _ctx(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=obj))
        assert action.kind == ActionKind.ANALYZE
        assert action.object_id == 4

    def test_known_resource_gathered(self):
        obj = self._perceived(Vector2(150, 100), analyzed=True)
        action = default_object_perceived(_unit(), _ctx(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=obj))
        assert action.kind == ActionKind.GATHER

    def test_known_enemy_fled(self):
        obj = self._perceived(Vector2(150, 100), analyzed=True, type="enemy")
        action = default_object_perceived(_unit(), _ctx(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=obj))
        assert action.kind == ActionKind.FLEE

    def test_known_other_continues(self):
        obj = self._perceived(Vector2(150, 100), analyzed=True, type="structure")
        action = default_object_perceived(_unit(), _ctx(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=obj))
        assert action.kind == ActionKind.CONTINUE


class TestDefaults:
    def test_copy_is_independent(self):
        behaviors = worker_behaviors()
        behaviors[BehaviorEvent.ON_IDLE] = None
        assert DEFAULT_WORKER_BEHAVIORS[BehaviorEvent.ON_IDLE] is default_idle

    def test_every_event_covered(self):
        assert set(worker_behaviors()) == set(BehaviorEvent)
