"""Per-unit controller: movement, fog of war, perception, analysis and decisions.

A BehaviorEngine owns no clock of its own. The scheduler calls ``update``
with a fixed step; inside, three independently accumulating timers pace
the slower layers:

  fog of war refresh   every 200 ms
  perception scan      every 250 ms
  decision execution   every 400 ms

Behavior callbacks stored on the entity produce ActionDescriptors which
``dispatch`` turns into a destination plus a state. A callback that raises
is logged and treated as if it returned nothing.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import TYPE_CHECKING, Any, Callable

from evorts.actions.gather import deposit_resources, find_nearby_resource, gather_resource
from evorts.ai.behaviors import BehaviorContext
from evorts.ai.perception import FogOfWar
from evorts.config import SimulationConfig
from evorts.core.enums import ActionKind, BehaviorEvent, Domain, ObjectType, TaskType, UnitState
from evorts.core.memory import PerceivedObject
from evorts.core.models import ActionDescriptor, Bounds, Task, Vector2
from evorts.systems.rng import DeterministicRNG

if TYPE_CHECKING:
    from evorts.ai.pathfinding import GridNavigator
    from evorts.core.models import Base, Entity
    from evorts.core.world import WorldLike
    from evorts.utils.event_log import EventLog

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]

# Used when no world is attached.
DEFAULT_BOUNDS = Bounds(0.0, 0.0, 4200.0, 3000.0)

# Notifications too frequent to keep in the event log.
_UNLOGGED_EVENTS = frozenset({"moved"})


class BehaviorEngine:
    """Drives one entity. Holds references to its world, base and navigator."""

    __slots__ = (
        "entity", "world", "base", "navigator", "fog",
        "_config", "_event_log", "_rng", "_rng_counter",
        "_time_ms", "_fog_timer", "_perception_timer", "_decision_timer",
        "_waypoints", "_listeners",
    )

    def __init__(
        self,
        entity: Entity,
        world: WorldLike | None = None,
        base: Base | None = None,
        *,
        config: SimulationConfig | None = None,
        event_log: EventLog | None = None,
        rng: DeterministicRNG | None = None,
        navigator: GridNavigator | None = None,
    ) -> None:
        self.entity = entity
        self.world = world
        self.base = base
        self.navigator = navigator
        self._config = config or SimulationConfig()
        self._event_log = event_log
        self._rng = rng or DeterministicRNG()
        self._rng_counter = 0
        self.fog = FogOfWar(self._config.fog_cell_size, enabled=self._config.fog_of_war)

        self._time_ms = 0.0
        self._fog_timer = 0.0
        self._perception_timer = 0.0
        self._decision_timer = 0.0
        self._waypoints: deque[Vector2] = deque()
        self._listeners: dict[str, list[Listener]] = {}

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def time_ms(self) -> float:
        """Game time this engine has been updated for."""
        return self._time_ms

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def waypoints(self) -> list[Vector2]:
        return list(self._waypoints)

    def set_world(self, world: WorldLike | None) -> None:
        self.world = world

    def set_base(self, base: Base | None) -> None:
        self.base = base

    def set_navigator(self, navigator: GridNavigator | None) -> None:
        self.navigator = navigator
        self._waypoints.clear()

    def set_behavior(self, event: BehaviorEvent | str, fn: Callable | None) -> bool:
        """Install a behavior callback. Unknown events and non-callables are refused."""
        try:
            key = BehaviorEvent(event)
        except ValueError:
            logger.warning("Unit %d: unknown behavior event %r", self.entity.id, event)
            return False
        if fn is not None and not callable(fn):
            logger.warning("Unit %d: behavior for %s is not callable", self.entity.id, key.value)
            return False
        self.entity.behaviors[key] = fn
        return True

    def add_listener(self, event: str, fn: Listener) -> None:
        self._listeners.setdefault(event, []).append(fn)

    def get_perception_map(self) -> list[PerceivedObject]:
        return self.entity.memory.objects()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self, delta_ms: float) -> None:
        entity = self.entity
        if not entity.alive:
            return
        self._time_ms += delta_ms

        stats = entity.stats
        if stats.health < stats.max_health:
            stats.health = min(stats.max_health, stats.health + stats.regen_speed * delta_ms / 1000)

        self.move_to_destination(delta_ms)

        cfg = self._config
        self._fog_timer += delta_ms
        self._perception_timer += delta_ms
        self._decision_timer += delta_ms

        if self._fog_timer >= cfg.fog_interval_ms:
            self._fog_timer = 0.0
            self.update_fog_of_war()

        if self._perception_timer >= cfg.perception_interval_ms:
            self._perception_timer = 0.0
            self.update_perception()

        if self._decision_timer >= cfg.decision_interval_ms:
            self._decision_timer = 0.0
            self.execute_behavior()

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def current_speed(self) -> float:
        """Base speed, halved when overloaded and halved again when critically hurt."""
        entity = self.entity
        speed = entity.stats.speed
        if entity.cargo_weight > entity.stats.carry_capacity:
            speed *= 0.5
        if entity.stats.health < entity.stats.max_health * 0.3:
            speed *= 0.5
        return speed

    def in_reach(self, point: Vector2 | None) -> bool:
        if point is None:
            return False
        return self.entity.pos.distance(point) <= self._config.interaction_range

    def bounds(self) -> Bounds:
        if self.world is None:
            return DEFAULT_BOUNDS
        return self.world.get_bounds()

    def set_destination(self, target: Vector2) -> None:
        """Head for *target*, planning a route when a navigator is attached."""
        entity = self.entity
        entity.destination = target
        entity.is_moving = True
        self._waypoints.clear()

        if self.navigator is None or not self._config.use_pathfinding:
            return

        path = self.navigator.find_path(entity.pos, target)
        if path is None:
            logger.debug("Unit %d: no route to %s, moving straight", entity.id, target)
            self.emit("unreachable_goal", {"x": target.x, "y": target.y})
            return

        nav = self.navigator
        # Goal inside a wall: the path ends at the nearest open cell instead,
        # which may be the cell the unit already stands in.
        redirected = nav.world_to_cell(path[-1]) != nav.world_to_cell(target)
        if redirected:
            entity.destination = path[-1]

        # Drop the start cell; the unit is already in it.
        waypoints = path[1:]
        if waypoints and not redirected:
            waypoints[-1] = target
        self._waypoints.extend(waypoints)

    def move_to_destination(self, delta_ms: float) -> None:
        entity = self.entity
        dest = entity.destination
        if dest is None:
            return

        if self.in_reach(dest):
            self._arrive(dest)
            return

        target = self._next_waypoint(dest)
        distance = entity.pos.distance(target)
        step = min(self.current_speed() * delta_ms / 1000, distance)
        angle = entity.pos.angle_to(target)
        new_pos = Vector2(
            entity.pos.x + math.cos(angle) * step,
            entity.pos.y + math.sin(angle) * step,
        )
        new_pos = self.bounds().clamp(new_pos, self._config.world_margin)

        if self.world is not None and self.world.is_wall(new_pos.x, new_pos.y):
            return  # blocked; keep the destination

        entity.pos = new_pos
        entity.direction = angle
        self.emit("moved", {"x": new_pos.x, "y": new_pos.y})

    def _next_waypoint(self, dest: Vector2) -> Vector2:
        while len(self._waypoints) > 1 and self.in_reach(self._waypoints[0]):
            self._waypoints.popleft()
        if self._waypoints:
            return self._waypoints[0]
        return dest

    def _arrive(self, dest: Vector2) -> None:
        entity = self.entity
        entity.destination = None
        entity.is_moving = False
        self._waypoints.clear()
        self.emit("destination_reached", {"x": dest.x, "y": dest.y})

        if entity.state == UnitState.MOVING:
            entity.set_state(UnitState.IDLE)
        elif entity.state == UnitState.GATHERING:
            resource = find_nearby_resource(self)
            if resource is not None:
                gather_resource(self, resource)
        elif entity.state == UnitState.RETURNING:
            if self.base is not None and self.in_reach(self.base.pos):
                entity.set_state(UnitState.DEPOSITING)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: ActionDescriptor | None) -> bool:
        """Apply a behavior result. Returns True if it caused a transition."""
        if action is None or action.kind == ActionKind.CONTINUE:
            return False

        entity = self.entity
        kind = action.kind

        if kind in (ActionKind.MOVE, ActionKind.APPROACH, ActionKind.FLEE):
            if action.target is None:
                return False
            self.set_destination(action.target)
            entity.set_state(UnitState.MOVING)

        elif kind in (ActionKind.ATTACK, ActionKind.MOVE_AND_ATTACK):
            if action.target is None:
                return False
            self.set_destination(action.target)
            entity.set_state(UnitState.ATTACKING)

        elif kind == ActionKind.GATHER:
            if action.target is None:
                return False
            self.set_destination(action.target)
            entity.set_state(UnitState.GATHERING)

        elif kind == ActionKind.RETURN_TO_BASE:
            if self.base is None:
                return False
            self.set_destination(self.base.pos)
            entity.set_state(UnitState.RETURNING)

        elif kind == ActionKind.ANALYZE:
            if action.object_id is None:
                return False
            known = entity.memory.get(action.object_id)
            target = known.position if known is not None else action.target
            if target is None:
                return False
            self.set_destination(target)
            entity.set_state(UnitState.ANALYZING)
            entity.current_task = Task(TaskType.ANALYZE, action.object_id)

        elif kind == ActionKind.EXPLORE:
            self.set_destination(self._exploration_target())
            entity.set_state(UnitState.EXPLORING)

        else:
            return False
        return True

    def _next_random(self) -> float:
        self._rng_counter += 1
        return self._rng.next_float(Domain.EXPLORE, self.entity.id, self._rng_counter)

    def _exploration_angle(self) -> float:
        """Angle toward a random unexplored cell nearby, or a random angle."""
        entity = self.entity
        fog = self.fog
        if fog.enabled and fog.explored:
            radius = fog.vision_radius(entity.stats.perception_radius) + 2
            candidates = fog.unexplored_cells_near(entity.pos, radius)
            if candidates:
                idx = min(int(self._next_random() * len(candidates)), len(candidates) - 1)
                return entity.pos.angle_to(fog.cell_center(candidates[idx]))
        return self._next_random() * 2 * math.pi

    def _exploration_target(self) -> Vector2:
        entity = self.entity
        angle = self._exploration_angle()
        distance = entity.stats.perception_radius * 0.8
        target = Vector2(
            entity.pos.x + math.cos(angle) * distance,
            entity.pos.y + math.sin(angle) * distance,
        )
        return self.bounds().clamp(target, self._config.world_margin)

    def _invoke(self, event: BehaviorEvent, ctx: BehaviorContext) -> ActionDescriptor | None:
        fn = self.entity.behaviors.get(event)
        if fn is None:
            return None
        try:
            return fn(self.entity.view(), ctx)
        except Exception:
            logger.exception("Unit %d: %s behavior raised", self.entity.id, event.value)
            self.emit("behavior_error", {"event": event.value})
            return None

    def _context(self, event: BehaviorEvent, **fields: Any) -> BehaviorContext:
        base_pos = self.base.pos if self.base is not None else None
        return BehaviorContext(event=event, time_ms=self._time_ms, base_position=base_pos, **fields)

    # ------------------------------------------------------------------
    # Fog of war & perception
    # ------------------------------------------------------------------

    def update_fog_of_war(self) -> None:
        newly = self.fog.update(self.entity.pos, self.entity.stats.perception_radius)
        for cx, cy in newly:
            self.emit("area_explored", {"x": cx, "y": cy, "cell_size": self.fog.cell_size})

    def update_perception(self) -> None:
        if self.world is None:
            return
        entity = self.entity
        memory = entity.memory
        now = self._time_ms

        nearby = self.world.get_objects_in_radius(
            entity.pos.x, entity.pos.y, entity.stats.perception_radius,
        )
        for obj in nearby:
            if not self.fog.is_position_visible(obj.pos):
                continue
            if memory.is_analyzed(obj.id):
                continue

            is_new = obj.id not in memory
            stored = memory.upsert(PerceivedObject(
                id=obj.id,
                position=obj.pos,
                distance=entity.pos.distance(obj.pos),
                direction=entity.pos.angle_to(obj.pos),
                type=obj.type.value,
                size=obj.size,
                color=obj.color,
                first_seen=now,
                last_seen=now,
            ))
            if stored is None or not is_new:
                continue

            self.emit("new_object_perceived", {"object_id": obj.id, "type": obj.type.value})
            self.dispatch(self._invoke(
                BehaviorEvent.ON_NEW_OBJECT_PERCEIVED,
                self._context(BehaviorEvent.ON_NEW_OBJECT_PERCEIVED, perceived=stored, position=obj.pos),
            ))

            if obj.type == ObjectType.RESOURCE:
                rtype = obj.resource_type.value if obj.resource_type is not None else None
                self.dispatch(self._invoke(
                    BehaviorEvent.ON_RESOURCE_SPOTTED,
                    self._context(BehaviorEvent.ON_RESOURCE_SPOTTED, position=obj.pos, resource_type=rtype),
                ))
            elif obj.type == ObjectType.ENEMY:
                self.dispatch(self._invoke(
                    BehaviorEvent.ON_ENEMY_SPOTTED,
                    self._context(BehaviorEvent.ON_ENEMY_SPOTTED, position=obj.pos, enemy_type=obj.enemy_type),
                ))

    def analyze_object(self, object_id: int) -> bool:
        """Advance analysis of a remembered object that is within reach."""
        if self.world is None:
            return False
        known = self.entity.memory.get(object_id)
        if known is None:
            return False
        obj = self.world.get_object(object_id)
        if obj is None or not self.in_reach(obj.pos):
            return False

        known.analyzed_percentage += 5 + self.entity.stats.perception / 10
        known.last_seen = self._time_ms
        known.position = obj.pos

        if known.analyzed_percentage >= 100:
            known.analyzed_percentage = 100.0
            known.analyzed = True
            for prop in obj.properties:
                known.reveal(prop)
            self.emit("object_fully_analyzed", {"object_id": object_id})
        else:
            revealed = math.floor(len(obj.properties) * known.analyzed_percentage / 100)
            for prop in obj.properties[:revealed]:
                known.reveal(prop)
            self.emit("object_analyzed", {
                "object_id": object_id, "percentage": known.analyzed_percentage,
            })
        return True

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def execute_behavior(self) -> None:
        entity = self.entity
        if entity.is_moving:
            return

        state = entity.state
        task = entity.current_task

        if state == UnitState.ANALYZING and task is not None and task.type == TaskType.ANALYZE:
            self._continue_analysis(task)
            return

        if state == UnitState.GATHERING:
            if entity.cargo_full():
                self.dispatch(ActionDescriptor.return_to_base())
                return
            resource = find_nearby_resource(self)
            if resource is not None:
                gather_resource(self, resource)
                return

        elif state == UnitState.DEPOSITING:
            deposit_resources(self)
            return

        elif state == UnitState.RETURNING and self.base is not None:
            if self.in_reach(self.base.pos):
                entity.set_state(UnitState.DEPOSITING)
            else:
                self.set_destination(self.base.pos)
            return

        if entity.current_task is None:
            self.dispatch(self._invoke(BehaviorEvent.ON_IDLE, self._context(BehaviorEvent.ON_IDLE)))

    def _continue_analysis(self, task: Task) -> None:
        entity = self.entity
        known = entity.memory.get(task.object_id)
        if known is not None and self.analyze_object(task.object_id):
            if known.analyzed_percentage >= 100:
                entity.current_task = None
                entity.set_state(UnitState.IDLE)
            return

        if known is not None:
            self.set_destination(known.position)
        else:
            entity.current_task = None
            entity.set_state(UnitState.IDLE)

    # ------------------------------------------------------------------
    # Damage & progression
    # ------------------------------------------------------------------

    def injure(self, amount: float, source: Any = None) -> bool:
        """Apply damage. *source* may be a position, a unit or a world object.

        Returns True if the unit died.
        """
        stats = self.entity.stats
        old_health = stats.health
        stats.health = max(0.0, stats.health - amount)

        src_pos, src_health = _describe_source(source)
        self.emit("got_injured", {
            "old_health": old_health, "new_health": stats.health, "damage": amount,
        })
        self.dispatch(self._invoke(
            BehaviorEvent.ON_DAMAGED,
            self._context(BehaviorEvent.ON_DAMAGED, damage=amount, source=src_pos, source_health=src_health),
        ))
        return stats.health <= 0

    def award_xp(self, amount: float) -> None:
        if self.entity.stats.gain_xp(amount):
            self.emit("level_up", {"level": self.entity.stats.level})

    def recalculate_stats(self) -> None:
        """Derive capacity, speed, max health and regen from strength, stamina and level.

        Speed grows 0.2 per level above 1 on top of the unit's own ``base_speed``.
        """
        stats = self.entity.stats
        stats.carry_capacity = stats.strength * 5
        stats.speed = stats.base_speed + (stats.level - 1) * 0.2
        stats.max_health = 100 + stats.stamina * 0.5 + stats.level * 10
        stats.regen_speed = 1 + stats.stamina / 200
        self.emit("stats_recalculated", {
            "carry_capacity": stats.carry_capacity, "speed": stats.speed,
            "max_health": stats.max_health,
        })

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        for fn in self._listeners.get(event, ()):
            try:
                fn(payload)
            except Exception:
                logger.exception("Unit %d: listener for %s raised", self.entity.id, event)

        if self._event_log is not None and event not in _UNLOGGED_EVENTS:
            self._event_log.emit(
                self._time_ms,
                event,
                f"Unit {self.entity.id}: {event.replace('_', ' ')}",
                entity_ids=(self.entity.id,),
                metadata=payload,
            )


def _describe_source(source: Any) -> tuple[Vector2 | None, float | None]:
    if source is None:
        return None, None
    if isinstance(source, Vector2):
        return source, None
    pos = getattr(source, "pos", None)
    stats = getattr(source, "stats", None)
    health = stats.health if stats is not None else getattr(source, "health", None)
    return pos, health
