"""Core data models: Vector2, Stats, Cargo, Entity and the action descriptor."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from evorts.core.enums import (
    ActionKind,
    BehaviorEvent,
    ObjectType,
    ResourceType,
    TaskType,
    UnitState,
)
from evorts.core.memory import PerceptionMemory

if TYPE_CHECKING:
    from evorts.ai.behaviors import BehaviorContext


@dataclass(frozen=True, slots=True)
class Vector2:
    """Immutable 2D world coordinate."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def distance(self, other: Vector2) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def angle_to(self, other: Vector2) -> float:
        return math.atan2(other.y - self.y, other.x - self.x)

    def __repr__(self) -> str:
        return f"({self.x:.1f}, {self.y:.1f})"


@dataclass(frozen=True, slots=True)
class Bounds:
    """Axis-aligned world bounds in world units."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def clamp(self, point: Vector2, margin: float = 0.0) -> Vector2:
        return Vector2(
            max(self.min_x + margin, min(self.max_x - margin, point.x)),
            max(self.min_y + margin, min(self.max_y - margin, point.y)),
        )


@dataclass(slots=True)
class Stats:
    """Mutable statistics for a unit."""

    health: float = 100.0
    max_health: float = 100.0
    stamina: int = 100
    strength: int = 10
    speed: float = 5.0              # world units per second
    base_speed: float = 5.0         # speed at level 1, before level bonuses
    carry_capacity: int = 50
    perception: int = 50            # analysis skill
    perception_radius: float = 150.0
    regen_speed: float = 1.0        # health per second
    attack_power: int = 10
    defense: int = 5
    level: int = 1
    xp: float = 0.0

    # --- Worker ---
    gathering_speed: int = 0        # 0 = cannot gather
    mining_efficiency: float = 1.0

    @property
    def alive(self) -> bool:
        return self.health > 0

    def gain_xp(self, amount: float) -> bool:
        """Add XP; returns True if the unit levelled up."""
        self.xp += amount
        if self.xp >= self.level * 100:
            self.level_up()
            return True
        return False

    def level_up(self) -> None:
        self.xp -= self.level * 100
        self.level += 1
        self.max_health += 10
        self.health = self.max_health
        self.stamina += 5
        self.strength += 2
        self.perception += 3
        self.perception_radius += 10


@dataclass(slots=True)
class Cargo:
    """Typed quantities carried by a unit."""

    energy: int = 0
    matter: int = 0

    @property
    def weight(self) -> float:
        return self.energy + self.matter

    def add(self, resource_type: ResourceType, amount: int) -> None:
        if resource_type == ResourceType.ENERGY:
            self.energy += amount
        elif resource_type == ResourceType.MATTER:
            self.matter += amount

    def clear(self) -> tuple[int, int]:
        """Empty energy and matter, returning what was carried."""
        carried = (self.energy, self.matter)
        self.energy = 0
        self.matter = 0
        return carried


@dataclass(frozen=True, slots=True)
class Task:
    """A long-running commitment, e.g. analysing a perceived object."""

    type: TaskType
    object_id: int


@dataclass(frozen=True, slots=True)
class ActionDescriptor:
    """An intended action returned by behavior logic.

    Interpreted by a single dispatcher in the unit controller; nothing in a
    descriptor is executed directly.
    """

    kind: ActionKind
    target: Vector2 | None = None
    object_id: int | None = None
    attack_target: int | None = None

    @classmethod
    def move(cls, target: Vector2) -> ActionDescriptor:
        return cls(ActionKind.MOVE, target=target)

    @classmethod
    def approach(cls, target: Vector2) -> ActionDescriptor:
        return cls(ActionKind.APPROACH, target=target)

    @classmethod
    def flee(cls, target: Vector2) -> ActionDescriptor:
        return cls(ActionKind.FLEE, target=target)

    @classmethod
    def gather(cls, target: Vector2) -> ActionDescriptor:
        return cls(ActionKind.GATHER, target=target)

    @classmethod
    def attack(cls, target: Vector2, attack_target: int | None = None) -> ActionDescriptor:
        return cls(ActionKind.ATTACK, target=target, attack_target=attack_target)

    @classmethod
    def move_and_attack(cls, target: Vector2, attack_target: int | None = None) -> ActionDescriptor:
        return cls(ActionKind.MOVE_AND_ATTACK, target=target, attack_target=attack_target)

    @classmethod
    def return_to_base(cls) -> ActionDescriptor:
        return cls(ActionKind.RETURN_TO_BASE)

    @classmethod
    def analyze(cls, object_id: int, position: Vector2) -> ActionDescriptor:
        return cls(ActionKind.ANALYZE, target=position, object_id=object_id)

    @classmethod
    def explore(cls) -> ActionDescriptor:
        return cls(ActionKind.EXPLORE)

    @classmethod
    def keep_going(cls) -> ActionDescriptor:
        return cls(ActionKind.CONTINUE)

    def __repr__(self) -> str:
        return f"Action({self.kind.name}, target={self.target}, object={self.object_id})"


@dataclass(slots=True)
class WorldObject:
    """Something in the world a unit can perceive: a resource, an enemy, a structure."""

    id: int
    pos: Vector2
    type: ObjectType = ObjectType.UNKNOWN
    size: str = "unknown"
    color: str = "unknown"
    resource_type: ResourceType | None = None
    enemy_type: str | None = None
    quantity: float = 0.0
    max_quantity: float = 0.0
    regeneration_rate: float = 0.0      # quantity per second
    depleted: bool = False
    health: float = 0.0
    properties: tuple[str, ...] = ()

    def extract(self, amount: float) -> float:
        """Remove up to *amount* from this resource and return what was taken."""
        if self.depleted:
            return 0.0
        taken = min(amount, self.quantity)
        self.quantity -= taken
        if self.quantity <= 0.5:
            self.depleted = True
            self.quantity = 0.0
        return taken

    def regenerate(self, delta_ms: float) -> None:
        if self.depleted or self.quantity >= self.max_quantity:
            return
        self.quantity = min(self.quantity + self.regeneration_rate * delta_ms / 1000, self.max_quantity)


@dataclass(slots=True)
class Base:
    """A home base that receives deposited cargo."""

    pos: Vector2
    energy: int = 0
    matter: int = 0

    def receive_resources(self, energy: int, matter: int) -> None:
        self.energy += energy
        self.matter += matter


BehaviorFn = Callable[["UnitView", "BehaviorContext"], Optional[ActionDescriptor]]


def _empty_behaviors() -> dict[BehaviorEvent, BehaviorFn | None]:
    return {event: None for event in BehaviorEvent}


@dataclass(frozen=True, slots=True)
class UnitView:
    """Read-only view of a unit handed to behavior callbacks."""

    id: int
    kind: str
    pos: Vector2
    health: float
    max_health: float
    speed: float
    carry_capacity: int
    cargo_weight: float
    energy: int
    matter: int
    perception_radius: float
    level: int
    state: UnitState
    destination: Vector2 | None
    has_task: bool

    @property
    def cargo_full(self) -> bool:
        return self.cargo_weight >= self.carry_capacity

    @property
    def is_critical(self) -> bool:
        return self.health <= self.max_health * 0.3

    def distance_to(self, point: Vector2) -> float:
        return self.pos.distance(point)


@dataclass(slots=True)
class Entity:
    """A simulation unit. Plain record: controllers hold it, it holds no controller."""

    id: int
    kind: str
    pos: Vector2
    stats: Stats = field(default_factory=Stats)
    cargo: Cargo = field(default_factory=Cargo)
    state: UnitState = UnitState.IDLE
    mode: UnitState = UnitState.IDLE
    destination: Vector2 | None = None
    current_task: Task | None = None
    is_moving: bool = False
    direction: float = 0.0
    behaviors: dict[BehaviorEvent, BehaviorFn | None] = field(default_factory=_empty_behaviors)
    memory: PerceptionMemory = field(default_factory=PerceptionMemory)
    resources_collected: int = 0

    @property
    def alive(self) -> bool:
        return self.stats.alive

    @property
    def cargo_weight(self) -> float:
        return self.cargo.weight

    def cargo_full(self) -> bool:
        return self.cargo.weight >= self.stats.carry_capacity

    def set_state(self, state: UnitState) -> None:
        """Change state; ``mode`` always mirrors ``state``."""
        self.state = state
        self.mode = state

    def distance_to(self, point: Vector2) -> float:
        return self.pos.distance(point)

    def view(self) -> UnitView:
        return UnitView(
            id=self.id,
            kind=self.kind,
            pos=self.pos,
            health=self.stats.health,
            max_health=self.stats.max_health,
            speed=self.stats.speed,
            carry_capacity=self.stats.carry_capacity,
            cargo_weight=self.cargo.weight,
            energy=self.cargo.energy,
            matter=self.cargo.matter,
            perception_radius=self.stats.perception_radius,
            level=self.stats.level,
            state=self.state,
            destination=self.destination,
            has_task=self.current_task is not None,
        )
