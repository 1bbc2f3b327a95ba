"""Per-unit memory of perceived world objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evorts.core.models import Vector2


@dataclass(slots=True)
class PerceivedObject:
    """What a unit knows about a world object it has seen."""

    id: int
    position: Vector2
    distance: float = 0.0
    direction: float = 0.0
    type: str = "unknown"
    size: str = "unknown"
    color: str = "unknown"
    analyzed_percentage: float = 0.0
    analyzed: bool = False
    properties: list[str] = field(default_factory=list)
    first_seen: float = 0.0
    last_seen: float = 0.0

    def reveal(self, prop: str) -> None:
        """Append *prop* unless already known. Properties are never removed."""
        if prop not in self.properties:
            self.properties.append(prop)


class PerceptionMemory:
    """Bounded, insertion-ordered store of PerceivedObjects keyed by object id.

    Once ``capacity`` objects are remembered, further new objects are ignored.
    Remembered objects are only dropped through ``forget``.
    """

    __slots__ = ("_objects", "_capacity")

    def __init__(self, capacity: int = 256) -> None:
        self._objects: dict[int, PerceivedObject] = {}
        self._capacity = capacity

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: int) -> bool:
        return object_id in self._objects

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def full(self) -> bool:
        return len(self._objects) >= self._capacity

    def get(self, object_id: int) -> PerceivedObject | None:
        return self._objects.get(object_id)

    def upsert(self, observed: PerceivedObject) -> PerceivedObject | None:
        """Insert *observed* or merge its sighting fields into the existing entry.

        Analysis progress and revealed properties of an existing entry are kept.
        Returns the stored entry, or None if memory is full.
        """
        existing = self._objects.get(observed.id)
        if existing is None:
            if self.full:
                return None
            self._objects[observed.id] = observed
            return observed
        existing.position = observed.position
        existing.distance = observed.distance
        existing.direction = observed.direction
        existing.type = observed.type
        existing.size = observed.size
        existing.color = observed.color
        existing.last_seen = observed.last_seen
        return existing

    def forget(self, object_id: int) -> bool:
        return self._objects.pop(object_id, None) is not None

    def is_analyzed(self, object_id: int) -> bool:
        obj = self._objects.get(object_id)
        return obj is not None and obj.analyzed

    def objects(self) -> list[PerceivedObject]:
        return list(self._objects.values())

    def unanalyzed(self) -> list[PerceivedObject]:
        return [o for o in self._objects.values() if not o.analyzed]
