"""Engine systems: RNG, spatial indexing, terrain generation."""

from evorts.systems.rng import DeterministicRNG
from evorts.systems.spatial_hash import SpatialHash
from evorts.systems.terrain import TerrainGenerator

__all__ = ["DeterministicRNG", "SpatialHash", "TerrainGenerator"]
