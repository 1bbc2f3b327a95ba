"""Domain-separated pseudo-random numbers using xxhash.

Formula: RNG_Value = Hash(WorldSeed, Domain, Key, Counter)

Each call is a pure function of its inputs, so callers that need a stream
keep their own counter. An unseeded generator draws its seed from OS entropy.
"""

from __future__ import annotations

import os
import struct

import xxhash

from evorts.core.enums import Domain


def entropy_seed() -> int:
    """Return a fresh non-negative 63-bit seed from the OS."""
    return int.from_bytes(os.urandom(8), "little") >> 1


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator."""

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int | None = None) -> None:
        self._seed = entropy_seed() if seed is None else seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, key: int, counter: int) -> int:
        payload = struct.pack("<qiqq", self._seed, domain.value, key, counter)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, key: int, counter: int) -> float:
        """Return a float in [0.0, 1.0)."""
        return self._hash(domain, key, counter) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, key: int, counter: int, low: int, high: int) -> int:
        """Return an integer in [low, high] inclusive."""
        f = self.next_float(domain, key, counter)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, key: int, counter: int, probability: float = 0.5) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, key, counter) < probability

    def shuffle(self, items: list, domain: Domain, key: int) -> None:
        """Fisher-Yates shuffle of *items* in place."""
        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(domain, key, i, 0, i)
            items[i], items[j] = items[j], items[i]
