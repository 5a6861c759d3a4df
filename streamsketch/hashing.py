"""Seeded 64-bit hash functions shared by the hash-based sketches.

Python's builtin ``hash`` is salted per process for strings, so sketches hash
``repr(item)`` through SHA-256 instead. Each ``SeededHash`` mixes its seed into
the digest, giving a family of independent functions from one base seed.
"""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Hashable

_MASK64 = 0xFFFFFFFFFFFFFFFF


def hash_seeds(seed: int, count: int) -> list[int]:
    """Derive ``count`` deterministic 64-bit seeds from one base seed."""
    seeds = []
    for i in range(count):
        h = hashlib.sha256()
        h.update(struct.pack(">QQ", seed & _MASK64, i))
        seeds.append(struct.unpack(">Q", h.digest()[:8])[0])
    return seeds


class SeededHash:
    """A 64-bit hash function keyed by a seed.

    Args:
        seed: Key mixed into every digest.
    """

    __slots__ = ("_prefix", "seed")

    def __init__(self, seed: int):
        self.seed = seed & _MASK64
        self._prefix = struct.pack(">Q", self.seed)

    def __call__(self, item: Hashable) -> int:
        h = hashlib.sha256(self._prefix)
        h.update(repr(item).encode("utf-8"))
        return struct.unpack(">Q", h.digest()[:8])[0]

    def __repr__(self) -> str:
        return f"SeededHash(seed={self.seed:#018x})"


def hash_family(seed: int | None, count: int) -> list[SeededHash]:
    """Build ``count`` independent hash functions from a base seed (default 0)."""
    return [SeededHash(s) for s in hash_seeds(seed if seed is not None else 0, count)]
