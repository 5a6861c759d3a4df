"""Deterministic pseudo-random sources for randomized sketches.

Every randomized sketch (Morris counter, quantile sampler, compactors) draws
from a ``RandomSource`` handed to it at construction. Instances are cheap and
independent, so each sketch normally owns its own.

The default generator is a fixed multiply-add-then-sine transform. It is fast
and reproducible but neither cryptographic nor uniform: ``(sin(x) + 1) / 2``
follows an arcsine distribution that piles up near 0 and 1. Use
``SeededRandomSource`` when a uniform draw matters.

Neither class is safe to share between threads.
"""

from __future__ import annotations

import itertools
import math
import random

DEFAULT_SEED = 13.37

_MULTIPLIER = 9473.0
_INCREMENT = 13.0
_MODULUS = float(2**32)
_BELOW_ONE = math.nextafter(1.0, 0.0)

# Offsets default seeds so that sketches built without an explicit rng do not
# all replay the same sequence.
_construction_counter = itertools.count()


class RandomSource:
    """Pseudo-random generator of floats in [0, 1).

    Args:
        seed: Initial state. If None, ``DEFAULT_SEED`` plus a process-wide
            construction index is used, so the n-th default source created in
            a process always replays the same sequence.

    Example:
        rng = RandomSource(seed=1.5)
        coin = rng.next() < 0.5
    """

    def __init__(self, seed: float | None = None):
        if seed is None:
            seed = DEFAULT_SEED + next(_construction_counter)
        if not math.isfinite(seed):
            raise ValueError(f"seed must be finite, got {seed}")
        self._seed = float(seed)
        self._state = float(seed)

    @property
    def seed(self) -> float:
        """Seed this source was created with."""
        return self._seed

    def next(self) -> float:
        """Advance the state and return a value in [0, 1)."""
        self._state = math.fmod(self._state * _MULTIPLIER + _INCREMENT, _MODULUS)
        return min((math.sin(self._state) + 1.0) / 2.0, _BELOW_ONE)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(seed={self._seed})"


class SeededRandomSource(RandomSource):
    """Uniform ``RandomSource`` backed by ``random.Random``.

    Args:
        seed: Seed for the underlying Mersenne Twister.
    """

    def __init__(self, seed: int | None = None):
        super().__init__(DEFAULT_SEED if seed is None else float(seed))
        self._rng = random.Random(seed)

    def next(self) -> float:
        return self._rng.random()
