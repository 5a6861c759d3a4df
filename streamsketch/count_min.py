"""Count-Min frequency estimation.

``depth`` rows of ``width`` counters; each row has its own seeded hash. An
element increments one counter per row and is estimated by the smallest of
its counters. Collisions only ever add to a counter, so the estimate is
never below the true frequency. With ``width = ceil(e / epsilon)`` and
``depth = ceil(ln(1 / delta))`` the overestimate exceeds ``epsilon * N`` with
probability at most ``delta``, where ``N`` is the number of processed
elements.

Reference:
    Cormode, Muthukrishnan. "An Improved Data Stream Summary: The Count-Min
    Sketch and its Applications" (2004)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Hashable

from streamsketch.base import StreamProcessor
from streamsketch.hashing import hash_family

logger = logging.getLogger(__name__)


class CountMin[T: Hashable](StreamProcessor[T, int, T]):
    """Frequency estimate for any element, never an underestimate.

    Args:
        width: Counters per row; controls the size of the overestimate.
        depth: Rows; controls how likely the overestimate stays small.
        seed: Base seed for the row hashes.

    Example:
        cms = CountMin.from_error_rate(epsilon=0.001, delta=0.01)
        cms.process_all(request_keys)
        if cms.query("tenant-42") > cms.error_bound():
            throttle("tenant-42")
    """

    def __init__(self, width: int = 32, depth: int = 16, seed: int | None = None):
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        if depth <= 0:
            raise ValueError(f"depth must be positive, got {depth}")

        self._width = width
        self._depth = depth
        self._seed = seed if seed is not None else 0
        self._rows: list[list[int]] = [[0] * width for _ in range(depth)]
        self._hashes = hash_family(self._seed, depth)
        self._total_count = 0

        logger.debug("CountMin: %d x %d counters, seed %d", depth, width, self._seed)

    @classmethod
    def from_error_rate(
        cls,
        epsilon: float,
        delta: float,
        seed: int | None = None,
    ) -> CountMin[T]:
        """Build a sketch whose overestimate stays within ``epsilon * N`` with probability ``1 - delta``.

        Raises:
            ValueError: If epsilon or delta is outside (0, 1).
        """
        if not 0 < epsilon < 1:
            raise ValueError(f"epsilon must be in (0, 1), got {epsilon}")
        if not 0 < delta < 1:
            raise ValueError(f"delta must be in (0, 1), got {delta}")

        return cls(
            width=math.ceil(math.e / epsilon),
            depth=math.ceil(-math.log(delta)),
            seed=seed,
        )

    @property
    def width(self) -> int:
        return self._width

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def epsilon(self) -> float:
        """``e / width``."""
        return math.e / self._width

    @property
    def delta(self) -> float:
        """``e ** -depth``."""
        return math.exp(-self._depth)

    def process(self, item: T) -> None:
        self._total_count += 1
        for row, h in zip(self._rows, self._hashes):
            row[h(item) % self._width] += 1

    def query(self, args: T = None) -> int:
        """Smallest counter among ``args``'s cells, one per row."""
        return min(row[h(args) % self._width] for row, h in zip(self._rows, self._hashes))

    def error_bound(self) -> int:
        """``ceil(epsilon * N)``: the overestimate that holds with probability ``1 - delta``."""
        return math.ceil(self.epsilon * self._total_count)

    @property
    def item_count(self) -> int:
        return self._total_count

    def __repr__(self) -> str:
        return f"CountMin(width={self._width}, depth={self._depth}, total={self._total_count})"
