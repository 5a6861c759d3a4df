"""Element counters: exact, and Morris approximate counting.

The Morris counter stores only an exponent ``c`` and increments it with
probability ``(1 + alpha)^-c``. The counter therefore grows logarithmically
with the stream length while ``((1 + alpha)^c - 1) / alpha`` remains an
unbiased estimate of the true count.

Key properties (Morris):
- Space: O(log log n) bits
- Update: O(1)
- Variance: roughly alpha * n^2 / 2; smaller alpha = more accurate, faster
  growing counter

Reference:
    Morris. "Counting Large Numbers of Events in Small Registers" (1978)
"""

from __future__ import annotations

from typing import Any

from streamsketch.base import StreamProcessor
from streamsketch.rand import RandomSource


class ExactCounter(StreamProcessor[Any, int]):
    """Counts elements exactly.

    Example:
        assert ExactCounter.apply(range(10)) == 10
    """

    def __init__(self):
        self._count = 0

    def process(self, item: Any = None) -> None:
        self._count += 1

    def query(self, args: None = None) -> int:
        return self._count

    @property
    def item_count(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"ExactCounter(count={self._count})"


class MorrisCounter(StreamProcessor[Any, int]):
    """Approximate counter using Morris' probabilistic increments.

    Args:
        alpha: Growth base offset. The counter estimates in powers of
            ``1 + alpha``; larger values mean a smaller counter and a less
            accurate estimate. Must be positive.
        rng: Random source for increment decisions.

    Example:
        counter = MorrisCounter(alpha=0.5)
        for request in requests:
            counter.process(request)
        print(f"~{counter.query()} requests")
    """

    def __init__(self, alpha: float = 1.0, rng: RandomSource | None = None):
        if alpha <= 0:
            raise ValueError(f"alpha must be positive, got {alpha}")

        self._alpha = alpha
        self._base = 1.0 + alpha
        self._exponent = 0
        self._rng = rng if rng is not None else RandomSource()
        self._total_count = 0

    @property
    def alpha(self) -> float:
        """Growth base offset."""
        return self._alpha

    @property
    def exponent(self) -> int:
        """The stored counter value ``c``."""
        return self._exponent

    def process(self, item: Any = None) -> None:
        self._total_count += 1
        if self._rng.next() < self._base ** -self._exponent:
            self._exponent += 1

    def query(self, args: None = None) -> int:
        """Estimated number of processed elements."""
        return round((self._base ** self._exponent - 1.0) / self._alpha)

    @property
    def item_count(self) -> int:
        return self._total_count

    def __repr__(self) -> str:
        return f"MorrisCounter(alpha={self._alpha}, exponent={self._exponent}, estimate={self.query()})"
