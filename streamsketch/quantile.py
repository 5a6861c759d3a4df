"""Sampled rank estimator.

Keeps a sorted, duplicate-free sample of the stream next to a running count.
The rank of a value in the full stream is estimated by its rank in the sample
scaled by ``count / len(sample)``. The count comes from the owned counter, not
from the expected size, so the estimate stays calibrated when the stream turns
out longer or shorter than expected.

Each element is offered to the sample unless a draw exceeds
``expected_size / sample_size``; with the defaults that ratio is above 1 and
every element is offered. Once the sample is full, offered values replace a
random sample with probability ``sample_size / offered`` (Algorithm R), which
bounds memory at ``sample_size`` values.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any

from streamsketch.base import StreamProcessor
from streamsketch.count import ExactCounter
from streamsketch.rand import RandomSource

logger = logging.getLogger(__name__)


class Quantile[T](StreamProcessor[T, int, T]):
    """Approximate rank of values in a stream.

    Args:
        expected_size: Expected stream length; with sample_size sets the
            chance an element is offered to the sample.
        sample_size: Maximum number of sampled values.
        counter: Counter for the stream length. Defaults to an ExactCounter;
            a MorrisCounter trades accuracy for space.
        rng: Random source for sampling decisions.

    Example:
        q = Quantile[float](sample_size=256)
        for latency in latencies:
            q.process(latency)
        below_100ms = q.query(0.100)
    """

    def __init__(
        self,
        expected_size: int = 4096,
        sample_size: int = 128,
        counter: StreamProcessor[Any, int] | None = None,
        rng: RandomSource | None = None,
    ):
        if expected_size <= 0:
            raise ValueError(f"expected_size must be positive, got {expected_size}")
        if sample_size <= 0:
            raise ValueError(f"sample_size must be positive, got {sample_size}")

        self._expected_size = expected_size
        self._sample_size = sample_size
        self._chance = expected_size / sample_size
        self._counter = counter if counter is not None else ExactCounter()
        self._rng = rng if rng is not None else RandomSource()
        self._samples: list[T] = []
        self._offered = 0

    @property
    def chance(self) -> float:
        """Offer threshold ``expected_size / sample_size``."""
        return self._chance

    @property
    def sample_size(self) -> int:
        """Maximum number of sampled values."""
        return self._sample_size

    @property
    def counter(self) -> StreamProcessor[Any, int]:
        """The owned stream-length counter."""
        return self._counter

    @property
    def samples(self) -> list[T]:
        """Sorted copy of the current sample."""
        return list(self._samples)

    def process(self, item: T) -> None:
        self._counter.process(item)
        if self._rng.next() > self._chance:
            return

        self._offered += 1
        idx = bisect.bisect_left(self._samples, item)
        if idx < len(self._samples) and self._samples[idx] == item:
            return

        if len(self._samples) < self._sample_size:
            self._samples.insert(idx, item)
            return

        slot = int(self._rng.next() * self._offered)
        if slot >= self._sample_size:
            return
        evicted = self._samples.pop(slot)
        logger.debug("Quantile sample full: replacing %r with %r", evicted, item)
        bisect.insort(self._samples, item)

    def query(self, args: T = None) -> int:
        """Estimated number of stream elements strictly less than ``args``."""
        if not self._samples:
            return 0
        count = self._counter.query()
        rank = bisect.bisect_left(self._samples, args)
        return (count * rank) // len(self._samples)

    def cdf(self, value: T) -> float:
        """Estimated fraction of the stream strictly below ``value``."""
        if not self._samples:
            return 0.0
        return bisect.bisect_left(self._samples, value) / len(self._samples)

    @property
    def item_count(self) -> int:
        return self._counter.item_count

    def __repr__(self) -> str:
        return (
            f"Quantile(expected_size={self._expected_size}, "
            f"sample_size={self._sample_size}, "
            f"sampled={len(self._samples)}, "
            f"count={self._counter.query()})"
        )
