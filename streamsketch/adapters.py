"""Accuracy-amplifying combinators over any StreamProcessor.

Both adapters hold a fixed number of independent sub-sketches built by a
factory, forward every element to all of them, and combine their answers:

- ``BoolGroup`` ANDs boolean answers. For sketches without false negatives
  (Bloom filters) this multiplies false-positive probabilities together.
- ``MedianOfMeans`` aggregates numeric answers per group, then takes the
  median across groups, shrinking the chance of a far-off estimate.

The factory is called with the instance index so each sub-sketch can get its
own seed or random source; sub-sketches sharing a seed are perfectly
correlated and gain nothing.
"""

from __future__ import annotations

import statistics
from collections.abc import Callable, Sequence

from streamsketch.base import StreamProcessor


class BoolGroup[T, A](StreamProcessor[T, bool, A]):
    """AND-combination of ``n`` boolean sketches.

    Args:
        factory: Builds sub-sketch ``i`` when called with ``i``.
        n: Number of sub-sketches. Must be positive.

    Example:
        group = BoolGroup(lambda i: BloomFilter(num_bytes=64, num_hashes=2, seed=i), n=4)
        group.process("a")
        assert group.query("a")
    """

    def __init__(self, factory: Callable[[int], StreamProcessor[T, bool, A]], n: int):
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")

        self._subs = [factory(i) for i in range(n)]
        self._total_count = 0

    @property
    def subs(self) -> list[StreamProcessor[T, bool, A]]:
        """The sub-sketches."""
        return list(self._subs)

    def process(self, item: T) -> None:
        self._total_count += 1
        for sub in self._subs:
            sub.process(item)

    def query(self, args: A = None) -> bool:
        return all(sub.query(args) for sub in self._subs)

    def __contains__(self, item: A) -> bool:
        return self.query(item)

    @property
    def item_count(self) -> int:
        return self._total_count

    def __repr__(self) -> str:
        return f"BoolGroup(n={len(self._subs)})"


class MedianOfMeans[T, A](StreamProcessor[T, float, A]):
    """Median across ``m`` groups of the aggregate of ``n`` sketches each.

    Args:
        factory: Builds sub-sketch ``i`` (0 <= i < n * m) when called with ``i``.
        n: Sub-sketches per group. Must be positive.
        m: Number of groups. Must be positive.
        aggregate: Combines one group's results into a single number.
            Defaults to the arithmetic mean; ``statistics.median`` or
            ``min``/``max`` are also reasonable choices.

    Example:
        mom = MedianOfMeans(lambda i: MorrisCounter(rng=RandomSource(i)), n=4, m=5)
        mom.process_all(events)
        print(mom.query())
    """

    def __init__(
        self,
        factory: Callable[[int], StreamProcessor[T, float, A]],
        n: int,
        m: int,
        aggregate: Callable[[Sequence[float]], float] = statistics.fmean,
    ):
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")
        if m <= 0:
            raise ValueError(f"m must be positive, got {m}")

        self._n = n
        self._m = m
        self._aggregate = aggregate
        self._groups = [[factory(g * n + j) for j in range(n)] for g in range(m)]
        self._total_count = 0

    @property
    def groups(self) -> list[list[StreamProcessor[T, float, A]]]:
        """The sub-sketches, grouped."""
        return [list(group) for group in self._groups]

    def process(self, item: T) -> None:
        self._total_count += 1
        for group in self._groups:
            for sub in group:
                sub.process(item)

    def group_estimates(self, args: A = None) -> list[float]:
        """The aggregate of each group's results."""
        return [self._aggregate([sub.query(args) for sub in group]) for group in self._groups]

    def query(self, args: A = None) -> float:
        return statistics.median(self.group_estimates(args))

    @property
    def item_count(self) -> int:
        return self._total_count

    def __repr__(self) -> str:
        return f"MedianOfMeans(n={self._n}, m={self._m})"
