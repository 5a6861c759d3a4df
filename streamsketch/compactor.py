"""Randomized compactors: the building block of KLL-style quantile sketches.

A compactor buffers up to ``max_len`` elements. When full it is compacted:
the buffer is drained and only a subset survives, chosen so that the rank of
any value among the survivors (suitably rescaled) still approximates its rank
among everything that entered. Three policies are provided:

- ``additive_compact``: sort, keep every other element (random parity).
  Each compaction adds at most a constant rank error.
- ``relative_compact``: drain front slices of size 1, 2, 4, ... and keep one
  random element per slice. Larger slices are thinned harder.
- ``linear_relative_compact``: sort, cut into ``floor(sqrt(max_len))``
  chunks and remove ``n`` elements from chunk ``n`` at evenly strided
  positions. Low values are kept densely and the discard rate rises linearly
  towards high values, which bounds the relative error at low ranks.

``ChainedCompactors`` wires several compactors into a cascade: survivors of
stage ``i`` feed stage ``i + 1``, and each stage fills (and compacts)
geometrically less often than the one before it.

Reference:
    Karnin, Lang, Liberty. "Optimal Quantile Approximation in Streams" (2016)
"""

from __future__ import annotations

import bisect
import logging
import math
from collections.abc import Iterator, MutableSequence, Sequence
from typing import Any

from streamsketch.rand import RandomSource

logger = logging.getLogger(__name__)


def rank(values: Sequence[Any], value: Any) -> int:
    """Number of elements of sorted ``values`` strictly less than ``value``."""
    return bisect.bisect_left(values, value)


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


class Compactor[T]:
    """A single compaction buffer.

    ``add`` reports when the buffer reaches ``max_len``; the caller must then
    compact before adding again. The buffer is not hard-capped.

    Args:
        max_len: Buffer length that triggers compaction. Must be positive.
        rng: Random source for parity and offset draws.

    Example:
        c = Compactor[int](100)
        kept = []
        for v in stream:
            if c.add(v):
                kept.extend(c.additive_compact())
    """

    def __init__(self, max_len: int, rng: RandomSource | None = None):
        if max_len <= 0:
            raise ValueError(f"max_len must be positive, got {max_len}")

        self._max_len = max_len
        self._buffer: list[T] = []
        self._rng = rng if rng is not None else RandomSource()

    @property
    def max_len(self) -> int:
        """Buffer length that triggers compaction."""
        return self._max_len

    def add(self, item: T) -> bool:
        """Buffer an item.

        Returns:
            True exactly when the buffer has just reached max_len.
        """
        self._buffer.append(item)
        return len(self._buffer) == self._max_len

    def __len__(self) -> int:
        return len(self._buffer)

    def is_empty(self) -> bool:
        return not self._buffer

    def _drain(self) -> list[T]:
        drained, self._buffer = self._buffer, []
        return drained

    def additive_compact(self) -> Iterator[T]:
        """Drain the buffer and lazily yield every other sorted element.

        The buffer is emptied immediately; only the iteration over survivors
        is lazy.

        Raises:
            ValueError: If max_len is odd.
        """
        if self._max_len % 2 != 0:
            raise ValueError(f"additive_compact requires an even max_len, got {self._max_len}")

        drained = sorted(self._drain())
        parity = 1 if self._rng.next() >= 0.5 else 0
        logger.debug("Additive compaction of %d items, parity %d", len(drained), parity)
        return iter(drained[parity::2])

    def relative_compact(self, out: MutableSequence[T]) -> None:
        """Keep one random element from each front slice of size 1, 2, 4, ...

        Raises:
            ValueError: If max_len + 1 is not a power of two.
        """
        if not _is_power_of_two(self._max_len + 1):
            raise ValueError(
                f"relative_compact requires max_len + 1 to be a power of two, got {self._max_len}"
            )

        drained = self._drain()
        start = 0
        for i in range((self._max_len + 1).bit_length() - 1):
            if start >= len(drained):
                break
            slice_size = 1 << i
            chunk = drained[start:start + slice_size]
            retained = min(int(self._rng.next() * slice_size), len(chunk) - 1)
            out.append(chunk[retained])
            start += slice_size

    def _removal_indices(self, chunk_index: int, chunk_size: int) -> set[int]:
        num_to_remove = min(chunk_index, chunk_size)
        if num_to_remove == 0:
            return set()
        if num_to_remove >= chunk_size:
            return set(range(chunk_size))

        stride = chunk_size // num_to_remove
        curr = int(self._rng.next() * chunk_size) % chunk_size
        removed: set[int] = set()
        while len(removed) < num_to_remove:
            if curr in removed:
                raise RuntimeError(
                    f"stride {stride} revisited index {curr} in chunk of {chunk_size}"
                )
            removed.add(curr)
            curr = (curr + stride) % chunk_size
        return removed

    def linear_relative_compact(self, out: MutableSequence[T]) -> None:
        """Sort, chunk, and discard ``n`` strided elements from chunk ``n``.

        Chunk 0 (the smallest values) is kept whole; the last chunk also
        absorbs any remainder when max_len is not a multiple of the chunk
        count. Survivors are appended to ``out`` in ascending order.

        Raises:
            RuntimeError: If more than max_len items are buffered.
        """
        if len(self._buffer) > self._max_len:
            raise RuntimeError(
                f"compactor holds {len(self._buffer)} items, more than max_len {self._max_len}"
            )

        drained = sorted(self._drain())
        num_chunks = math.isqrt(self._max_len)
        chunk_size = self._max_len // num_chunks
        before = len(out)

        for n in range(num_chunks):
            start = n * chunk_size
            if start >= len(drained):
                break
            end = len(drained) if n == num_chunks - 1 else start + chunk_size
            removed = self._removal_indices(n, chunk_size)
            out.extend(v for i, v in enumerate(drained[start:end]) if i not in removed)

        logger.debug(
            "Linear relative compaction: %d -> %d items", len(drained), len(out) - before
        )

    def __repr__(self) -> str:
        return f"Compactor(max_len={self._max_len}, len={len(self._buffer)})"


class ChainedCompactors[T]:
    """A cascade of compactors, each feeding its survivors to the next.

    Args:
        compactors: Stages in order; stage 0 receives raw input. Each stage
            is owned by the chain and may appear only once.

    Example:
        chain = ChainedCompactors([Compactor(144), Compactor(144), Compactor(144)])
        summary = []
        for v in stream:
            if chain.add(v):
                chain.linear_relative_compact(summary)
        chain.linear_relative_compact_all(summary)
    """

    def __init__(self, compactors: Sequence[Compactor[T]]):
        if not compactors:
            raise ValueError("ChainedCompactors needs at least one compactor")
        if len({id(c) for c in compactors}) != len(compactors):
            raise ValueError("each compactor may appear only once in a chain")

        self._compactors = list(compactors)

    @property
    def stages(self) -> list[Compactor[T]]:
        """The compactor stages, stage 0 first."""
        return list(self._compactors)

    def __len__(self) -> int:
        return sum(len(c) for c in self._compactors)

    def is_empty(self) -> bool:
        return all(c.is_empty() for c in self._compactors)

    def add(self, item: T) -> bool:
        """Add to stage 0; True when stage 0 needs compacting."""
        return self._compactors[0].add(item)

    def linear_relative_compact(self, out: MutableSequence[T]) -> None:
        """Compact stage 0, cascading into later stages as they fill."""
        self._compact_stage(0, out)

    def linear_relative_compact_all(self, out: MutableSequence[T]) -> None:
        """Compact every stage once, in order, flushing the whole chain."""
        for idx in range(len(self._compactors)):
            self._compact_stage(idx, out)

    def _compact_stage(self, idx: int, out: MutableSequence[T]) -> None:
        survivors: list[T] = []
        self._compactors[idx].linear_relative_compact(survivors)
        if idx == len(self._compactors) - 1:
            out.extend(survivors)
            return

        logger.debug("Stage %d passed %d survivors to stage %d", idx, len(survivors), idx + 1)
        nxt = self._compactors[idx + 1]
        for v in survivors:
            if nxt.add(v):
                self._compact_stage(idx + 1, out)

    def __repr__(self) -> str:
        lens = ", ".join(f"{len(c)}/{c.max_len}" for c in self._compactors)
        return f"ChainedCompactors([{lens}])"
