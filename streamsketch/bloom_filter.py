"""Bloom filter over a fixed-size ``Bitmap``.

Each processed element sets ``num_hashes`` bits, one per seeded hash, in a
bitmap of ``num_bytes * 8`` bits. A query reports True only when all of the
element's bits are set, so an element that was processed is always found,
while an unseen element is wrongly found with probability about
``(1 - e^(-k n / m))^k`` for ``k`` hashes, ``n`` elements and ``m`` bits.

The bitmap never grows: past its design load the filter keeps answering
but the false-positive rate climbs towards 1. ``from_expected_items`` picks
``num_bytes`` and ``num_hashes`` for a target load and rate.

Reference:
    Bloom. "Space/Time Trade-offs in Hash Coding with Allowable Errors" (1970)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Hashable

from streamsketch.base import StreamProcessor
from streamsketch.bitmap import Bitmap
from streamsketch.hashing import hash_family

logger = logging.getLogger(__name__)

_LN2 = math.log(2)


def _bytes_for(n: int, fp_rate: float) -> int:
    """Whole bytes holding ``-n ln(p) / ln(2)^2`` bits (8 bytes when n is 0)."""
    if n == 0:
        return 8
    bits = math.ceil(-n * math.log(fp_rate) / _LN2**2)
    return (bits + 7) // 8


def _hashes_for(bits: int, n: int) -> int:
    """``round(bits / n * ln 2)``, at least 1."""
    if n == 0:
        return 1
    return max(1, round(bits / n * _LN2))


class BloomFilter[T: Hashable](StreamProcessor[T, bool, T]):
    """Approximate set membership with no false negatives.

    Args:
        num_bytes: Bitmap size in bytes.
        num_hashes: Bits set per element.
        seed: Base seed for the hash family. Filters that share a seed and
            size set identical bits.

    Example:
        seen = BloomFilter[str](num_bytes=1024, num_hashes=5)
        for url in crawl_history:
            seen.process(url)
        if url not in seen:
            fetch(url)
    """

    def __init__(self, num_bytes: int = 16, num_hashes: int = 4, seed: int | None = None):
        if num_hashes <= 0:
            raise ValueError(f"num_hashes must be positive, got {num_hashes}")

        # Bitmap rejects num_bytes <= 0
        self._bitmap = Bitmap(num_bytes)
        self._num_hashes = num_hashes
        self._seed = seed if seed is not None else 0
        self._hashes = hash_family(self._seed, num_hashes)
        self._total_count = 0

        logger.debug(
            "BloomFilter: %d bits, %d hashes, seed %d",
            self._bitmap.bits, num_hashes, self._seed,
        )

    @classmethod
    def from_expected_items(
        cls,
        n: int,
        fp_rate: float,
        seed: int | None = None,
    ) -> BloomFilter[T]:
        """Size a filter so ``n`` distinct elements give about ``fp_rate`` false positives.

        Raises:
            ValueError: If n < 0 or fp_rate is outside (0, 1).
        """
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")
        if not 0 < fp_rate < 1:
            raise ValueError(f"fp_rate must be in (0, 1), got {fp_rate}")

        num_bytes = _bytes_for(n, fp_rate)
        return cls(num_bytes=num_bytes, num_hashes=_hashes_for(num_bytes * 8, n), seed=seed)

    @property
    def size_bits(self) -> int:
        return self._bitmap.bits

    @property
    def num_hashes(self) -> int:
        return self._num_hashes

    def _positions(self, item: T) -> list[int]:
        bits = self._bitmap.bits
        return [h(item) % bits for h in self._hashes]

    def process(self, item: T) -> None:
        self._total_count += 1
        for pos in self._positions(item):
            self._bitmap.set(pos)

    def query(self, args: T = None) -> bool:
        """False means ``args`` was never processed; True means it probably was."""
        return all(self._bitmap.get(pos) for pos in self._positions(args))

    def __contains__(self, item: T) -> bool:
        return self.query(item)

    @property
    def fill_ratio(self) -> float:
        """Fraction of bitmap bits set."""
        return self._bitmap.count() / self._bitmap.bits

    @property
    def false_positive_rate(self) -> float:
        """Observed false-positive estimate, ``fill_ratio ** num_hashes``."""
        return self.fill_ratio ** self._num_hashes

    def expected_false_positive_rate(self, n: int | None = None) -> float:
        """``(1 - e^(-k n / m))^k`` after ``n`` distinct elements (default item_count)."""
        if n is None:
            n = self._total_count
        k = self._num_hashes
        return (1.0 - math.exp(-k * n / self._bitmap.bits)) ** k

    @property
    def item_count(self) -> int:
        return self._total_count

    def __repr__(self) -> str:
        return (
            f"BloomFilter(num_bytes={self._bitmap.num_bytes}, num_hashes={self._num_hashes}, "
            f"fill={self.fill_ratio:.1%})"
        )
