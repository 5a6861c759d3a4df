"""Flajolet-Martin sketch for cardinality (distinct count) estimation.

Each item is hashed and the number of trailing zero bits ``z`` of the hash is
recorded by setting bit ``z`` of a small bitmap. A hash ending in ``z`` zeros
shows up roughly once every ``2^(z+1)`` distinct items, so the position of the
lowest unset bit ``R`` tracks ``log2(n)``; the estimate is ``2^R / PHI``.

Key properties:
- Space: a single bitmap of ``num_bytes * 8`` bits
- Update: O(1)
- Query: O(num_bytes)
- Duplicates never change the estimate

Reference:
    Flajolet, Martin. "Probabilistic Counting Algorithms for Data Base
    Applications" (1985)
"""

from __future__ import annotations

from collections.abc import Hashable

from streamsketch.base import StreamProcessor
from streamsketch.bitmap import Bitmap
from streamsketch.hashing import SeededHash

PHI = 0.77351
_HASH_BITS = 64


def _trailing_zeros(value: int) -> int:
    """Trailing zero bits of a 64-bit value (64 for zero)."""
    if value == 0:
        return _HASH_BITS
    return (value & -value).bit_length() - 1


def _trailing_ones(value: int) -> int:
    return _trailing_zeros(~value & 0xFF) if value != 0xFF else 8


class FlajoletMartin[T: Hashable](StreamProcessor[T, int]):
    """Flajolet-Martin distinct-count estimator.

    Args:
        num_bytes: Bitmap size in bytes. Hashes with more trailing zeros than
            the bitmap has bits saturate the top bit.
        seed: Seed for the hash function.

    Example:
        fm = FlajoletMartin[str](num_bytes=8)
        for visitor_id in visitor_stream:
            fm.process(visitor_id)
        print(f"~{fm.query()} unique visitors")
    """

    def __init__(self, num_bytes: int = 8, seed: int | None = None):
        if num_bytes <= 0:
            raise ValueError(f"num_bytes must be positive, got {num_bytes}")

        self._bitmap = Bitmap(num_bytes)
        self._seed = seed if seed is not None else 0
        self._hash = SeededHash(self._seed)
        self._total_count = 0

    @property
    def num_bytes(self) -> int:
        """Bitmap size in bytes."""
        return self._bitmap.num_bytes

    def process(self, item: T) -> None:
        self._total_count += 1
        self._bitmap.set_or_max(_trailing_zeros(self._hash(item)))

    def lowest_unset_bit(self) -> int:
        """Index of the first unset bit, or the bit count when all are set."""
        for i, byte in enumerate(self._bitmap.bytes):
            if byte != 0xFF:
                return i * 8 + _trailing_ones(byte)
        return self._bitmap.bits

    def query(self, args: None = None) -> int:
        """Estimate the number of distinct items."""
        return round(2.0 ** self.lowest_unset_bit() / PHI) - 1

    @property
    def item_count(self) -> int:
        """Total count of items added (not distinct count)."""
        return self._total_count

    def __repr__(self) -> str:
        return f"FlajoletMartin(bits={self._bitmap.bits}, cardinality≈{self.query()})"
