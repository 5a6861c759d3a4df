"""Fixed-capacity bit vector used by the bit-based sketches."""

from __future__ import annotations


class Bitmap:
    """A bit vector of ``num_bytes * 8`` bits, sized once at construction.

    Bit ``i`` lives in byte ``i // 8`` at position ``i % 8`` (least
    significant first), so byte 0 holds bits 0-7.

    Args:
        num_bytes: Number of bytes of storage. Must be positive.

    Raises:
        ValueError: If num_bytes <= 0.
    """

    def __init__(self, num_bytes: int):
        if num_bytes <= 0:
            raise ValueError(f"num_bytes must be positive, got {num_bytes}")
        self._num_bytes = num_bytes
        self._bytes = bytearray(num_bytes)

    @property
    def num_bytes(self) -> int:
        """Storage size in bytes."""
        return self._num_bytes

    @property
    def bits(self) -> int:
        """Number of addressable bits."""
        return self._num_bytes * 8

    @property
    def bytes(self) -> bytes:
        """Immutable snapshot of the underlying bytes."""
        return bytes(self._bytes)

    def _check(self, i: int) -> None:
        if not 0 <= i < self.bits:
            raise IndexError(f"bit index {i} out of range for {self.bits}-bit bitmap")

    def set(self, i: int) -> None:
        """Set bit ``i``.

        Raises:
            IndexError: If i is outside [0, bits).
        """
        self._check(i)
        self._bytes[i // 8] |= 1 << (i % 8)

    def set_or_max(self, i: int) -> None:
        """Set bit ``i``, or the highest-order bit if ``i`` is past the end.

        The top bit acts as a saturation sentinel so callers with unbounded
        indices never need to branch on overflow.
        """
        if i >= self.bits:
            i = self.bits - 1
        self.set(i)

    def get(self, i: int) -> bool:
        """Return whether bit ``i`` is set.

        Raises:
            IndexError: If i is outside [0, bits).
        """
        self._check(i)
        return bool((self._bytes[i // 8] >> (i % 8)) & 1)

    def count(self) -> int:
        """Number of set bits."""
        return sum(byte.bit_count() for byte in self._bytes)

    def __len__(self) -> int:
        return self.bits

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return self._bytes == other._bytes

    def __repr__(self) -> str:
        return f"Bitmap(bits={self.bits}, set={self.count()})"
