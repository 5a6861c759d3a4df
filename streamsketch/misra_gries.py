"""Misra-Gries heavy hitters.

The Misra-Gries summary keeps at most k counters. A tracked item increments
its counter; an untracked item takes a free counter if one exists; otherwise
every counter is decremented and counters reaching zero are freed, and the
new item is dropped. It guarantees:
- Any item with true frequency > N/(k+1) is tracked (no false negatives)
- Each counter underestimates its item's frequency by at most N/(k+1)

Reference:
    Misra, Gries. "Finding Repeated Elements" (1982)
"""

from __future__ import annotations

import logging
from collections.abc import Hashable

from streamsketch.base import StreamProcessor

logger = logging.getLogger(__name__)


class MisraGries[T: Hashable](StreamProcessor[T, list[T]]):
    """Heavy-hitter candidates using the Misra-Gries algorithm.

    Args:
        k: Maximum number of tracked items. Must be positive.

    Example:
        mg = MisraGries[str](k=10)
        for endpoint in request_stream:
            mg.process(endpoint)
        candidates = mg.query()  # superset of endpoints above N/11
    """

    def __init__(self, k: int):
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        self._k = k
        self._counts: dict[T, int] = {}
        self._total_count = 0

    @property
    def k(self) -> int:
        """Maximum number of tracked items."""
        return self._k

    def process(self, item: T) -> None:
        self._total_count += 1

        if item in self._counts:
            self._counts[item] += 1
        elif len(self._counts) < self._k:
            self._counts[item] = 1
        else:
            # Table full: decrement everyone, drop the newcomer
            self._counts = {key: count - 1 for key, count in self._counts.items() if count > 1}
            logger.debug(
                "MisraGries decrement round: %d of %d counters survive",
                len(self._counts), self._k,
            )

    def query(self, args: None = None) -> list[T]:
        """Return the currently tracked items (heavy-hitter candidates)."""
        return list(self._counts)

    @property
    def counts(self) -> dict[T, int]:
        """Copy of the counter map (lower bounds on true frequency)."""
        return dict(self._counts)

    def __contains__(self, item: T) -> bool:
        return item in self._counts

    def guaranteed_threshold(self) -> int:
        """Frequency above which an item is guaranteed to be tracked.

        Returns:
            N // (k + 1), where N is the number of processed items.
        """
        return self._total_count // (self._k + 1)

    @property
    def item_count(self) -> int:
        return self._total_count

    @property
    def tracked_count(self) -> int:
        """Number of distinct items currently tracked."""
        return len(self._counts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(k={self._k}, tracked={len(self._counts)}, total={self._total_count})"


class Majority[T: Hashable](MisraGries[T]):
    """Single-counter Misra-Gries (Boyer-Moore majority vote).

    If some item occurs in more than half the stream, ``query()`` returns
    exactly that item.
    """

    def __init__(self):
        super().__init__(k=1)
