"""Base abstraction for streaming/sketching algorithms.

Sketching algorithms provide approximate statistics over data streams using
bounded memory. They trade exact accuracy for space efficiency, making them
ideal for high-throughput systems where storing all data is impractical.

Every sketch in this package is a ``StreamProcessor``: it is created empty,
mutated only through ``process`` and read through ``query``. The three type
parameters name what flows through it:

- ``T``: element type accepted by ``process``
- ``R``: result type returned by ``query``
- ``A``: argument type accepted by ``query`` (``None`` when the query takes
  no argument, e.g. a cardinality estimate)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


class StreamProcessor[T, R, A = None](ABC):
    """Base protocol for all streaming/sketching algorithms.

    Implementations must keep ``query`` free of side effects so it can be
    called any number of times, before or after any number of ``process``
    calls.

    Example:
        # Build, feed and query in one step
        distinct = FlajoletMartin.apply(visitor_ids, num_bytes=8)

        # Or incrementally
        cms = CountMin(width=256, depth=4)
        for key in keys:
            cms.process(key)
        hot = cms.query("hot_key")
    """

    @abstractmethod
    def process(self, item: T) -> None:
        """Incorporate one observation into the sketch.

        Args:
            item: The observed element.
        """

    @abstractmethod
    def query(self, args: A = None) -> R:
        """Read the current estimate without modifying state.

        Args:
            args: Query argument (the element to look up for membership,
                frequency or rank sketches; unused otherwise).

        Returns:
            The sketch's estimate.
        """

    @property
    @abstractmethod
    def item_count(self) -> int:
        """Total number of elements passed to process()."""

    def process_all(self, items: Iterable[T]) -> None:
        """Process every element of an iterable, in order."""
        for item in items:
            self.process(item)

    @classmethod
    def apply(cls, stream: Iterable[T], args: A = None, **kwargs: Any) -> R:
        """Build a sketch, ingest a whole stream and query it.

        Args:
            stream: Elements to process.
            args: Argument forwarded to query().
            **kwargs: Constructor arguments for the sketch.

        Returns:
            The query result after the stream is exhausted.
        """
        sketch = cls(**kwargs)
        sketch.process_all(stream)
        return sketch.query(args)
