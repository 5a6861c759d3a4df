"""Tests for the StreamProcessor base class."""

import pytest

from streamsketch import BloomFilter, ExactCounter, MisraGries, StreamProcessor


class _Sum(StreamProcessor[int, int]):
    def __init__(self, start: int = 0):
        self.total = start
        self._count = 0

    def process(self, item: int) -> None:
        self._count += 1
        self.total += item

    def query(self, args: None = None) -> int:
        return self.total

    @property
    def item_count(self) -> int:
        return self._count


class TestStreamProcessor:
    """Tests for the shared driver methods."""

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            StreamProcessor()

    def test_process_all_in_order(self):
        """process_all feeds every element and counts them."""
        seen = []

        class Recorder(_Sum):
            def process(self, item: int) -> None:
                super().process(item)
                seen.append(item)

        sketch = Recorder()
        sketch.process_all(iter([3, 1, 2]))

        assert seen == [3, 1, 2]
        assert sketch.item_count == 3

    def test_apply_passes_constructor_kwargs(self):
        """apply() builds with kwargs, ingests and queries."""
        assert _Sum.apply([1, 2, 3], start=10) == 16

    def test_apply_forwards_query_argument(self):
        """The positional argument after the stream goes to query()."""
        assert BloomFilter.apply(["x", "y"], "x", num_bytes=32) is True

    def test_apply_with_constructor_only(self):
        assert MisraGries.apply(["a", "a", "b"], k=1) == ["a"]

    def test_query_has_no_side_effects(self):
        counter = ExactCounter()
        counter.process_all(range(5))

        assert counter.query() == counter.query() == 5

    def test_apply_on_empty_stream(self):
        assert ExactCounter.apply([]) == 0
