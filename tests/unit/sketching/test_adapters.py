"""Tests for BoolGroup and MedianOfMeans."""

import statistics

import pytest

from streamsketch import (
    BloomFilter,
    BoolGroup,
    ExactCounter,
    FlajoletMartin,
    MedianOfMeans,
    MorrisCounter,
    SeededRandomSource,
)


class TestBoolGroup:
    """Tests for AND-combined boolean sketches."""

    def test_rejects_zero_members(self):
        with pytest.raises(ValueError, match="must be positive"):
            BoolGroup(lambda i: BloomFilter(seed=i), n=0)

    def test_factory_called_with_index(self):
        """Sub-sketch i is built by factory(i)."""
        seen = []

        def factory(i):
            seen.append(i)
            return BloomFilter(seed=i)

        group = BoolGroup(factory, n=4)

        assert seen == [0, 1, 2, 3]
        assert len(group.subs) == 4

    def test_every_element_reaches_every_sub(self):
        group = BoolGroup(lambda i: BloomFilter[str](num_bytes=64, seed=i), n=3)
        group.process_all(["a", "b", "c"])

        assert group.item_count == 3
        assert all(sub.item_count == 3 for sub in group.subs)

    def test_no_false_negatives(self):
        """Every processed element is reported present."""
        group = BoolGroup(lambda i: BloomFilter[int](num_bytes=32, num_hashes=2, seed=i), n=4)
        group.process_all(range(200))

        assert all(v in group for v in range(200))

    def test_query_is_and_of_subs(self):
        """A single dissenting member makes the group answer False."""
        group = BoolGroup(lambda i: BloomFilter[str](num_bytes=64, seed=i), n=3)
        group.process("x")
        # Only one member sees "y"
        group.subs[0].process("y")

        assert group.query("x") is True
        assert group.subs[0].query("y") is True
        assert group.query("y") is False

    def test_fewer_false_positives_than_single_filter(self):
        """ANDing independent filters cuts the false-positive count."""
        single = BloomFilter[int](num_bytes=32, num_hashes=2, seed=0)
        group = BoolGroup(lambda i: BloomFilter[int](num_bytes=32, num_hashes=2, seed=i), n=4)
        for v in range(100):
            single.process(v)
            group.process(v)

        probes = range(10_000, 20_000)
        single_fp = sum(single.query(v) for v in probes)
        group_fp = sum(group.query(v) for v in probes)

        assert group_fp <= single_fp


class TestMedianOfMeans:
    """Tests for the median-of-aggregates combinator."""

    def test_rejects_zero_group_size(self):
        with pytest.raises(ValueError, match="n must be positive"):
            MedianOfMeans(lambda i: ExactCounter(), n=0, m=3)

    def test_rejects_zero_groups(self):
        with pytest.raises(ValueError, match="m must be positive"):
            MedianOfMeans(lambda i: ExactCounter(), n=3, m=0)

    def test_builds_n_times_m_subs(self):
        """Indices 0..n*m-1 are handed out group by group."""
        mom = MedianOfMeans(lambda i: MorrisCounter(rng=SeededRandomSource(i)), n=3, m=4)
        groups = mom.groups

        assert len(groups) == 4
        assert all(len(group) == 3 for group in groups)

    def test_exact_members_give_exact_answer(self):
        """Aggregating exact counters returns the exact count."""
        mom = MedianOfMeans(lambda i: ExactCounter(), n=3, m=5)
        mom.process_all(range(42))

        assert mom.query() == 42
        assert mom.group_estimates() == [42.0] * 5
        assert mom.item_count == 42

    def test_query_is_median_of_group_estimates(self):
        mom = MedianOfMeans(lambda i: MorrisCounter(rng=SeededRandomSource(i)), n=4, m=5)
        mom.process_all(range(1000))

        assert mom.query() == statistics.median(mom.group_estimates())

    def test_custom_aggregate(self):
        """The per-group aggregate is pluggable."""
        mom = MedianOfMeans(
            lambda i: MorrisCounter(rng=SeededRandomSource(i)), n=5, m=3, aggregate=max
        )
        mom.process_all(range(500))

        for group, estimate in zip(mom.groups, mom.group_estimates(), strict=True):
            assert estimate == max(sub.query() for sub in group)

    def test_tightens_morris_estimates(self):
        """Median of means over Morris counters lands near the true count."""
        mom = MedianOfMeans(lambda i: MorrisCounter(rng=SeededRandomSource(i)), n=8, m=5)
        mom.process_all(range(2000))

        assert 700 <= mom.query() <= 6000

    def test_flajolet_martin_groups(self):
        """Works with any numeric-result sketch."""
        mom = MedianOfMeans(lambda i: FlajoletMartin[int](seed=i), n=3, m=5)
        mom.process_all(range(1000))

        assert 200 <= mom.query() <= 8000
