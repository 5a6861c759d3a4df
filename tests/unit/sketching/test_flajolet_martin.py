"""Tests for Flajolet-Martin cardinality estimation."""

import random
import statistics

import pytest

from streamsketch import FlajoletMartin
from streamsketch.flajolet_martin import PHI, _trailing_ones, _trailing_zeros


class TestBitHelpers:
    """Tests for the trailing-bit helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [(1, 0), (2, 1), (8, 3), (0b101000, 3), (0, 64), (1 << 63, 63)],
    )
    def test_trailing_zeros(self, value, expected):
        assert _trailing_zeros(value) == expected

    @pytest.mark.parametrize(
        "byte,expected",
        [(0x00, 0), (0x01, 1), (0x07, 3), (0x0B, 2), (0x7F, 7), (0xFF, 8)],
    )
    def test_trailing_ones(self, byte, expected):
        assert _trailing_ones(byte) == expected


class TestFlajoletMartinCreation:
    """Tests for FlajoletMartin configuration."""

    def test_rejects_zero_bytes(self):
        """Rejects an empty bitmap."""
        with pytest.raises(ValueError, match="must be positive"):
            FlajoletMartin(num_bytes=0)

    def test_defaults(self):
        """Defaults to an 8-byte bitmap."""
        assert FlajoletMartin().num_bytes == 8


class TestFlajoletMartinEstimate:
    """Tests for the cardinality estimate."""

    def test_empty_is_zero(self):
        """The empty stream estimates zero."""
        assert FlajoletMartin.apply([]) == 0

    def test_estimate_from_lowest_unset_bit(self):
        """query() is round(2^R / PHI) - 1 for the first unset bit R."""
        fm = FlajoletMartin[int](num_bytes=8, seed=4)
        fm.process_all(range(300))

        r = fm.lowest_unset_bit()
        assert fm.query() == round(2.0**r / PHI) - 1

    def test_saturated_bitmap_uses_capacity(self):
        """When every bit is set the estimate uses the bit count."""
        fm = FlajoletMartin[int](num_bytes=1)
        for i in range(8):
            fm._bitmap.set(i)

        assert fm.lowest_unset_bit() == 8
        assert fm.query() == round(2.0**8 / PHI) - 1

    def test_duplicates_do_not_change_estimate(self):
        """Re-processing the same items is idempotent."""
        fm = FlajoletMartin[int](seed=9)
        fm.process_all(range(500))
        before = fm.query()
        fm.process_all(range(500))

        assert fm.query() == before
        assert fm.item_count == 1000

    def test_within_generous_bound_for_small_streams(self):
        """|distinct - estimate| < 1000 + distinct/2 for many random streams."""
        rng = random.Random(17)
        for trial in range(25):
            values = [rng.randrange(1000) for _ in range(rng.randrange(100))]
            estimate = FlajoletMartin.apply(values, seed=trial)
            distinct = len(set(values))

            assert abs(distinct - estimate) < 1000 + distinct // 2

    def test_median_estimate_within_small_factor(self):
        """Median over independent seeds lands within 4x of the truth."""
        n = 1000
        estimates = [FlajoletMartin.apply(range(n), seed=s) for s in range(15)]

        assert n / 4 <= statistics.median(estimates) <= n * 4
