"""Tests for ExactCounter and MorrisCounter."""

import statistics

import pytest

from streamsketch import ExactCounter, MorrisCounter, RandomSource, SeededRandomSource


class TestExactCounter:
    """Tests for exact counting."""

    def test_empty_is_zero(self):
        """A new counter reports zero."""
        assert ExactCounter().query() == 0

    @pytest.mark.parametrize("n", [0, 1, 17, 1000])
    def test_counts_every_element(self, n):
        """query() equals the number of processed elements."""
        assert ExactCounter.apply(range(n)) == n

    def test_query_is_pure(self):
        """Repeated queries do not change the count."""
        c = ExactCounter()
        c.process_all("abc")

        assert c.query() == c.query() == 3
        assert c.item_count == 3


class TestMorrisCounter:
    """Tests for approximate Morris counting."""

    def test_empty_is_zero(self):
        """A new counter estimates zero."""
        assert MorrisCounter().query() == 0

    def test_first_element_always_counts(self):
        """The first increment happens with probability (1+a)^0 = 1."""
        c = MorrisCounter(alpha=1.0, rng=RandomSource(3.0))
        c.process("x")

        assert c.exponent == 1
        assert c.query() == 1

    def test_rejects_non_positive_alpha(self):
        """Rejects alpha <= 0."""
        with pytest.raises(ValueError, match="must be positive"):
            MorrisCounter(alpha=0.0)
        with pytest.raises(ValueError, match="must be positive"):
            MorrisCounter(alpha=-1.0)

    def test_counter_grows_logarithmically(self):
        """The stored exponent stays far below the stream length."""
        c = MorrisCounter(alpha=1.0, rng=SeededRandomSource(5))
        c.process_all(range(10_000))

        assert c.exponent < 30
        assert c.item_count == 10_000

    def test_estimate_formula(self):
        """query() is round(((1+a)^c - 1)/a)."""
        c = MorrisCounter(alpha=0.5, rng=SeededRandomSource(2))
        c.process_all(range(500))

        expected = round((1.5 ** c.exponent - 1) / 0.5)
        assert c.query() == expected

    def test_estimates_unbiased_on_average(self):
        """Averaged over many counters the estimate tracks the true count."""
        n = 2000
        estimates = []
        for seed in range(200):
            c = MorrisCounter(alpha=0.1, rng=SeededRandomSource(seed))
            c.process_all(range(n))
            estimates.append(c.query())

        assert statistics.fmean(estimates) == pytest.approx(n, rel=0.1)

    def test_smaller_alpha_is_more_accurate(self):
        """Spread of estimates shrinks with alpha."""
        n = 1000

        def spread(alpha):
            values = []
            for seed in range(100):
                c = MorrisCounter(alpha=alpha, rng=SeededRandomSource(seed))
                c.process_all(range(n))
                values.append(c.query())
            return statistics.pstdev(values)

        assert spread(0.05) < spread(1.0)
