"""Rank-error measurement for compactor outputs.

Compares the ranks of query points among compactor survivors against their
true ranks among the inputs. Survivor ranks are mapped back to input scale by
an estimator; the default, ``g * 2.05 ** (g / len(outputs))``, accounts for
linear compaction keeping low values densely and thinning high values.

Example:
    report = compute_rank_errors(inputs, outputs, length=10_000)
    print(report.max_relative, report.space_usage)
    report.to_frame().describe()
    plot_rank_errors(report, "rank_errors.png")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from streamsketch.compactor import rank

logger = logging.getLogger(__name__)

RankEstimator = Callable[[int, int], float]

_GROWTH = 2.05


def exponential_rank_estimate(output_rank: int, output_len: int) -> float:
    """Scale a survivor rank back to input scale: ``g * 2.05 ** (g / len)``."""
    if output_len == 0:
        return 0.0
    g = float(output_rank)
    return g * _GROWTH ** (g / output_len)


def relative_error(expected: float, got: float) -> float:
    """``1 - min(exp/got, got/exp)``; 0 if both are 0, 1 if only one is."""
    if expected == 0 and got == 0:
        return 0.0
    if expected == 0 or got == 0:
        return 1.0
    return 1.0 - min(expected / got, got / expected)


@dataclass(frozen=True, slots=True)
class RankErrorReport:
    """Per-query-point rank errors.

    Attributes:
        additive: |true rank - estimated rank| for query points 0..length-1.
        relative: Relative rank error for the same points.
        input_count: Number of input elements.
        output_count: Number of compactor survivors.
    """

    additive: list[int] = field(default_factory=list)
    relative: list[float] = field(default_factory=list)
    input_count: int = 0
    output_count: int = 0

    @property
    def space_usage(self) -> float:
        """Survivors per input element."""
        if self.input_count == 0:
            return 0.0
        return self.output_count / self.input_count

    @property
    def max_relative(self) -> float:
        return max(self.relative, default=0.0)

    @property
    def max_additive(self) -> int:
        return max(self.additive, default=0)

    def to_frame(self) -> pd.DataFrame:
        """One row per query point with additive and relative error columns."""
        return pd.DataFrame(
            {"additive_error": self.additive, "relative_error": self.relative},
            index=pd.RangeIndex(len(self.additive), name="query_point"),
        )


def compute_rank_errors(
    inputs: Sequence[int],
    outputs: Sequence[int],
    length: int,
    estimator: RankEstimator | None = None,
) -> RankErrorReport:
    """Measure rank errors of ``outputs`` against ``inputs``.

    Args:
        inputs: Everything that entered the compactors.
        outputs: Everything the compactors emitted.
        length: Query points are the integers 0..length-1.
        estimator: Maps (survivor rank, survivor count) to an input rank.
            Defaults to exponential_rank_estimate.

    Returns:
        RankErrorReport over all query points.
    """
    estimate = estimator if estimator is not None else exponential_rank_estimate
    sorted_inputs = sorted(inputs)
    sorted_outputs = sorted(outputs)

    additive: list[int] = []
    relative: list[float] = []
    for point in range(length):
        got = int(estimate(rank(sorted_outputs, point), len(sorted_outputs)))
        expected = rank(sorted_inputs, point)
        additive.append(abs(expected - got))
        relative.append(relative_error(expected, got))

    report = RankErrorReport(
        additive=additive,
        relative=relative,
        input_count=len(sorted_inputs),
        output_count=len(sorted_outputs),
    )
    logger.debug(
        "Rank errors over %d points: max relative %.3f, space usage %.3f",
        length, report.max_relative, report.space_usage,
    )
    return report


def plot_rank_errors(report: RankErrorReport, path: str | Path) -> Path:
    """Save a two-panel PNG of additive and relative error by query point.

    Returns:
        The path written.
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = report.to_frame()

    _fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    ax1.plot(frame.index, frame["additive_error"])
    ax1.set_xlabel("Query point")
    ax1.set_ylabel("Additive rank error")
    ax1.set_title(f"Additive error (max {report.max_additive})")

    ax2.plot(frame.index, frame["relative_error"])
    ax2.set_xlabel("Query point")
    ax2.set_ylabel("Relative rank error")
    ax2.set_ylim(0, 1)
    ax2.set_title(
        f"Relative error (max {report.max_relative:.2f}, space {report.space_usage:.1%})"
    )

    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()
    return path
