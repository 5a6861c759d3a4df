"""Single-pass streaming approximation algorithms.

Every sketch is a ``StreamProcessor``: build it empty, ``process`` elements one
at a time, ``query`` the estimate as often as needed. Memory is fixed at
construction (or bounded by a configured capacity), independent of stream
length.

Quick Reference:
    ExactCounter, MorrisCounter: Element counting
    BloomFilter: Probabilistic set membership
    FlajoletMartin: Cardinality (distinct count) estimation
    MisraGries, Majority: Heavy-hitter candidates
    CountMin: Frequency estimation for any item
    Quantile: Sampled rank estimation
    Compactor, ChainedCompactors: KLL-style compaction for rank sketches
    BoolGroup, MedianOfMeans: Accuracy-amplifying combinators

Example:
    from streamsketch import CountMin, FlajoletMartin

    cms = CountMin[str](width=256, depth=4)
    for key in keys:
        cms.process(key)
    print(cms.query("hot_key"))

    print(FlajoletMartin.apply(visitor_ids))
"""

import logging

from streamsketch.adapters import BoolGroup, MedianOfMeans
from streamsketch.base import StreamProcessor
from streamsketch.bitmap import Bitmap
from streamsketch.bloom_filter import BloomFilter
from streamsketch.compactor import ChainedCompactors, Compactor, rank
from streamsketch.count import ExactCounter, MorrisCounter
from streamsketch.count_min import CountMin
from streamsketch.flajolet_martin import FlajoletMartin
from streamsketch.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    enable_sketch_debug,
    set_level,
    set_module_level,
)
from streamsketch.misra_gries import Majority, MisraGries
from streamsketch.quantile import Quantile
from streamsketch.rand import RandomSource, SeededRandomSource

logging.getLogger("streamsketch").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Protocol
    "StreamProcessor",
    # Building blocks
    "Bitmap",
    "RandomSource",
    "SeededRandomSource",
    # Counting
    "ExactCounter",
    "MorrisCounter",
    # Membership
    "BloomFilter",
    # Cardinality
    "FlajoletMartin",
    # Frequency
    "CountMin",
    "Majority",
    "MisraGries",
    # Rank / quantile
    "ChainedCompactors",
    "Compactor",
    "Quantile",
    "rank",
    # Adapters
    "BoolGroup",
    "MedianOfMeans",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "enable_sketch_debug",
    "set_level",
    "set_module_level",
]
