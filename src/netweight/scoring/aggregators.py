"""
Statistical aggregators.

An aggregator is a small stateful reducer: values are pushed with `add()`, and
`compute()` returns the current summary without clearing it. Aggregators are used
in two places:
- flat traversal, to derive reference statistics (mean capacity, minimum price, ...)
- hierarchical traversal, where every bucket gets its own fresh instance

Because they carry state, an aggregator instance must never be shared between two
bucket computations. `AggregatorFactory` is the capability that hands out fresh ones.

Empty policy: every variant returns 0.0 when nothing was added, so sparse
topologies produce a deterministic, non-negative weight instead of an error.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Literal

AggregatorName = Literal["mean", "mean_sum", "min", "max", "mean_iqr"]

EMPTY_VALUE = 0.0
DEFAULT_IQR_K = 1.5


class Aggregator(ABC):
    """Stateful reducer over a stream of floats."""

    @abstractmethod
    def add(self, value: float) -> None:
        """Record one observation."""

    @abstractmethod
    def compute(self) -> float:
        """Return the summary statistic of everything added so far."""

    @abstractmethod
    def clear(self) -> None:
        """Forget all observations (fixed parameters are kept)."""


class MeanAgg(Aggregator):
    """Unweighted arithmetic mean."""

    def __init__(self) -> None:
        self._sum = 0.0
        self._count = 0

    def add(self, value: float) -> None:
        self._sum += float(value)
        self._count += 1

    def compute(self) -> float:
        if self._count == 0:
            return EMPTY_VALUE
        return self._sum / self._count

    def clear(self) -> None:
        self._sum = 0.0
        self._count = 0


class MeanSumAgg(MeanAgg):
    """Sum-weighted mean used for rollups.

    Observably identical to `MeanAgg` (sum of added values over the number of
    `add()` calls). It is kept as its own variant because a rollup over children
    that stand for unequal leaf counts is a different question than a plain mean,
    even if both answer it the same way today.
    """


class MinAgg(Aggregator):
    """Running minimum."""

    def __init__(self) -> None:
        self._min: float | None = None

    def add(self, value: float) -> None:
        v = float(value)
        if self._min is None or v < self._min:
            self._min = v

    def compute(self) -> float:
        return EMPTY_VALUE if self._min is None else self._min

    def clear(self) -> None:
        self._min = None


class MaxAgg(Aggregator):
    """Running maximum."""

    def __init__(self) -> None:
        self._max: float | None = None

    def add(self, value: float) -> None:
        v = float(value)
        if self._max is None or v > self._max:
            self._max = v

    def compute(self) -> float:
        return EMPTY_VALUE if self._max is None else self._max

    def clear(self) -> None:
        self._max = None


def _nearest_rank(values: list[float], p: float) -> float:
    # 1-indexed nearest-rank percentile, rank clamped to [1, n].
    n = len(values)
    rank = min(max(int(math.ceil(n * p)), 1), n)
    return values[rank - 1]


class MeanIQRAgg(Aggregator):
    """Mean of the values that fall inside the interquartile fence.

    Values outside `[Q1 - k*IQR, Q3 + k*IQR]` are treated as outliers and
    ignored. `k` can be changed at any time and survives `clear()`.
    """

    def __init__(self, k: float = DEFAULT_IQR_K) -> None:
        self.k = float(k)
        self._values: list[float] = []

    def add(self, value: float) -> None:
        self._values.append(float(value))

    def compute(self) -> float:
        if not self._values:
            return EMPTY_VALUE

        values = sorted(self._values)
        q1 = _nearest_rank(values, 0.25)
        q3 = _nearest_rank(values, 0.75)
        fence = self.k * (q3 - q1)
        low, high = q1 - fence, q3 + fence

        kept = [v for v in values if low <= v <= high]
        if not kept:
            # Every value was fenced out: fall back to the plain mean.
            kept = values
        return sum(kept) / len(kept)

    def clear(self) -> None:
        self._values = []


@dataclass(frozen=True)
class AggregatorFactory:
    """Hands out a fresh aggregator on every call to `new()`."""

    new: Callable[[], Aggregator]


def new_mean_agg() -> Aggregator:
    return MeanAgg()


def new_mean_sum_agg() -> Aggregator:
    return MeanSumAgg()


def new_min_agg() -> Aggregator:
    return MinAgg()


def new_max_agg() -> Aggregator:
    return MaxAgg()


def new_mean_iqr_agg(k: float = DEFAULT_IQR_K) -> Aggregator:
    return MeanIQRAgg(k)


def aggregator_factory(name: str, *, iqr_k: float = DEFAULT_IQR_K) -> AggregatorFactory:
    """Build a factory for a named aggregator (config-driven)."""
    if name == "mean":
        return AggregatorFactory(new=new_mean_agg)
    if name == "mean_sum":
        return AggregatorFactory(new=new_mean_sum_agg)
    if name == "min":
        return AggregatorFactory(new=new_min_agg)
    if name == "max":
        return AggregatorFactory(new=new_max_agg)
    if name == "mean_iqr":
        k = float(iqr_k)
        return AggregatorFactory(new=lambda: MeanIQRAgg(k))
    raise ValueError(f"Unknown aggregator '{name}'")
