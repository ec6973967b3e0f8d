"""
Normalizers: bounded, monotonic transforms of raw attribute values.

Each normalizer is parameterized by one reference statistic (computed elsewhere by
a flat traversal) and is total over floats: zero references and zero inputs map
to documented fallback values instead of raising.

- `SigmoidNorm(scale)`: x / (x + scale), 0.5 at x == scale, below 1 for finite x
- `ReverseMinNorm(min)`: min / x, 1 at x == min, rewards smaller values (price)
- `MaxNorm(max)`: x / max, 1 at x == max
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Literal

NormalizerName = Literal["sigmoid", "reverse_min", "max"]


class Normalizer(ABC):
    @abstractmethod
    def normalize(self, value: float) -> float:
        """Map a raw attribute value onto the normalizer's range."""


class SigmoidNorm(Normalizer):
    """Saturating transform centred on `scale`."""

    def __init__(self, scale: float) -> None:
        self.scale = float(scale)

    def normalize(self, value: float) -> float:
        if self.scale <= 0:
            return 0.0
        if math.isinf(value):
            return 1.0 if value > 0 else 0.0
        # r / (1 + r) instead of x / (x + scale) keeps huge inputs at or below 1.
        r = float(value) / self.scale
        if r <= -1:
            return 0.0
        return r / (1 + r)

    def __repr__(self) -> str:
        return f"SigmoidNorm(scale={self.scale!r})"


class ReverseMinNorm(Normalizer):
    """Inverse ratio to the smallest observed value; 0.0 for a zero input."""

    def __init__(self, min_value: float) -> None:
        self.min_value = float(min_value)

    def normalize(self, value: float) -> float:
        v = float(value)
        if v == 0:
            return 0.0
        return self.min_value / v

    def __repr__(self) -> str:
        return f"ReverseMinNorm(min_value={self.min_value!r})"


class MaxNorm(Normalizer):
    """Ratio to the largest observed value; 0.0 when that maximum is zero."""

    def __init__(self, max_value: float) -> None:
        self.max_value = float(max_value)

    def normalize(self, value: float) -> float:
        if self.max_value == 0:
            return 0.0
        return float(value) / self.max_value

    def __repr__(self) -> str:
        return f"MaxNorm(max_value={self.max_value!r})"


def new_normalizer(name: str, reference: float) -> Normalizer:
    """Build a named normalizer around its reference statistic."""
    if name == "sigmoid":
        return SigmoidNorm(reference)
    if name == "reverse_min":
        return ReverseMinNorm(reference)
    if name == "max":
        return MaxNorm(reference)
    raise ValueError(f"Unknown normalizer '{name}'")


# Flat statistic each normalizer is centred on.
REFERENCE_AGGREGATOR: dict[str, str] = {
    "sigmoid": "mean",
    "reverse_min": "min",
    "max": "max",
}
