"""Build configuration: defaults, homogeneity metrics and validation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_TOLERANCE = 0.0
DEFAULT_MIN_LEAF_SIZE = 1

# Root area (in pixels) below which a parallel build runs sequentially anyway
DEFAULT_PARALLEL_THRESHOLD = 256 * 256

# Largest extent the persisted header can describe (u32)
MAX_DIMENSION = 2**32 - 1


class Metric(str, Enum):
    """How a region is judged homogeneous.

    The persisted header stores ``code`` so that files written with one metric
    are still decoded with the right metadata.
    """

    MAX_DISTANCE = "max"   # Chebyshev distance to the mean colour
    VARIANCE = "variance"  # largest per-channel variance

    @property
    def code(self) -> int:
        return _METRIC_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "Metric":
        for metric, value in _METRIC_CODES.items():
            if value == code:
                return metric
        raise ValueError(f"Unknown metric code: {code}")

    @classmethod
    def parse(cls, value: Union[str, "Metric"]) -> "Metric":
        if isinstance(value, Metric):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ConfigError(f"Unknown metric {value!r} (expected one of: {choices})") from None


_METRIC_CODES = {
    Metric.MAX_DISTANCE: 0,
    Metric.VARIANCE: 1,
}


def validate_tolerance(tolerance: float) -> float:
    try:
        value = float(tolerance)
    except (TypeError, ValueError):
        raise ConfigError(f"Tolerance must be a number, got {tolerance!r}") from None
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"Tolerance must be a finite value >= 0, got {tolerance!r}")
    return value


def validate_min_leaf_size(min_leaf_size: int) -> int:
    if isinstance(min_leaf_size, bool) or not isinstance(min_leaf_size, int):
        raise ConfigError(f"min_leaf_size must be an integer, got {min_leaf_size!r}")
    if min_leaf_size < 1:
        raise ConfigError(f"min_leaf_size must be >= 1, got {min_leaf_size}")
    if min_leaf_size > MAX_DIMENSION:
        raise ConfigError(f"min_leaf_size must fit in 32 bits, got {min_leaf_size}")
    return min_leaf_size


@dataclass(frozen=True)
class BuildConfig:
    """Parameters for one quadtree build."""

    tolerance: float = DEFAULT_TOLERANCE
    min_leaf_size: int = DEFAULT_MIN_LEAF_SIZE
    metric: Metric = Metric.MAX_DISTANCE
    workers: int = 1
    parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "tolerance", validate_tolerance(self.tolerance))
        object.__setattr__(self, "min_leaf_size", validate_min_leaf_size(self.min_leaf_size))
        object.__setattr__(self, "metric", Metric.parse(self.metric))
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers must be an integer >= 1, got {self.workers!r}")
        if (
            isinstance(self.parallel_threshold, bool)
            or not isinstance(self.parallel_threshold, int)
            or self.parallel_threshold < 0
        ):
            raise ConfigError(
                f"parallel_threshold must be an integer >= 0, got {self.parallel_threshold!r}"
            )

    def to_dict(self) -> dict:
        return {
            "tolerance": self.tolerance,
            "min_leaf_size": self.min_leaf_size,
            "metric": self.metric.value,
            "workers": self.workers,
            "parallel_threshold": self.parallel_threshold,
        }
