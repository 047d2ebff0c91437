"""Region homogeneity tests and representative colours."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np

from .buffer import Color, PixelBuffer
from .config import Metric, validate_tolerance
from .errors import InvalidInput
from .region import Region


def color_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """Largest absolute per-channel difference between two colours."""
    if len(a) != len(b):
        raise InvalidInput(f"Colour channel mismatch: {len(a)} vs {len(b)}")
    return max(abs(int(ca) - int(cb)) for ca, cb in zip(a, b))


def mean_color(pixels: np.ndarray) -> Color:
    """Per-channel mean of ``pixels`` rounded half-up to integers."""
    samples = pixels.reshape(-1, pixels.shape[-1]).astype(np.float64)
    if samples.shape[0] == 0:
        raise InvalidInput("Cannot average an empty region")
    mean = samples.mean(axis=0)
    return tuple(int(v) for v in np.floor(mean + 0.5))


def assess_block(
    block: np.ndarray,
    tolerance: float,
    metric: Metric = Metric.MAX_DISTANCE,
) -> Tuple[bool, Color]:
    """Homogeneity test on an already sliced ``h x w x C`` block.

    No argument validation; the builder calls this once per visited region.
    """
    representative = mean_color(block)
    samples = block.reshape(-1, block.shape[-1])
    if metric is Metric.VARIANCE:
        spread = float(samples.astype(np.float64).var(axis=0).max())
    else:
        deltas = samples.astype(np.int16) - np.asarray(representative, dtype=np.int16)
        spread = float(np.abs(deltas).max())
    return spread <= tolerance, representative


def is_homogeneous(
    region: Region,
    buffer: PixelBuffer,
    tolerance: float,
    metric: Union[Metric, str] = Metric.MAX_DISTANCE,
) -> Tuple[bool, Color]:
    """Decide whether ``region`` of ``buffer`` is a single colour within tolerance.

    Args:
        region: Area to test; must lie inside the buffer.
        buffer: Source pixels.
        tolerance: ``MAX_DISTANCE`` compares the Chebyshev distance of every
            pixel to the mean colour against it; ``VARIANCE`` compares the
            largest per-channel variance.
        metric: Which of the two tests to apply.

    Returns:
        ``(homogeneous, representative)`` where ``representative`` is the
        rounded mean colour.  The colour is returned even when the region is
        not homogeneous so callers can force a leaf.
    """
    tolerance = validate_tolerance(tolerance)
    metric = Metric.parse(metric)
    if region.width <= 0 or region.height <= 0:
        raise InvalidInput(f"Region must have a positive extent: {region}")
    return assess_block(buffer.view(region), tolerance, metric)
