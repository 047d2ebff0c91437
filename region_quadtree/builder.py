"""
Recursive region quadtree construction.

A region is tested with the configured homogeneity metric; homogeneous
regions, and regions whose width or height has reached ``min_leaf_size``,
become leaves carrying the region's mean colour.  Everything else is quartered
(NW, NE, SW, SE, west/north halves take the odd row/column) and built
recursively.

Leaves forced at the minimum size are lossy by construction: the mean colour
stands in for pixels that were not within tolerance of each other.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .buffer import PixelBuffer
from .config import (
    DEFAULT_MIN_LEAF_SIZE,
    DEFAULT_TOLERANCE,
    MAX_DIMENSION,
    BuildConfig,
    Metric,
)
from .errors import InvalidInput
from .metric import assess_block
from .node import Internal, Leaf, QuadNode, TreeStats, summarize
from .region import Region

logger = logging.getLogger(__name__)


@dataclass
class _Counters:
    regions: int = 0
    forced_leaves: int = 0

    def merge(self, other: "_Counters") -> None:
        self.regions += other.regions
        self.forced_leaves += other.forced_leaves


def _coerce_buffer(buffer: Union[PixelBuffer, np.ndarray]) -> PixelBuffer:
    if isinstance(buffer, PixelBuffer):
        return buffer
    if isinstance(buffer, np.ndarray):
        return PixelBuffer.from_array(buffer)
    raise InvalidInput(f"Expected a PixelBuffer or numpy array, got {type(buffer).__name__}")


class QuadtreeBuilder:
    """Builds :class:`~region_quadtree.node.QuadNode` trees from pixel buffers.

    The builder itself is stateless between builds apart from
    ``last_stats``, which summarises the most recent tree.
    """

    def __init__(self, config: Optional[BuildConfig] = None, debug: bool = False):
        self.config = config or BuildConfig()
        self.debug = debug
        self.last_stats: Optional[TreeStats] = None

    def build(self, buffer: Union[PixelBuffer, np.ndarray]) -> QuadNode:
        """Build the tree for ``buffer`` and return its root."""
        buffer = _coerce_buffer(buffer)
        if buffer.is_empty():
            raise InvalidInput(
                f"Cannot build a quadtree for an empty {buffer.width}x{buffer.height} buffer"
            )
        if buffer.width > MAX_DIMENSION or buffer.height > MAX_DIMENSION:
            raise InvalidInput(f"Buffer {buffer.width}x{buffer.height} exceeds 32-bit extents")

        cfg = self.config
        logger.debug(
            "Building quadtree for %dx%d buffer (tolerance=%s, min_leaf_size=%d, metric=%s)",
            buffer.width, buffer.height, cfg.tolerance, cfg.min_leaf_size, cfg.metric.value,
        )

        counters = _Counters()
        root_region = buffer.region
        if cfg.workers > 1 and root_region.area >= cfg.parallel_threshold:
            root = self._build_parallel(buffer, root_region, counters)
        else:
            root = self._build(buffer, root_region, counters)

        stats = summarize(root)
        stats.forced_leaves = counters.forced_leaves
        self.last_stats = stats
        logger.debug(
            "Quadtree built: %d nodes, %d leaves (%d forced), depth %d",
            stats.node_count, stats.leaf_count, stats.forced_leaves, stats.depth,
        )
        return root

    # ------------------------- recursion ---------------------------

    def _build(self, buffer: PixelBuffer, region: Region, counters: _Counters) -> QuadNode:
        counters.regions += 1
        cfg = self.config
        homogeneous, color = assess_block(buffer.view(region), cfg.tolerance, cfg.metric)
        if homogeneous:
            return Leaf(region, color)
        if not region.is_splittable(cfg.min_leaf_size):
            counters.forced_leaves += 1
            if self.debug:
                logger.debug("Forced leaf at %s", region)
            return Leaf(region, color)
        children = tuple(self._build(buffer, child, counters) for child in region.quarter())
        return Internal(region, children)

    def _build_subtree(self, buffer: PixelBuffer, region: Region):
        counters = _Counters()
        node = self._build(buffer, region, counters)
        return node, counters

    def _build_parallel(
        self, buffer: PixelBuffer, region: Region, counters: _Counters
    ) -> QuadNode:
        """Fork the four root quadrants onto a thread pool and join them.

        Sibling quadrants are disjoint and the buffer is read-only, so the
        subtrees need no coordination beyond the final join.
        """
        counters.regions += 1
        cfg = self.config
        homogeneous, color = assess_block(buffer.view(region), cfg.tolerance, cfg.metric)
        if homogeneous:
            return Leaf(region, color)
        if not region.is_splittable(cfg.min_leaf_size):
            counters.forced_leaves += 1
            return Leaf(region, color)

        quadrants = region.quarter()
        logger.debug("Forking %d quadrant builds across %d workers", len(quadrants), cfg.workers)
        with ThreadPoolExecutor(max_workers=min(cfg.workers, len(quadrants))) as pool:
            futures = [pool.submit(self._build_subtree, buffer, child) for child in quadrants]
            results = [future.result() for future in futures]

        children = []
        for node, child_counters in results:
            counters.merge(child_counters)
            children.append(node)
        return Internal(region, tuple(children))


def build_quadtree(
    buffer: Union[PixelBuffer, np.ndarray],
    tolerance: float = DEFAULT_TOLERANCE,
    min_leaf_size: int = DEFAULT_MIN_LEAF_SIZE,
    metric: Union[Metric, str] = Metric.MAX_DISTANCE,
    workers: int = 1,
) -> QuadNode:
    """Build a region quadtree for ``buffer``.

    Raises:
        InvalidInput: the buffer has zero width or height or is malformed.
        ConfigError: ``tolerance`` is negative or ``min_leaf_size`` < 1.
    """
    config = BuildConfig(
        tolerance=tolerance,
        min_leaf_size=min_leaf_size,
        metric=metric,
        workers=workers,
    )
    return QuadtreeBuilder(config).build(buffer)
