"""Public interface for the region quadtree toolkit."""

from __future__ import annotations

from .boundaries import Segment, extract_lines, iter_lines
from .buffer import Color, PixelBuffer
from .builder import QuadtreeBuilder, build_quadtree
from .codec import QuadtreeHeader, decode, encode, read_tree, write_tree
from .config import BuildConfig, Metric
from .errors import ConfigError, CorruptData, InvalidInput, QuadtreeError
from .metric import color_distance, is_homogeneous, mean_color
from .node import Internal, Leaf, QuadNode, TreeStats, iter_leaves, iter_nodes, summarize
from .region import Region

__all__ = [
    "BuildConfig",
    "Color",
    "ConfigError",
    "CorruptData",
    "Internal",
    "InvalidInput",
    "Leaf",
    "Metric",
    "PixelBuffer",
    "QuadNode",
    "QuadtreeBuilder",
    "QuadtreeError",
    "QuadtreeHeader",
    "Region",
    "Segment",
    "TreeStats",
    "build_quadtree",
    "color_distance",
    "decode",
    "encode",
    "extract_lines",
    "is_homogeneous",
    "iter_leaves",
    "iter_lines",
    "mean_color",
    "read_tree",
    "summarize",
    "write_tree",
]
