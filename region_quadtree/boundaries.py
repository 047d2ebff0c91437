"""Subdivision line segments for drawing a quadtree over its image."""

from __future__ import annotations

from typing import Iterator, List, NamedTuple, Tuple

from .node import Internal, QuadNode, iter_nodes

Point = Tuple[int, int]


class Segment(NamedTuple):
    """Axis-aligned segment in pixel-edge coordinates.

    Edge coordinates run from 0 to the image width/height inclusive, so a
    segment along the right border of a W-wide image has ``x == W``.
    """

    start: Point
    end: Point

    @property
    def is_horizontal(self) -> bool:
        return self.start[1] == self.end[1]

    @property
    def length(self) -> int:
        return abs(self.end[0] - self.start[0]) + abs(self.end[1] - self.start[1])


def node_lines(node: Internal) -> Tuple[Segment, Segment]:
    """Horizontal then vertical cut through an internal node's split point."""
    region = node.region
    mx, my = region.split_point
    horizontal = Segment((region.x, my), (region.right, my))
    vertical = Segment((mx, region.y), (mx, region.bottom))
    return horizontal, vertical


def iter_lines(root: QuadNode) -> Iterator[Segment]:
    """Yield the cut lines of every internal node in pre-order."""
    for node in iter_nodes(root):
        if isinstance(node, Internal):
            yield from node_lines(node)


def extract_lines(root: QuadNode) -> List[Segment]:
    """All subdivision segments of ``root``, two per internal node, pre-order."""
    return list(iter_lines(root))
