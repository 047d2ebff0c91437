"""Quadtree nodes.

A node is either a :class:`Leaf` holding one colour for its whole region or
an :class:`Internal` node owning exactly four children ordered NW, NE, SW, SE.
Both are frozen dataclasses, so two trees compare equal iff they have the same
shape, regions and leaf colours.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

from .buffer import Color
from .region import Region


@dataclass(frozen=True)
class Leaf:
    region: Region
    color: Color

    def __post_init__(self):
        object.__setattr__(self, "color", tuple(int(c) for c in self.color))


@dataclass(frozen=True)
class Internal:
    region: Region
    children: Tuple["QuadNode", "QuadNode", "QuadNode", "QuadNode"]

    def __post_init__(self):
        children = tuple(self.children)
        if len(children) != 4:
            raise ValueError(f"Internal node needs 4 children, got {len(children)}")
        object.__setattr__(self, "children", children)


QuadNode = Union[Leaf, Internal]


def iter_nodes(root: QuadNode) -> Iterator[QuadNode]:
    """Pre-order traversal (node, then NW, NE, SW, SE subtrees)."""
    stack: List[QuadNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Internal):
            stack.extend(reversed(node.children))


def iter_leaves(root: QuadNode) -> Iterator[Leaf]:
    for node in iter_nodes(root):
        if isinstance(node, Leaf):
            yield node


def count_nodes(root: QuadNode) -> int:
    return sum(1 for _ in iter_nodes(root))


def tree_depth(root: QuadNode) -> int:
    """Number of edges on the longest root-to-leaf path (a lone leaf is 0)."""
    deepest = 0
    stack: List[Tuple[QuadNode, int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, Internal):
            stack.extend((child, depth + 1) for child in node.children)
        else:
            deepest = max(deepest, depth)
    return deepest


def channel_count(root: QuadNode) -> int:
    """Channel count of the leaf colours (taken from the first leaf)."""
    return len(next(iter_leaves(root)).color)


@dataclass
class TreeStats:
    """Summary numbers for a built or decoded tree."""

    width: int = 0
    height: int = 0
    node_count: int = 0
    leaf_count: int = 0
    internal_count: int = 0
    depth: int = 0
    forced_leaves: int = 0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def leaf_ratio(self) -> float:
        """Leaves per pixel; 1.0 means no merging happened at all."""
        if not self.pixel_count:
            return 0.0
        return self.leaf_count / self.pixel_count

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "node_count": self.node_count,
            "leaf_count": self.leaf_count,
            "internal_count": self.internal_count,
            "depth": self.depth,
            "forced_leaves": self.forced_leaves,
            "leaf_ratio": round(self.leaf_ratio, 6),
        }


def summarize(root: QuadNode) -> TreeStats:
    stats = TreeStats(width=root.region.width, height=root.region.height)
    for node in iter_nodes(root):
        stats.node_count += 1
        if isinstance(node, Internal):
            stats.internal_count += 1
            continue
        stats.leaf_count += 1
    stats.depth = tree_depth(root)
    return stats
