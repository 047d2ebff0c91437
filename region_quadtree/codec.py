"""Binary serialization of region quadtrees.

File layout (big-endian)::

    header   magic "RQT" | version u8 | width u32 | height u32
             | tolerance f64 | min_leaf_size u32 | channels u8 | metric u8
    body     pre-order node stream
               0x00 <channels colour bytes>     leaf
               0x01 <NW> <NE> <SW> <SE>         internal

Regions are not stored.  The decoder rebuilds them from the header's image
extent and the quartering policy pinned by the format version, which is also
how it detects a node stream that does not fit the image.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from .buffer import SUPPORTED_CHANNELS
from .config import (
    DEFAULT_MIN_LEAF_SIZE,
    DEFAULT_TOLERANCE,
    MAX_DIMENSION,
    Metric,
    validate_min_leaf_size,
    validate_tolerance,
)
from .errors import CorruptData, InvalidInput
from .node import Internal, Leaf, QuadNode, channel_count
from .region import QUARTERING_POLICY_VERSION, Region

logger = logging.getLogger(__name__)

MAGIC = b"RQT"
FORMAT_VERSION = 1
# format version -> quartering policy version used to lay out regions
SUPPORTED_VERSIONS = {1: QUARTERING_POLICY_VERSION}

HEADER_FORMAT = ">3sBIIdIBB"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

TAG_LEAF = 0
TAG_INTERNAL = 1


@dataclass(frozen=True)
class QuadtreeHeader:
    """Metadata stored ahead of the node stream."""

    width: int
    height: int
    tolerance: float = DEFAULT_TOLERANCE
    min_leaf_size: int = DEFAULT_MIN_LEAF_SIZE
    channels: int = 3
    metric: Metric = Metric.MAX_DISTANCE
    version: int = FORMAT_VERSION

    def __post_init__(self):
        object.__setattr__(self, "metric", Metric.parse(self.metric))

    @classmethod
    def for_tree(
        cls,
        root: QuadNode,
        tolerance: float = DEFAULT_TOLERANCE,
        min_leaf_size: int = DEFAULT_MIN_LEAF_SIZE,
        metric: Union[Metric, str] = Metric.MAX_DISTANCE,
    ) -> "QuadtreeHeader":
        """Header describing ``root`` built with the given parameters."""
        return cls(
            width=root.region.width,
            height=root.region.height,
            tolerance=validate_tolerance(tolerance),
            min_leaf_size=validate_min_leaf_size(min_leaf_size),
            channels=channel_count(root),
            metric=Metric.parse(metric),
        )

    @property
    def region(self) -> Region:
        return Region(0, 0, self.width, self.height)

    def pack(self) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            MAGIC,
            self.version,
            self.width,
            self.height,
            self.tolerance,
            self.min_leaf_size,
            self.channels,
            self.metric.code,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "QuadtreeHeader":
        if len(data) < HEADER_SIZE:
            raise CorruptData(f"Truncated header: {len(data)} of {HEADER_SIZE} bytes")
        magic, version, width, height, tolerance, min_leaf_size, channels, metric_code = (
            struct.unpack_from(HEADER_FORMAT, data)
        )
        if magic != MAGIC:
            raise CorruptData(f"Bad magic {magic!r}, not a quadtree file")
        if version not in SUPPORTED_VERSIONS:
            raise CorruptData(f"Unsupported format version {version}")
        if width == 0 or height == 0:
            raise CorruptData(f"Header describes an empty {width}x{height} image")
        if channels not in SUPPORTED_CHANNELS:
            raise CorruptData(f"Unsupported channel count {channels}")
        if min_leaf_size < 1:
            raise CorruptData("Header min_leaf_size must be >= 1")
        if not math.isfinite(tolerance) or tolerance < 0:
            raise CorruptData(f"Header tolerance {tolerance!r} is invalid")
        try:
            metric = Metric.from_code(metric_code)
        except ValueError as exc:
            raise CorruptData(str(exc)) from exc
        return cls(
            width=width,
            height=height,
            tolerance=tolerance,
            min_leaf_size=min_leaf_size,
            channels=channels,
            metric=metric,
            version=version,
        )


def _check_header(header: QuadtreeHeader) -> None:
    if header.version not in SUPPORTED_VERSIONS:
        raise InvalidInput(f"Cannot encode format version {header.version}")
    if not (0 < header.width <= MAX_DIMENSION and 0 < header.height <= MAX_DIMENSION):
        raise InvalidInput(f"Header size {header.width}x{header.height} out of range")
    if header.channels not in SUPPORTED_CHANNELS:
        raise InvalidInput(f"Unsupported channel count {header.channels}")
    if not 1 <= header.min_leaf_size <= MAX_DIMENSION:
        raise InvalidInput(f"Header min_leaf_size out of range: {header.min_leaf_size}")
    if not math.isfinite(header.tolerance) or header.tolerance < 0:
        raise InvalidInput(f"Header tolerance {header.tolerance!r} is invalid")


def encode(root: QuadNode, header: QuadtreeHeader) -> bytes:
    """Serialize ``root`` behind ``header``.

    Raises:
        InvalidInput: the tree does not match the header (extent, channel
            count) or does not follow the quartering policy.
    """
    _check_header(header)
    if root.region != header.region:
        raise InvalidInput(
            f"Root region {root.region} does not match header extent "
            f"{header.width}x{header.height}"
        )

    out = bytearray(header.pack())
    stack: List[Tuple[QuadNode, Region]] = [(root, header.region)]
    while stack:
        node, expected = stack.pop()
        if node.region != expected:
            raise InvalidInput(f"Node region {node.region} breaks the quartering policy")
        if isinstance(node, Leaf):
            if len(node.color) != header.channels:
                raise InvalidInput(
                    f"Leaf colour {node.color} has {len(node.color)} channels, "
                    f"header says {header.channels}"
                )
            if any(c < 0 or c > 255 for c in node.color):
                raise InvalidInput(f"Leaf colour {node.color} is not 8-bit")
            out.append(TAG_LEAF)
            out.extend(bytes(node.color))
        elif isinstance(node, Internal):
            if not expected.is_splittable(header.min_leaf_size):
                raise InvalidInput(
                    f"Internal node at {expected} is below min_leaf_size {header.min_leaf_size}"
                )
            out.append(TAG_INTERNAL)
            stack.extend(reversed(list(zip(node.children, expected.quarter()))))
        else:
            raise InvalidInput(f"Not a quadtree node: {type(node).__name__}")
    return bytes(out)


class _NodeReader:
    """Cursor over the node stream that rebuilds regions while reading."""

    def __init__(self, data: bytes, header: QuadtreeHeader):
        self.data = data
        self.pos = HEADER_SIZE
        self.header = header

    def _take(self, count: int) -> bytes:
        end = self.pos + count
        if end > len(self.data):
            raise CorruptData(
                f"Truncated node stream at byte {self.pos} (needed {count}, "
                f"{len(self.data) - self.pos} left)"
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def read_node(self, region: Region) -> QuadNode:
        tag = self._take(1)[0]
        if tag == TAG_LEAF:
            return Leaf(region, tuple(self._take(self.header.channels)))
        if tag == TAG_INTERNAL:
            if not region.is_splittable(self.header.min_leaf_size):
                raise CorruptData(
                    f"Internal node at {region} cannot exist for a "
                    f"{self.header.width}x{self.header.height} image "
                    f"with min_leaf_size {self.header.min_leaf_size}"
                )
            children = tuple(self.read_node(child) for child in region.quarter())
            return Internal(region, children)
        raise CorruptData(f"Unknown node tag 0x{tag:02x} at byte {self.pos - 1}")


def decode(data: bytes) -> Tuple[QuadNode, QuadtreeHeader]:
    """Rebuild a tree and its header from :func:`encode` output.

    Raises:
        CorruptData: on truncated input, unknown tags, or a node stream that
            does not fit the header's image extent.
    """
    data = bytes(data)
    header = QuadtreeHeader.unpack(data)
    reader = _NodeReader(data, header)
    root = reader.read_node(header.region)
    if reader.pos != len(data):
        raise CorruptData(f"{len(data) - reader.pos} trailing byte(s) after the node stream")
    return root, header


def write_tree(path: Union[str, Path], root: QuadNode, header: QuadtreeHeader) -> Path:
    """Encode ``root`` and write it to ``path``.  Returns the path."""
    path = Path(path)
    payload = encode(root, header)
    path.write_bytes(payload)
    logger.info("Quadtree saved: %s (%d bytes)", path, len(payload))
    return path


def read_tree(path: Union[str, Path]) -> Tuple[QuadNode, QuadtreeHeader]:
    path = Path(path)
    root, header = decode(path.read_bytes())
    logger.debug("Quadtree loaded: %s (%dx%d)", path, header.width, header.height)
    return root, header
