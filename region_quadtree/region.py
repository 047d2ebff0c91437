"""Axis-aligned pixel regions and the quartering policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Version of the quartering rule below.  Persisted files carry it (through the
# format version) so trees can be rebuilt with the same region layout.
QUARTERING_POLICY_VERSION = 1


@dataclass(frozen=True)
class Region:
    """Rectangle of pixels with a top-left origin."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def split_point(self) -> Tuple[int, int]:
        """Pixel-edge coordinate where the region is quartered.

        The first (west/north) half receives the extra column/row when a side
        is odd.
        """
        return self.x + (self.width + 1) // 2, self.y + (self.height + 1) // 2

    def is_splittable(self, min_leaf_size: int) -> bool:
        """True if both sides are larger than ``min_leaf_size``."""
        return self.width > min_leaf_size and self.height > min_leaf_size

    def quarter(self) -> Tuple["Region", "Region", "Region", "Region"]:
        """Return the NW, NE, SW, SE sub-regions.

        Only valid for regions at least 2x2; smaller regions would produce
        empty quadrants.
        """
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Cannot quarter a {self.width}x{self.height} region")
        mx, my = self.split_point
        west = mx - self.x
        east = self.right - mx
        north = my - self.y
        south = self.bottom - my
        return (
            Region(self.x, self.y, west, north),
            Region(mx, self.y, east, north),
            Region(self.x, my, west, south),
            Region(mx, my, east, south),
        )

    def contains(self, other: "Region") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def overlaps(self, other: "Region") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def as_slices(self) -> Tuple[slice, slice]:
        """Row/column slices for indexing an ``H x W (x C)`` array."""
        return slice(self.y, self.bottom), slice(self.x, self.right)
