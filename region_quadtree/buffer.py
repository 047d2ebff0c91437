"""Decoded pixel buffers consumed by the quadtree builder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np

from .errors import InvalidInput
from .region import Region

Color = Tuple[int, ...]

SUPPORTED_CHANNELS = (1, 3, 4)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Read-only ``height x width x channels`` grid of 8-bit samples.

    Use :meth:`from_array` or :meth:`from_colors` rather than constructing
    directly; both copy the input and freeze the copy.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray) or pixels.ndim != 3:
            raise InvalidInput("Pixel buffer must be a H x W x C numpy array")
        if pixels.dtype != np.uint8:
            raise InvalidInput(f"Pixel buffer must be uint8, got {pixels.dtype}")
        if pixels.shape[2] not in SUPPORTED_CHANNELS:
            raise InvalidInput(
                f"Unsupported channel count {pixels.shape[2]} (expected 1, 3 or 4)"
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Wrap an ``H x W`` or ``H x W x C`` integer array.

        Integer arrays of other dtypes are accepted if every sample fits in
        ``0..255``.
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise InvalidInput(f"Expected a 2D or 3D array, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            if arr.dtype.kind not in "iub":
                raise InvalidInput(f"Pixel samples must be integers, got {arr.dtype}")
            if arr.size and (arr.min() < 0 or arr.max() > 255):
                raise InvalidInput("Pixel samples must lie in 0..255")
        frozen = np.ascontiguousarray(arr, dtype=np.uint8).copy()
        frozen.setflags(write=False)
        return cls(frozen)

    @classmethod
    def from_colors(
        cls, width: int, height: int, colors: Sequence[Sequence[int]]
    ) -> "PixelBuffer":
        """Build a buffer from a row-major sequence of colour tuples."""
        if width < 0 or height < 0:
            raise InvalidInput(f"Negative buffer size {width}x{height}")
        if len(colors) != width * height:
            raise InvalidInput(
                f"Expected {width * height} colours for {width}x{height}, got {len(colors)}"
            )
        if not colors:
            return cls.from_array(np.zeros((height, width, 3), dtype=np.uint8))
        channels = {len(c) for c in colors}
        if len(channels) != 1:
            raise InvalidInput("All colours must have the same number of channels")
        arr = np.array(colors, dtype=np.int64).reshape(height, width, channels.pop())
        return cls.from_array(arr)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def region(self) -> Region:
        """Full extent of the buffer."""
        return Region(0, 0, self.width, self.height)

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def view(self, region: Region) -> np.ndarray:
        """Return the (read-only) pixels covered by ``region``."""
        if not self.region.contains(region):
            raise InvalidInput(f"{region} lies outside the {self.width}x{self.height} buffer")
        rows, cols = region.as_slices()
        return self.pixels[rows, cols]

    def pixel(self, x: int, y: int) -> Color:
        return tuple(int(v) for v in self.pixels[y, x])

    def colors(self) -> Iterator[Color]:
        """Yield every pixel colour in row-major order."""
        for row in self.pixels:
            for sample in row:
                yield tuple(int(v) for v in sample)

    def to_array(self) -> np.ndarray:
        """Writable copy, ``H x W`` for grayscale and ``H x W x C`` otherwise."""
        if self.channels == 1:
            return self.pixels[:, :, 0].copy()
        return self.pixels.copy()
