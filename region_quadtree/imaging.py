"""Image file boundary: decode files into pixel buffers and write arrays back."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import PixelBuffer
from .errors import InvalidInput

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}

# Pillow modes the buffer can hold without conversion
_NATIVE_MODES = {"L", "RGB", "RGBA"}


def _normalise_mode(image: Image.Image) -> Image.Image:
    if image.mode in _NATIVE_MODES:
        return image
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def load_pixel_buffer(path: Union[str, Path], mode: Optional[str] = None) -> PixelBuffer:
    """Decode an image file into a :class:`PixelBuffer`.

    Args:
        path: Image file to read.
        mode: Optional Pillow mode (``"L"``, ``"RGB"`` or ``"RGBA"``) to
            convert to.  By default grayscale, RGB and RGBA images are kept
            as they are and everything else becomes RGB(A).
    """
    path = Path(path)
    if mode is not None and mode not in _NATIVE_MODES:
        raise InvalidInput(f"Unsupported image mode {mode!r}")
    try:
        with Image.open(path) as image:
            image.load()
            converted = image.convert(mode) if mode else _normalise_mode(image)
            pixels = np.array(converted)
    except (FileNotFoundError, UnidentifiedImageError) as exc:
        raise InvalidInput(f"Could not load image: {path} ({exc})") from exc
    logger.debug("Loaded %s: %s %s", path.name, converted.mode, pixels.shape)
    return PixelBuffer.from_array(pixels)


def save_image(pixels: np.ndarray, path: Union[str, Path]) -> Path:
    """Write an ``H x W`` or ``H x W x C`` uint8 array with Pillow."""
    path = Path(path)
    arr = np.asarray(pixels, dtype=np.uint8)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    Image.fromarray(arr).save(path)
    return path
