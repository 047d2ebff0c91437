"""Visual output for region quadtrees.

Generates inspection-friendly images:
  - The raster a tree encodes (every leaf filled with its colour)
  - The source image with the subdivision lines drawn over it
  - Side-by-side comparison: source | overlay | reconstruction
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .boundaries import Segment, extract_lines
from .buffer import PixelBuffer
from .node import QuadNode, channel_count, iter_leaves

logger = logging.getLogger(__name__)

# Line colour (red) used for subdivision overlays
LINE_COLOR = (255, 0, 0)


def reconstruct_image(root: QuadNode) -> np.ndarray:
    """Fill every leaf region with its colour.

    Returns:
        ``H x W x C`` uint8 array covering the root region.
    """
    region = root.region
    canvas = np.zeros((region.height, region.width, channel_count(root)), dtype=np.uint8)
    for leaf in iter_leaves(root):
        rows, cols = leaf.region.as_slices()
        canvas[rows, cols] = leaf.color
    return canvas


def _to_rgb(pixels: np.ndarray) -> np.ndarray:
    """Drop to a writable RGB copy; alpha is composited on light grey."""
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]
    channels = pixels.shape[2]
    if channels == 1:
        return cv2.cvtColor(np.ascontiguousarray(pixels[:, :, 0]), cv2.COLOR_GRAY2RGB)
    if channels == 4:
        alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
        rgb = pixels[:, :, :3].astype(np.float32)
        bg = np.full_like(rgb, 220.0)
        return (rgb * alpha + bg * (1 - alpha)).astype(np.uint8)
    return np.ascontiguousarray(pixels[:, :, :3]).copy()


def render_boundary_overlay(
    image: Union[np.ndarray, PixelBuffer],
    segments: Iterable[Segment],
    line_color: Tuple[int, int, int] = LINE_COLOR,
    line_width: int = 1,
) -> np.ndarray:
    """Draw subdivision segments over a copy of ``image``.

    Segment coordinates sit on pixel edges; lines on the far right/bottom edge
    are clamped onto the last column/row so they stay visible.

    Returns:
        RGB numpy array of the overlay.
    """
    pixels = image.pixels if isinstance(image, PixelBuffer) else np.asarray(image)
    overlay = _to_rgb(pixels)
    h, w = overlay.shape[:2]
    color = tuple(int(c) for c in line_color)

    for (x0, y0), (x1, y1) in segments:
        start = (min(x0, w - 1), min(y0, h - 1))
        end = (min(x1, w - 1), min(y1, h - 1))
        cv2.line(overlay, start, end, color, line_width)

    return overlay


def render_comparison(
    buffer: PixelBuffer,
    root: QuadNode,
    scale: int = 1,
) -> np.ndarray:
    """Source | source with subdivision lines | reconstruction, side by side."""
    source = _to_rgb(buffer.pixels)
    overlay = render_boundary_overlay(buffer, extract_lines(root))
    reconstruction = _to_rgb(reconstruct_image(root))

    panels = [source, overlay, reconstruction]
    if scale > 1:
        h, w = source.shape[:2]
        panels = [
            cv2.resize(p, (w * scale, h * scale), interpolation=cv2.INTER_NEAREST)
            for p in panels
        ]

    # Thin separator columns
    sep = np.full((panels[0].shape[0], 3, 3), 128, dtype=np.uint8)
    return np.hstack([panels[0], sep, panels[1], sep, panels[2]])


def save_overlay(
    buffer: PixelBuffer,
    root: QuadNode,
    output_path: Union[str, Path],
    line_color: Tuple[int, int, int] = LINE_COLOR,
) -> Path:
    """Render and save the subdivision overlay for ``root``.

    Returns the output path.
    """
    output_path = Path(output_path)
    overlay = render_boundary_overlay(buffer, extract_lines(root), line_color=line_color)
    Image.fromarray(overlay).save(output_path)
    logger.info("Overlay saved: %s", output_path)
    return output_path


def plot_boundaries(
    image: Union[np.ndarray, PixelBuffer],
    segments: Sequence[Segment],
    save_path: Optional[Union[str, Path]] = None,
    title: str = "Region quadtree",
):
    """
    Plot the image with its subdivision lines using matplotlib.

    When ``save_path`` is given the figure is written there and closed;
    otherwise it is shown interactively.
    """
    import matplotlib
    if save_path:
        try:
            matplotlib.use("Agg")
        except Exception:
            # Backend may already be initialised; keep whatever is active
            pass
    import matplotlib.pyplot as plt

    pixels = image.pixels if isinstance(image, PixelBuffer) else np.asarray(image)
    rgb = _to_rgb(pixels)
    h, w = rgb.shape[:2]

    fig, ax = plt.subplots(figsize=(6, 6 * h / max(w, 1)))
    # extent puts pixel edges on integer coordinates, matching Segment space
    ax.imshow(rgb, extent=(0, w, h, 0), interpolation="nearest")
    for (x0, y0), (x1, y1) in segments:
        ax.plot([x0, x1], [y0, y1], color="red", linewidth=0.8)
    ax.set_xlim(0, w)
    ax.set_ylim(h, 0)
    ax.set_title(title)
    ax.set_axis_off()
    fig.tight_layout()

    if save_path:
        os.makedirs(os.path.dirname(os.path.abspath(save_path)), exist_ok=True)
        fig.savefig(save_path)
        plt.close(fig)
        return Path(save_path)
    plt.show()
    return None
