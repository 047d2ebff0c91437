"""Tests for subdivision line extraction and the rendering helpers."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from region_quadtree import PixelBuffer, Segment, build_quadtree, extract_lines, iter_lines
from region_quadtree.node import Internal, iter_nodes
from region_quadtree.render import (
    LINE_COLOR,
    plot_boundaries,
    reconstruct_image,
    render_boundary_overlay,
    render_comparison,
    save_overlay,
)


def _left_right(width: int = 4, height: int = 4) -> np.ndarray:
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, width // 2:] = 255
    return pixels


def _noise(width: int, height: int, channels: int = 3, seed: int = 42) -> np.ndarray:
    rng = np.random.RandomState(seed)
    return rng.randint(0, 256, (height, width, channels), dtype=np.uint8)


# ---------------------------------------------------------------------------
# Tests: Boundary extraction
# ---------------------------------------------------------------------------


class TestExtractLines:
    def test_leaf_emits_nothing(self):
        root = build_quadtree(np.full((4, 4, 3), 9, dtype=np.uint8))
        assert extract_lines(root) == []

    def test_left_right_cut(self):
        lines = extract_lines(build_quadtree(_left_right()))
        assert lines == [Segment((0, 2), (4, 2)), Segment((2, 0), (2, 4))]
        assert lines[0].is_horizontal and not lines[1].is_horizontal
        assert lines[0].length == 4

    def test_preorder(self):
        pixels = np.zeros((4, 4), dtype=np.uint8)
        pixels[0, 0] = 255
        pixels[3, 3] = 255
        lines = extract_lines(build_quadtree(pixels))
        assert lines == [
            Segment((0, 2), (4, 2)), Segment((2, 0), (2, 4)),  # root
            Segment((0, 1), (2, 1)), Segment((1, 0), (1, 2)),  # NW
            Segment((2, 3), (4, 3)), Segment((3, 2), (3, 4)),  # SE
        ]

    def test_odd_split_point(self):
        root = build_quadtree(_noise(5, 3))
        assert extract_lines(root)[:2] == [Segment((0, 2), (5, 2)), Segment((3, 0), (3, 3))]

    @pytest.mark.parametrize("width,height", [(1, 1), (3, 7), (16, 16), (21, 13), (50, 2)])
    def test_segments_stay_inside_image(self, width, height):
        root = build_quadtree(_noise(width, height), tolerance=30)
        for (x0, y0), (x1, y1) in extract_lines(root):
            assert 0 <= x0 <= x1 <= width
            assert 0 <= y0 <= y1 <= height

    def test_two_segments_per_internal_node(self):
        root = build_quadtree(_noise(19, 23), tolerance=50)
        internal = sum(1 for node in iter_nodes(root) if isinstance(node, Internal))
        assert len(extract_lines(root)) == 2 * internal

    def test_restartable_and_stable(self):
        root = build_quadtree(_noise(12, 12), tolerance=40)
        first = extract_lines(root)
        assert extract_lines(root) == first
        assert list(iter_lines(root)) == first
        assert list(iter_lines(root)) == first


# ---------------------------------------------------------------------------
# Tests: Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_reconstruct_lossless_tree(self):
        pixels = _noise(8, 8, channels=4)
        np.testing.assert_array_equal(reconstruct_image(build_quadtree(pixels)), pixels)

    def test_reconstruct_uses_leaf_colors(self):
        pixels = _noise(6, 6)
        image = reconstruct_image(build_quadtree(pixels, tolerance=1000))
        assert image.shape == (6, 6, 3)
        assert len(np.unique(image.reshape(-1, 3), axis=0)) == 1

    def test_overlay_draws_cut_lines(self):
        pixels = _left_right()
        root = build_quadtree(pixels)
        overlay = render_boundary_overlay(pixels, extract_lines(root))
        assert overlay.shape == (4, 4, 3)
        assert tuple(overlay[2, 0]) == LINE_COLOR
        assert tuple(overlay[0, 2]) == LINE_COLOR
        assert tuple(overlay[0, 0]) == (0, 0, 0)
        assert tuple(overlay[3, 3]) == (255, 255, 255)
        # source untouched
        assert tuple(pixels[2, 0]) == (0, 0, 0)

    def test_overlay_grayscale_and_rgba(self):
        gray = PixelBuffer.from_array(np.zeros((5, 5), dtype=np.uint8))
        assert render_boundary_overlay(gray, []).shape == (5, 5, 3)
        rgba = _noise(5, 5, channels=4)
        assert render_boundary_overlay(rgba, [Segment((0, 5), (5, 5))]).shape == (5, 5, 3)

    def test_comparison_panel(self):
        buf = PixelBuffer.from_array(_noise(8, 6))
        root = build_quadtree(buf, tolerance=60)
        panel = render_comparison(buf, root)
        assert panel.shape == (6, 8 * 3 + 6, 3)
        scaled = render_comparison(buf, root, scale=4)
        assert scaled.shape == (24, 32 * 3 + 6, 3)

    def test_save_overlay(self, tmp_path):
        buf = PixelBuffer.from_array(_noise(16, 10))
        root = build_quadtree(buf, tolerance=80)
        out = save_overlay(buf, root, tmp_path / "overlay.png")
        assert out.exists()
        assert Image.open(out).size == (16, 10)

    def test_plot_boundaries(self, tmp_path):
        pixels = _left_right(8, 8)
        root = build_quadtree(pixels)
        out = plot_boundaries(pixels, extract_lines(root), save_path=tmp_path / "plot.png")
        assert out.exists()
