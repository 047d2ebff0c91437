"""Tests for the Pillow decode/encode boundary."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from region_quadtree import InvalidInput
from region_quadtree.imaging import load_pixel_buffer, save_image


class TestLoadPixelBuffer:
    def test_rgb_png(self, tmp_path):
        pixels = np.random.RandomState(1).randint(0, 256, (6, 9, 3), dtype=np.uint8)
        path = tmp_path / "rgb.png"
        Image.fromarray(pixels).save(path)
        buf = load_pixel_buffer(path)
        assert (buf.width, buf.height, buf.channels) == (9, 6, 3)
        np.testing.assert_array_equal(buf.pixels, pixels)

    def test_grayscale_kept(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.new("L", (4, 3), 128).save(path)
        buf = load_pixel_buffer(path)
        assert buf.channels == 1
        assert buf.pixel(0, 0) == (128,)

    def test_palette_converted_to_rgb(self, tmp_path):
        path = tmp_path / "palette.png"
        Image.new("RGB", (5, 5), (10, 20, 30)).convert("P").save(path)
        buf = load_pixel_buffer(path)
        assert buf.channels == 3

    def test_forced_mode(self, tmp_path):
        path = tmp_path / "rgb.png"
        Image.new("RGB", (2, 2), (0, 0, 0)).save(path)
        assert load_pixel_buffer(path, mode="RGBA").channels == 4
        with pytest.raises(InvalidInput):
            load_pixel_buffer(path, mode="CMYK")

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInput):
            load_pixel_buffer(tmp_path / "nope.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "junk.png"
        path.write_bytes(b"definitely not a png")
        with pytest.raises(InvalidInput):
            load_pixel_buffer(path)


def test_save_image_squeezes_single_channel(tmp_path):
    out = save_image(np.zeros((3, 4, 1), dtype=np.uint8), tmp_path / "gray.png")
    with Image.open(out) as image:
        assert image.mode == "L"
        assert image.size == (4, 3)
