"""
Smoke tests for the command line interface.

The goal is to exercise build -> decode -> stats on a tiny synthetic sprite
so regressions in wiring or filesystem layout are caught early.
"""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np
from PIL import Image

from region_quadtree.cli import main as cli_main
from region_quadtree.codec import read_tree


def _save_checkerboard(path: Path, size: int = 32, block: int = 4) -> None:
    """Create a simple RGBA checkerboard sprite for testing."""
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    colors = [
        (32, 48, 112, 255),
        (240, 200, 96, 255),
        (20, 20, 24, 255),
        (220, 80, 92, 255),
    ]
    for y in range(size):
        for x in range(size):
            idx = ((x // block) + (y // block)) % len(colors)
            pixels[y, x] = colors[idx]
    image = Image.fromarray(pixels)
    image.save(path)


def test_cli_smoke(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    input_dir.mkdir()

    source = input_dir / "sample.png"
    _save_checkerboard(source)

    exit_code = cli_main(
        [
            "build",
            str(source),
            "--output",
            str(output_dir),
            "--overlay",
        ]
    )
    assert exit_code == 0

    tree_path = output_dir / "sample.rqt"
    overlay = output_dir / "sample_quadtree.png"
    stats_path = output_dir / "stats.csv"

    assert tree_path.exists(), "CLI did not write the quadtree file"
    assert overlay.exists(), "CLI did not emit the subdivision overlay"
    assert stats_path.exists(), "CLI did not persist stats CSV"

    with stats_path.open(newline="") as handle:
        rows = list(csv.DictReader(handle))

    assert rows, "stats.csv is empty"
    assert rows[0]["image"] == "sample.png"
    assert rows[0]["tree_path"].endswith("sample.rqt")
    assert int(rows[0]["encoded_bytes"]) < int(rows[0]["raw_bytes"])

    # 4px blocks on a 32px power-of-two canvas: every block is one leaf
    root, header = read_tree(tree_path)
    assert (header.width, header.height, header.channels) == (32, 32, 4)
    assert int(rows[0]["leaf_count"]) == 64

    decoded = tmp_path / "decoded.png"
    assert cli_main(["decode", str(tree_path), "-o", str(decoded)]) == 0
    np.testing.assert_array_equal(np.array(Image.open(decoded)), np.array(Image.open(source)))

    assert cli_main(["stats", str(tree_path)]) == 0


def test_cli_overlay_panel(tmp_path):
    source = tmp_path / "sample.png"
    _save_checkerboard(source, size=16)
    out = tmp_path / "panel.png"
    assert cli_main(["overlay", str(source), "-o", str(out), "--panel", "--scale", "2"]) == 0
    assert Image.open(out).size == (16 * 2 * 3 + 6, 32)


def test_cli_reports_missing_inputs(tmp_path):
    assert cli_main(["build", str(tmp_path / "missing"), "-o", str(tmp_path / "out")]) == 1


def test_cli_rejects_bad_config(tmp_path):
    source = tmp_path / "sample.png"
    _save_checkerboard(source, size=8)
    code = cli_main(["build", str(source), "-o", str(tmp_path / "out"), "--min-leaf-size", "0"])
    assert code == 2


def test_cli_stats_on_corrupt_file(tmp_path):
    bogus = tmp_path / "bogus.rqt"
    bogus.write_bytes(b"not a quadtree")
    assert cli_main(["stats", str(bogus)]) == 1


def test_cli_decode_reports_unsavable_output(tmp_path):
    source = tmp_path / "sample.png"
    _save_checkerboard(source, size=8)
    out_dir = tmp_path / "out"
    assert cli_main(["build", str(source), "-o", str(out_dir)]) == 0

    bad_output = tmp_path / "decoded.notanext"
    assert cli_main(["decode", str(out_dir / "sample.rqt"), "-o", str(bad_output)]) == 1
    assert not bad_output.exists()


def test_cli_overlay_reports_unsavable_output(tmp_path):
    source = tmp_path / "sample.png"
    _save_checkerboard(source, size=8)
    assert cli_main(["overlay", str(source), "-o", str(tmp_path / "x.notanext")]) == 1
    assert cli_main(
        ["overlay", str(source), "-o", str(tmp_path / "panel.notanext"), "--panel"]
    ) == 1
