#!/usr/bin/env python3
"""
Example usage of the region quadtree toolkit.

This script demonstrates how to:
1. Build a quadtree for an image
2. Plot its subdivision lines
3. Save the tree and read it back
"""

import os
import sys

import numpy as np

from region_quadtree import (
    BuildConfig,
    QuadtreeBuilder,
    QuadtreeHeader,
    extract_lines,
    read_tree,
    write_tree,
)
from region_quadtree.imaging import load_pixel_buffer
from region_quadtree.render import plot_boundaries, reconstruct_image


def demo_quadtree(image_path: str, tolerance: float = 8.0):
    """Build, plot and persist the quadtree of one image."""

    if not os.path.exists(image_path):
        print(f"Error: Image file {image_path} not found")
        return

    print(f"Analyzing image: {image_path}")
    print("=" * 50)

    buffer = load_pixel_buffer(image_path)
    print(f"Image dimensions: {buffer.width}x{buffer.height}, {buffer.channels} channel(s)")

    # 1. Build
    print("\n1. Building quadtree:")
    builder = QuadtreeBuilder(BuildConfig(tolerance=tolerance))
    root = builder.build(buffer)
    stats = builder.last_stats
    print(f"   {stats.node_count} nodes, {stats.leaf_count} leaves, depth {stats.depth}")
    print(f"   {stats.forced_leaves} leaves forced at the minimum size")

    # 2. Plot
    print("\n2. Plotting subdivisions:")
    os.makedirs("output", exist_ok=True)
    lines = extract_lines(root)
    plot_path = plot_boundaries(buffer, lines, save_path="output/quadtree_plot.png")
    print(f"   {len(lines)} segments -> {plot_path}")

    # 3. Save and reload
    print("\n3. Round trip through the binary format:")
    header = QuadtreeHeader.for_tree(root, tolerance=tolerance)
    tree_path = write_tree("output/quadtree.rqt", root, header)
    loaded, _ = read_tree(tree_path)
    print(f"   {tree_path.stat().st_size} bytes on disk "
          f"(raw pixels: {buffer.width * buffer.height * buffer.channels})")
    print(f"   Reloaded tree identical: {loaded == root}")

    error = np.abs(reconstruct_image(loaded).astype(np.int16) - buffer.pixels.astype(np.int16))
    print(f"   Max reconstruction error: {int(error.max())}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python example_usage.py <image> [tolerance]")
        sys.exit(1)
    demo_quadtree(sys.argv[1], float(sys.argv[2]) if len(sys.argv) > 2 else 8.0)
