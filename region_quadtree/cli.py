"""Command line interface for region quadtree compression.

Usage:
    python -m region_quadtree.cli build    <inputs...> -o <dir>  [--tolerance 8] [--min-leaf-size 1]
    python -m region_quadtree.cli decode   <tree.rqt> -o <image>
    python -m region_quadtree.cli overlay  <image> -o <image>  [--tolerance 8] [--panel]
    python -m region_quadtree.cli stats    <tree.rqt...>

Each subcommand corresponds to one stage:
  build    — Decode images, build their quadtrees and save them as .rqt files
  decode   — Rebuild the raster stored in a .rqt file
  overlay  — Draw the subdivision lines of an image's quadtree over it
  stats    — Report node counts, depth and sizes of saved trees
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .builder import QuadtreeBuilder
from .codec import QuadtreeHeader, read_tree, write_tree
from .config import (
    DEFAULT_MIN_LEAF_SIZE,
    DEFAULT_PARALLEL_THRESHOLD,
    DEFAULT_TOLERANCE,
    BuildConfig,
    Metric,
)
from .errors import QuadtreeError
from .imaging import IMAGE_EXTENSIONS, load_pixel_buffer, save_image
from .node import summarize
from .render import reconstruct_image, render_comparison, save_overlay

logger = logging.getLogger("region_quadtree")

TREE_SUFFIX = ".rqt"

STATS_FIELDS = [
    "image",
    "width",
    "height",
    "node_count",
    "leaf_count",
    "internal_count",
    "depth",
    "forced_leaves",
    "leaf_ratio",
    "encoded_bytes",
    "raw_bytes",
    "tree_path",
    "overlay_path",
]


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_images(inputs: List[str], recursive: bool = False) -> List[Path]:
    """Collect image paths from file/directory arguments."""
    seen = set()
    paths = []
    for inp in inputs:
        p = Path(inp)
        if p.is_file():
            if p.suffix.lower() not in IMAGE_EXTENSIONS:
                logger.warning("Skipping unsupported file: %s", p)
                continue
            candidates = [p]
        elif p.is_dir():
            iterator = p.rglob("*") if recursive else p.iterdir()
            candidates = sorted(
                c for c in iterator if c.is_file() and c.suffix.lower() in IMAGE_EXTENSIONS
            )
        else:
            logger.warning("Input path not found: %s", p)
            continue
        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                paths.append(resolved)
    return paths


def _config_from_args(args) -> BuildConfig:
    return BuildConfig(
        tolerance=args.tolerance,
        min_leaf_size=args.min_leaf_size,
        metric=args.metric,
        workers=args.workers,
        parallel_threshold=args.parallel_threshold,
    )


def _write_stats_csv(records: List[dict], path: Path) -> None:
    with path.open("w", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=STATS_FIELDS)
        writer.writeheader()
        writer.writerows(records)
    logger.info("Stats written to %s", path)


# ---- Subcommand: build ----

def _build_single(image_path: Path, output_dir: Path, builder: QuadtreeBuilder,
                  overlay: bool) -> dict:
    buffer = load_pixel_buffer(image_path)
    root = builder.build(buffer)
    cfg = builder.config
    header = QuadtreeHeader.for_tree(
        root,
        tolerance=cfg.tolerance,
        min_leaf_size=cfg.min_leaf_size,
        metric=cfg.metric,
    )
    tree_path = write_tree(output_dir / f"{image_path.stem}{TREE_SUFFIX}", root, header)

    overlay_path: Optional[Path] = None
    if overlay:
        overlay_path = save_overlay(buffer, root, output_dir / f"{image_path.stem}_quadtree.png")

    stats = builder.last_stats
    record = stats.to_dict()
    record.update(
        {
            "image": image_path.name,
            "encoded_bytes": tree_path.stat().st_size,
            "raw_bytes": buffer.width * buffer.height * buffer.channels,
            "tree_path": str(tree_path),
            "overlay_path": str(overlay_path) if overlay_path else "",
        }
    )
    return record


def cmd_build(args):
    image_paths = _gather_images(args.inputs, recursive=args.recursive)
    if not image_paths:
        logger.error("No images found in %s", args.inputs)
        return 1

    output_dir = Path(args.output).resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    builder = QuadtreeBuilder(_config_from_args(args), debug=args.debug)
    logger.info("Found %d image(s) to process -> %s", len(image_paths), output_dir)

    records = []
    for image_path in image_paths:
        try:
            record = _build_single(image_path, output_dir, builder, overlay=args.overlay)
        except (QuadtreeError, OSError) as exc:
            logger.error("Failed to process %s: %s", image_path.name, exc)
            continue
        logger.info(
            "[OK] %s: %d leaves / %d nodes, depth %d, %d -> %d bytes",
            record["image"], record["leaf_count"], record["node_count"], record["depth"],
            record["raw_bytes"], record["encoded_bytes"],
        )
        records.append(record)

    if not records:
        return 1
    if not args.no_stats:
        _write_stats_csv(records, output_dir / "stats.csv")
    return 0


# ---- Subcommand: decode ----

def cmd_decode(args):
    tree_path = Path(args.inputs[0])
    try:
        root, header = read_tree(tree_path)
    except (QuadtreeError, OSError) as exc:
        logger.error("Could not read %s: %s", tree_path, exc)
        return 1

    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        save_image(reconstruct_image(root), output_path)
    except (ValueError, OSError) as exc:
        logger.error("Could not save %s: %s", output_path, exc)
        return 1
    logger.info(
        "Decoded %s (%dx%d, %d channel(s)) -> %s",
        tree_path.name, header.width, header.height, header.channels, output_path,
    )
    return 0


# ---- Subcommand: overlay ----

def cmd_overlay(args):
    image_path = Path(args.inputs[0])
    try:
        buffer = load_pixel_buffer(image_path)
        root = QuadtreeBuilder(_config_from_args(args), debug=args.debug).build(buffer)
    except (QuadtreeError, OSError) as exc:
        logger.error("Failed to process %s: %s", image_path.name, exc)
        return 1

    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if args.panel:
            save_image(render_comparison(buffer, root, scale=args.scale), output_path)
            logger.info("Comparison panel saved: %s", output_path)
        else:
            save_overlay(buffer, root, output_path)
    except (ValueError, OSError) as exc:
        logger.error("Could not save %s: %s", output_path, exc)
        return 1
    return 0


# ---- Subcommand: stats ----

def cmd_stats(args):
    failures = 0
    for inp in args.inputs:
        tree_path = Path(inp)
        try:
            root, header = read_tree(tree_path)
        except (QuadtreeError, OSError) as exc:
            logger.error("Could not read %s: %s", tree_path, exc)
            failures += 1
            continue
        stats = summarize(root)
        logger.info(
            "%s: %dx%d, %d channel(s), metric=%s tolerance=%g min_leaf_size=%d",
            tree_path.name, header.width, header.height, header.channels,
            header.metric.value, header.tolerance, header.min_leaf_size,
        )
        logger.info(
            "  %d nodes (%d leaves, %d internal), depth %d, %.4f leaves/pixel",
            stats.node_count, stats.leaf_count, stats.internal_count,
            stats.depth, stats.leaf_ratio,
        )
    return 1 if failures == len(args.inputs) else 0


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE,
                        help="Homogeneity tolerance (default: %(default)s)")
    parser.add_argument("--min-leaf-size", type=int, default=DEFAULT_MIN_LEAF_SIZE,
                        help="Regions this small on either side become leaves "
                             "(default: %(default)s)")
    parser.add_argument("--metric", default=Metric.MAX_DISTANCE.value,
                        choices=[m.value for m in Metric],
                        help="Homogeneity metric (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=1,
                        help="Threads used to build the root quadrants")
    parser.add_argument("--parallel-threshold", type=int, default=DEFAULT_PARALLEL_THRESHOLD,
                        help="Minimum image area before building in parallel")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="region-quadtree",
        description="Region quadtree image compression",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # -- build --
    p_build = sub.add_parser("build", help="Build and save quadtrees for images")
    p_build.add_argument("inputs", nargs="+", help="Image files or directories")
    p_build.add_argument("-o", "--output", default="output",
                         help="Output directory (default: ./output)")
    _add_build_options(p_build)
    p_build.add_argument("--overlay", action="store_true",
                         help="Also save the subdivision overlay per image")
    p_build.add_argument("--no-stats", action="store_true",
                         help="Do not write stats.csv")
    p_build.add_argument("--recursive", "-r", action="store_true")
    p_build.set_defaults(func=cmd_build)

    # -- decode --
    p_decode = sub.add_parser("decode", help="Rebuild the image stored in a .rqt file")
    p_decode.add_argument("inputs", nargs=1, help="Quadtree file")
    p_decode.add_argument("-o", "--output", required=True, help="Output image path")
    p_decode.set_defaults(func=cmd_decode)

    # -- overlay --
    p_overlay = sub.add_parser("overlay", help="Draw quadtree subdivisions over an image")
    p_overlay.add_argument("inputs", nargs=1, help="Image file")
    p_overlay.add_argument("-o", "--output", required=True, help="Output image path")
    _add_build_options(p_overlay)
    p_overlay.add_argument("--panel", action="store_true",
                           help="Save source | overlay | reconstruction side by side")
    p_overlay.add_argument("--scale", type=int, default=1,
                           help="Nearest-neighbour magnification for --panel")
    p_overlay.set_defaults(func=cmd_overlay)

    # -- stats --
    p_stats = sub.add_parser("stats", help="Summarise saved quadtrees")
    p_stats.add_argument("inputs", nargs="+", help="Quadtree files")
    p_stats.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    try:
        return args.func(args)
    except QuadtreeError as exc:
        # bad build options surface here as ConfigError
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
