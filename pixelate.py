#!/usr/bin/env python3
"""
pixelate.py
Turn images into small reduced-palette pixel-art grids.

Usage:
  python pixelate.py SRC [--outdir DIR] --size-mode [height|width] --size N
                     --colors N --contrast F --map '#src=#dst' --mapping-file PATH
                     [--save-mapping] --scale N [--project] --top N --debug

Input:
  An image (any Pillow-readable format), a saved .json project, or a folder of
  either. Files whose stem ends in _pixel are treated as outputs and skipped.

Output:
  <stem>_pixel.png, enlarged by --scale with hard pixel edges. With --project,
  also <stem>_pixel.json holding the pixels, settings and colour statistics.

Notes:
  Stages run in a fixed order from the resampled base grid:
    contrast -> colour quantization -> colour remapping -> palette statistics.
  Remap keys refer to colours as they look after quantization; the printed
  palette is the one to pick keys from.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from pixelator.constants import (
    CONTRAST_RANGE,
    DEFAULT_SIZE_MODE,
    DEFAULT_SIZE_VALUE,
    EXPORT_SCALE,
    IMAGE_EXTENSIONS,
    MAX_DIMENSION,
    MIN_COLOR_COUNT,
    OUTPUT_SUFFIX,
    PROJECT_EXTENSION,
    SIZE_MODES,
)
from pixelator.core_types import ColorMapping, PixelatorError
from pixelator.image_io import export_png, is_image_file, load_image
from pixelator.pipeline import Workbench
from pixelator.project import (
    load_mapping_file,
    load_project,
    save_mapping_file,
    save_project,
)
from pixelator.remap import normalize_mapping
from pixelator.utils import (
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    key_value_pairs_to_string,
    log,
    palette_report_lines,
    print_banner,
    print_config_line,
    warn,
)

# CLI args & small helpers


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to image, project or folder
        outdir: optional Path for outputs
        size_mode: "height" | "width"
        size: fixed side in pixels (clamped to 1..MAX_DIMENSION)
        colors: optional target colour count (default: all distinct colours)
        contrast: optional contrast factor
        map: list of "#src=#dst" strings
        mapping_file: optional JSON mapping to start from
        save_mapping: write the final mapping back to mapping_file
        scale: export enlargement factor
        project: also write a JSON project
        top: palette rows to print (0 = all)
        debug: bool for per-stage details
    """
    parser = argparse.ArgumentParser(
        prog="pixelate",
        description="Convert images to reduced-palette pixel art.",
    )
    parser.add_argument("src", type=Path, help="Input image, .json project, or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--size-mode",
        choices=list(SIZE_MODES),
        default=DEFAULT_SIZE_MODE,
        help="Which side --size fixes.",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=DEFAULT_SIZE_VALUE,
        help=f"Pixels along the fixed side (1..{MAX_DIMENSION}).",
    )
    parser.add_argument(
        "--colors",
        type=int,
        default=None,
        help="Target colour count. Omit to keep every distinct colour.",
    )
    parser.add_argument(
        "--contrast", type=float, default=None, help="Contrast factor, 1.0 = unchanged"
    )
    parser.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="SRC=DST",
        help="Replace colour SRC with DST after quantization, e.g. '#000000=#ff0000'.",
    )
    parser.add_argument(
        "--mapping-file", type=Path, default=None, help="JSON colour mapping to load"
    )
    parser.add_argument(
        "--save-mapping",
        action="store_true",
        help="Write the combined mapping back to --mapping-file.",
    )
    parser.add_argument(
        "--scale", type=int, default=EXPORT_SCALE, help="Export enlargement factor"
    )
    parser.add_argument(
        "--project", action="store_true", help="Also write a JSON project file"
    )
    parser.add_argument(
        "--top", type=int, default=16, help="Palette rows to print (0 = all)"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose stage details")
    return parser.parse_args(argv)


def parse_map_args(entries: List[str]) -> ColorMapping:
    """'#src=#dst' strings -> mapping. Malformed entries are reported and skipped."""
    raw = {}
    for entry in entries:
        src, sep, dst = entry.partition("=")
        if not sep:
            warn(f"ignoring --map {entry!r}: expected SRC=DST")
            continue
        raw[src.strip()] = dst.strip()
    mapping, rejected = normalize_mapping(raw)
    for src, dst in rejected:
        warn(f"ignoring --map {src}={dst}: not a hex colour")
    return mapping


def build_mapping(args: argparse.Namespace) -> ColorMapping:
    """Mapping file first, then --map entries on top (last writer wins)."""
    mapping: ColorMapping = {}
    if args.mapping_file is not None and args.mapping_file.exists():
        mapping.update(load_mapping_file(args.mapping_file))
    mapping.update(parse_map_args(args.map))
    return mapping


def _output_path(src_path: Path, outdir: Optional[Path], suffix: str) -> Path:
    folder = outdir if outdir is not None else src_path.parent
    return folder / f"{src_path.stem}{OUTPUT_SUFFIX}{suffix}"


def _is_output_artifact(path: Path) -> bool:
    return path.stem.endswith(OUTPUT_SUFFIX)


# Per-file processing


def process_file(
    src_path: Path, args: argparse.Namespace, mapping: ColorMapping
) -> Path:
    """
    Process a single file end-to-end:
      load -> resample (images) -> parameters -> run -> export -> report.
    Returns the written PNG path.
    """
    t_start = time.perf_counter()
    print_banner(src_path.name)

    bench = Workbench(color_mapping=mapping)
    if src_path.suffix.lower() == PROJECT_EXTENSION:
        snapshot = load_project(src_path)
        for src, dst in snapshot.rejected_mappings:
            warn(f"project mapping {src} -> {dst} is not a hex colour; skipped")
        bench.load_project(snapshot)
        if mapping:
            merged = bench.color_mapping
            merged.update(mapping)
            bench.set_mapping(merged)
        if args.debug:
            debug_log(f"loaded project v{snapshot.version} ({snapshot.created or '-'})")
    else:
        image = load_image(src_path)
        bench.load_image(image, size_mode=args.size_mode, size_value=args.size)
        if args.debug:
            debug_log(f"Loaded {image.width}x{image.height}")
    t_loaded = time.perf_counter()

    changes = {}
    if args.colors is not None:
        changes["color_count"] = int(args.colors)
    if args.contrast is not None:
        changes["contrast"] = float(args.contrast)
    params = bench.update(**changes)

    print_config_line(
        "pipeline",
        [
            ("Size", f"{params.target_width}x{params.target_height}"),
            ("Colours", f"{params.color_count}/{params.max_colors}"),
            ("Contrast", float(params.contrast)),
            ("Mappings", len(params.color_mapping)),
        ],
        debug=False,
    )

    buffer, palette = bench.render(debug=args.debug)
    t_rendered = time.perf_counter()

    out_png = export_png(_output_path(src_path, args.outdir, ".png"), buffer, args.scale)
    log(f"Wrote {out_png.name} | grid={buffer.width}x{buffer.height} | scale={args.scale}")
    if args.project:
        out_json = save_project(
            _output_path(src_path, args.outdir, PROJECT_EXTENSION), buffer, params, palette
        )
        log(f"Wrote {out_json.name}")

    log(f"Palette ({len(palette)} colours):")
    for line in palette_report_lines(palette, params.mapping_dict(), top=args.top):
        log(line)
    log(f"Total pixels: {sum(e.count for e in palette):,}")

    t_end = time.perf_counter()
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("load", format_seconds_compact(t_loaded - t_start)),
                    ("render", format_seconds_compact(t_rendered - t_loaded)),
                    ("save", format_seconds_compact(t_end - t_rendered)),
                ]
            )
        )
    else:
        log(f"Total time {format_seconds_compact(t_end - t_start)}")
    return out_png


def collect_inputs(src: Path) -> List[Path]:
    """Images and projects in a folder (sorted), or the single file given."""
    if not src.is_dir():
        return [src]
    files = [
        p
        for p in src.iterdir()
        if p.is_file()
        and not _is_output_artifact(p)
        and (
            p.suffix.lower() == PROJECT_EXTENSION
            or (p.suffix.lower() in IMAGE_EXTENSIONS and is_image_file(p))
        )
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles a single file or a folder. A failure on one file is reported and
    the remaining files are still processed; the exit code is 1 if any failed.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    src = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2
    if args.scale < 1:
        error(f"--scale must be >= 1, got {args.scale}")
        return 2
    if args.save_mapping and args.mapping_file is None:
        error("--save-mapping needs --mapping-file")
        return 2
    lo, hi = CONTRAST_RANGE
    if args.contrast is not None and not lo <= args.contrast <= hi:
        warn(f"--contrast {args.contrast} is outside the usual {lo}..{hi} range")
    if args.colors is not None and args.colors < MIN_COLOR_COUNT:
        warn(f"--colors {args.colors} is below {MIN_COLOR_COUNT}; using {MIN_COLOR_COUNT}")
        args.colors = MIN_COLOR_COUNT
    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    try:
        mapping = build_mapping(args)
    except PixelatorError as exc:
        error(str(exc))
        return 2

    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Size mode", args.size_mode),
                    ("Size", args.size),
                    ("Colours", args.colors or "all"),
                    ("Contrast", args.contrast if args.contrast is not None else "-"),
                    ("Mappings", len(mapping)),
                ]
            )
        )
    if args.save_mapping:
        save_mapping_file(args.mapping_file, mapping)
        log(f"Saved {len(mapping)} mapping(s) to {args.mapping_file}")

    files = collect_inputs(src)
    if not files:
        error(f"no images or projects in {src}")
        return 1

    failures = 0
    for path in files:
        try:
            process_file(path, args, mapping)
        except (PixelatorError, OSError) as exc:
            error(f"{path.name}: {exc}")
            failures += 1
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
