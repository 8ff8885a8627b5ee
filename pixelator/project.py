# pixelator/project.py
from __future__ import annotations

"""
Project snapshot (JSON) and colour-mapping preference files.

Snapshot shape:
  {
    "pixelatorProject": true, "version": "1.0",
    "width": W, "height": H,
    "pixels": [[{"r","g","b","a"}, ...W], ...H],
    "settings": {"sizeMode", "sizeValue", "colorCount", "maxColors",
                 "contrast", "dimensions": {"width","height"}, "colorMapping"},
    "colorStats": [{"color": "#rrggbb", "count": n}, ...],
    "created": ISO-8601 timestamp
  }

Exports:
  build_snapshot(buf, params, palette) -> dict
  parse_snapshot(data) -> ProjectSnapshot
  save_project(path, buf, params, palette) -> Path
  load_project(path) -> ProjectSnapshot
  load_mapping_file(path) -> ColorMapping
  save_mapping_file(path, mapping) -> Path
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .analysis import palette_as_dicts, palette_from_dicts
from .constants import (
    DEFAULT_COLOR_COUNT,
    DEFAULT_CONTRAST,
    DEFAULT_SIZE_MODE,
    DEFAULT_SIZE_VALUE,
    PROJECT_MARKER,
    PROJECT_VERSION,
)
from .core_types import (
    ColorMapping,
    Palette,
    PixelBuffer,
    ProjectFormatError,
    StructuralError,
)
from .pipeline import PipelineParameters
from .remap import normalize_mapping


@dataclass(frozen=True)
class ProjectSnapshot:
    """Decoded project: pixels as a base buffer plus the saved parameters."""

    base: PixelBuffer
    params: PipelineParameters
    color_stats: Palette = field(default_factory=list)
    version: str = PROJECT_VERSION
    created: Optional[str] = None
    rejected_mappings: Tuple[Tuple[str, str], ...] = ()


# Writing


def build_snapshot(
    buf: PixelBuffer,
    params: PipelineParameters,
    palette: Palette,
    created: Optional[datetime] = None,
) -> Dict[str, Any]:
    """JSON-ready project record for a rendered buffer and its parameters."""
    stamp = (created or datetime.now(timezone.utc)).isoformat()
    return {
        PROJECT_MARKER: True,
        "version": PROJECT_VERSION,
        "width": buf.width,
        "height": buf.height,
        "pixels": buf.to_pixel_rows(),
        "settings": {
            "sizeMode": params.size_mode,
            "sizeValue": params.size_value,
            "colorCount": params.color_count,
            "maxColors": params.max_colors
            if params.max_colors is not None
            else params.color_count,
            "contrast": params.contrast,
            "dimensions": {"width": params.target_width, "height": params.target_height},
            "colorMapping": params.mapping_dict(),
        },
        "colorStats": palette_as_dicts(palette),
        "created": stamp,
    }


def save_project(
    path: Path, buf: PixelBuffer, params: PipelineParameters, palette: Palette
) -> Path:
    record = build_snapshot(buf, params, palette)
    path.write_text(json.dumps(record, indent=2), encoding="utf-8")
    return path


# Reading


def _channel(px: Mapping[str, Any], name: str, y: int, x: int) -> int:
    try:
        value = int(px[name])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProjectFormatError(f"pixel ({x},{y}) has no valid '{name}'") from exc
    if not 0 <= value <= 255:
        raise ProjectFormatError(f"pixel ({x},{y}) '{name}'={value} out of range")
    return value


def _pixels_to_buffer(data: Mapping[str, Any]) -> PixelBuffer:
    pixels = data.get("pixels")
    if not isinstance(pixels, list) or not pixels:
        raise ProjectFormatError("project has no pixel rows")

    try:
        height = int(data.get("height", len(pixels)))
        width = int(data.get("width", len(pixels[0]) if pixels[0] else 0))
    except (TypeError, ValueError) as exc:
        raise ProjectFormatError(f"invalid project dimensions: {exc}") from exc
    if len(pixels) != height:
        raise ProjectFormatError(f"expected {height} pixel rows, found {len(pixels)}")

    rows: List[List[Dict[str, int]]] = []
    for y, row in enumerate(pixels):
        if not isinstance(row, list) or len(row) != width:
            raise ProjectFormatError(f"pixel row {y} does not have {width} entries")
        rows.append(
            [
                {
                    "r": _channel(px, "r", y, x),
                    "g": _channel(px, "g", y, x),
                    "b": _channel(px, "b", y, x),
                    "a": _channel(px, "a", y, x) if "a" in px else 255,
                }
                for x, px in enumerate(row)
            ]
        )
    try:
        return PixelBuffer.from_pixel_rows(rows)
    except StructuralError as exc:
        raise ProjectFormatError(str(exc)) from exc


def parse_snapshot(data: Mapping[str, Any]) -> ProjectSnapshot:
    """Rebuild the base buffer and parameters from a decoded project record."""
    if not isinstance(data, Mapping) or not data.get(PROJECT_MARKER) or "pixels" not in data:
        raise ProjectFormatError("not a pixelator project")

    base = _pixels_to_buffer(data)
    settings = data.get("settings") or {}
    mapping, rejected = normalize_mapping(settings.get("colorMapping") or {})

    try:
        params = PipelineParameters(
            target_width=base.width,
            target_height=base.height,
            contrast=float(settings.get("contrast") or DEFAULT_CONTRAST),
            color_count=int(settings.get("colorCount") or DEFAULT_COLOR_COUNT),
            color_mapping=mapping,
            size_mode=str(settings.get("sizeMode") or DEFAULT_SIZE_MODE),
            size_value=int(settings.get("sizeValue") or DEFAULT_SIZE_VALUE),
            max_colors=int(settings["maxColors"]) if settings.get("maxColors") else None,
        )
    except (TypeError, ValueError) as exc:
        raise ProjectFormatError(f"invalid project settings: {exc}") from exc

    try:
        stats = palette_from_dicts(list(data.get("colorStats") or []))
    except (KeyError, TypeError, ValueError) as exc:
        raise ProjectFormatError(f"invalid colorStats: {exc}") from exc

    return ProjectSnapshot(
        base=base,
        params=params,
        color_stats=stats,
        version=str(data.get("version", PROJECT_VERSION)),
        created=data.get("created"),
        rejected_mappings=tuple(rejected),
    )


def load_project(path: Path) -> ProjectSnapshot:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ProjectFormatError(f"{path.name}: invalid JSON ({exc})") from exc
    return parse_snapshot(data)


# Mapping preference


def load_mapping_file(path: Path) -> ColorMapping:
    """Read a saved '#src' -> '#dst' object; malformed entries are dropped."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ProjectFormatError(f"{path.name}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ProjectFormatError(f"{path.name}: expected a JSON object")
    mapping, _rejected = normalize_mapping(data)
    return mapping


def save_mapping_file(path: Path, mapping: Mapping[str, str]) -> Path:
    path.write_text(json.dumps(dict(mapping), indent=2, sort_keys=True), encoding="utf-8")
    return path


__all__ = [
    "ProjectSnapshot",
    "build_snapshot",
    "save_project",
    "parse_snapshot",
    "load_project",
    "load_mapping_file",
    "save_mapping_file",
]
