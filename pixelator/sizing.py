# pixelator/sizing.py
from __future__ import annotations
import math
from typing import Literal, Tuple

from .constants import MAX_DIMENSION, MIN_DIMENSION, SIZE_MODES
from .core_types import ConfigError, clamp_value

"""
Target grid size from a source aspect ratio.

Exports:
- clamp_size_value(value) -> int in [1, MAX_DIMENSION]
- target_dimensions(src_w, src_h, size_mode, size_value) -> (width, height)

Notes:
- "height" fixes the output height and derives the width from the aspect ratio;
  "width" does the reverse. The derived side is rounded and never below 1.
"""


SizeMode = Literal["height", "width"]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp_size_value(value: int) -> int:
    return int(clamp_value(int(value), MIN_DIMENSION, MAX_DIMENSION))


def target_dimensions(
    src_w: int, src_h: int, size_mode: str, size_value: int
) -> Tuple[int, int]:
    """(width, height) of the pixel grid for a source of src_w x src_h."""
    if size_mode not in SIZE_MODES:
        raise ConfigError(f"size mode must be one of {SIZE_MODES}, got {size_mode!r}")
    if src_w <= 0 or src_h <= 0:
        raise ConfigError(f"source size must be positive, got {src_w}x{src_h}")

    aspect = src_w / float(src_h)
    fixed = clamp_size_value(size_value)
    if size_mode == "height":
        height = fixed
        width = max(MIN_DIMENSION, _round_half_up(fixed * aspect))
    else:
        width = fixed
        height = max(MIN_DIMENSION, _round_half_up(fixed / aspect))
    return width, height


__all__ = ["SizeMode", "clamp_size_value", "target_dimensions"]
