# pixelator/quantize.py
from __future__ import annotations

"""
Uniform per-channel grid quantizer.

Exports:
  quantize_levels(target_color_count) -> int
  quantize_step(levels) -> float
  quantize_channel_values(levels) -> list[int]
  quantize(buf, target_color_count) -> PixelBuffer

Notes:
  levels = round(cbrt(target_color_count)), never below 2, so the grid has
  levels^3 cells. That is an approximation of the requested count and can
  over- or undershoot it (4 colours -> 8 cells, 100 colours -> 125 cells).
"""

from typing import List

import numpy as np

from .constants import MIN_QUANT_LEVELS
from .core_types import PixelBuffer, ensure_buffer


def quantize_levels(target_color_count: int) -> int:
    """Levels per channel for a requested colour count (at least 2)."""
    n = max(0, int(target_color_count))
    levels = int(np.floor(np.cbrt(float(n)) + 0.5))
    return max(MIN_QUANT_LEVELS, levels)


def quantize_step(levels: int) -> float:
    return 255.0 / (max(MIN_QUANT_LEVELS, int(levels)) - 1)


def _snap(values: np.ndarray, step: float) -> np.ndarray:
    idx = np.floor(values.astype(np.float64) / step + 0.5)
    # grid value rounds ties to even, like a clamped byte store (76.5 -> 76)
    return np.clip(np.rint(idx * step), 0, 255).astype(np.uint8)


def quantize_channel_values(levels: int) -> List[int]:
    """Every channel value the grid can produce, ascending."""
    step = quantize_step(levels)
    return sorted(set(_snap(np.arange(256), step).tolist()))


def quantize(buf: PixelBuffer, target_color_count: int) -> PixelBuffer:
    """Snap each RGB channel to the nearest grid level; alpha untouched."""
    ensure_buffer(buf)
    step = quantize_step(quantize_levels(target_color_count))
    out = buf.copy_rows()
    out[..., :3] = _snap(out[..., :3], step)
    return PixelBuffer.from_rgba_array(out)


__all__ = [
    "quantize_levels",
    "quantize_step",
    "quantize_channel_values",
    "quantize",
]
