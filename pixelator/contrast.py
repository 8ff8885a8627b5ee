# pixelator/contrast.py
from __future__ import annotations

"""
Linear contrast around the channel midpoint.

  out = clamp(0, 255, round((in - 128) * factor + 128))   for R, G, B
"""

import numpy as np

from .constants import CONTRAST_PIVOT
from .core_types import PixelBuffer, ensure_buffer


def apply_contrast(buf: PixelBuffer, factor: float) -> PixelBuffer:
    """Return a new buffer with contrast applied to RGB; alpha is copied as is."""
    ensure_buffer(buf)
    out = buf.copy_rows()
    rgb = out[..., :3].astype(np.float64)
    scaled = (rgb - CONTRAST_PIVOT) * float(factor) + CONTRAST_PIVOT
    # rint: ties to even, same as a clamped byte store
    out[..., :3] = np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
    return PixelBuffer.from_rgba_array(out)


__all__ = ["apply_contrast"]
