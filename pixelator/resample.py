# pixelator/resample.py
from __future__ import annotations

"""
Nearest-neighbour downsampling to the target pixel grid.

Exports:
  source_size(source) -> (width, height)
  nearest_indices(src_len, dst_len) -> int array
  resample(source, target_w, target_h) -> PixelBuffer
"""

from typing import Tuple, Union

import numpy as np
from PIL import Image

from .core_types import InvalidDimension, PixelBuffer, StructuralError, U8Image

RasterSource = Union[Image.Image, np.ndarray, PixelBuffer]


def _as_rgba_array(source: RasterSource) -> U8Image:
    """Coerce a decoded raster to an (H, W, 4) uint8 array."""
    if isinstance(source, PixelBuffer):
        return source.as_rows()
    if isinstance(source, Image.Image):
        im = source if source.mode == "RGBA" else source.convert("RGBA")
        return np.array(im, dtype=np.uint8)

    arr = np.asarray(source)
    if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[-1] not in (3, 4):
        raise StructuralError(
            f"expected uint8 (H,W,3/4) raster, got {arr.dtype} {arr.shape}"
        )
    if arr.shape[-1] == 4:
        return arr
    out = np.full(arr.shape[:2] + (4,), 255, dtype=np.uint8)
    out[..., :3] = arr
    return out


def source_size(source: RasterSource) -> Tuple[int, int]:
    """(width, height) of any supported raster source."""
    if isinstance(source, PixelBuffer):
        return source.width, source.height
    if isinstance(source, Image.Image):
        return source.size
    arr = np.asarray(source)
    return int(arr.shape[1]), int(arr.shape[0])


def nearest_indices(src_len: int, dst_len: int) -> np.ndarray:
    """
    Source index sampled by each destination index under a uniform scale.
    Samples the source at destination pixel centres, like Pillow's NEAREST.
    """
    scale = src_len / float(dst_len)
    idx = np.floor((np.arange(dst_len, dtype=np.float64) + 0.5) * scale).astype(
        np.int64
    )
    return np.clip(idx, 0, src_len - 1)


def resample(source: RasterSource, target_w: int, target_h: int) -> PixelBuffer:
    """
    Downsample (or upsample) to exactly target_w x target_h with no smoothing.
    Alpha is carried from the sampled source pixel; RGB sources get alpha 255.
    """
    if int(target_w) <= 0 or int(target_h) <= 0:
        raise InvalidDimension(
            f"target dimensions must be positive, got {target_w}x{target_h}"
        )
    rgba = _as_rgba_array(source)
    src_h, src_w = rgba.shape[0], rgba.shape[1]
    if src_w == 0 or src_h == 0:
        raise StructuralError("source raster is empty")

    ys = nearest_indices(src_h, int(target_h))
    xs = nearest_indices(src_w, int(target_w))
    sampled = rgba[ys[:, None], xs[None, :]]
    return PixelBuffer.from_rgba_array(sampled)


__all__ = ["RasterSource", "source_size", "nearest_indices", "resample"]
