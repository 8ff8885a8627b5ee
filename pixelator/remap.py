# pixelator/remap.py
from __future__ import annotations

"""
Exact colour substitution.

Functions:
  normalize_mapping(mapping) -> (clean, rejected)
  set_mapping_entry(mapping, source, target) -> ColorMapping
  clear_mapping() -> ColorMapping
  remap(buf, mapping) -> PixelBuffer

Use cases:
  - the palette editor builds a mapping from post-quantization colours
  - remap applies it once; a pixel changed by one entry is never looked up again
"""

from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .core_types import (
    ColorMapping,
    PixelBuffer,
    RGBTuple,
    ensure_buffer,
    hex_to_rgb,
    normalize_hex,
    pack_rgb,
    pack_rows,
)


def normalize_mapping(
    mapping: Optional[Mapping[str, str]],
) -> Tuple[ColorMapping, List[Tuple[str, str]]]:
    """
    Canonicalise keys and values to lowercase '#rrggbb'.

    Entries whose source or target is not a hex colour are dropped and
    returned in `rejected` so callers can report them.
    """
    clean: ColorMapping = {}
    rejected: List[Tuple[str, str]] = []
    if not mapping:
        return clean, rejected
    for src, dst in mapping.items():
        try:
            clean[normalize_hex(str(src))] = normalize_hex(str(dst))
        except (ValueError, TypeError, AttributeError):
            rejected.append((str(src), str(dst)))
    return clean, rejected


def set_mapping_entry(
    mapping: Mapping[str, str], source: str, target: Optional[str]
) -> ColorMapping:
    """
    Return a new mapping with source -> target set.
    An empty target, or one equal to the source, removes the entry instead.
    """
    out: ColorMapping = dict(mapping)
    src = normalize_hex(source)
    if target and normalize_hex(target) != src:
        out[src] = normalize_hex(target)
    else:
        out.pop(src, None)
    return out


def clear_mapping() -> ColorMapping:
    return {}


def _packed_targets(mapping: Mapping[str, str]) -> Dict[int, RGBTuple]:
    clean, _rejected = normalize_mapping(mapping)
    return {pack_rgb(hex_to_rgb(src)): hex_to_rgb(dst) for src, dst in clean.items()}


def remap(buf: PixelBuffer, mapping: Optional[Mapping[str, str]]) -> PixelBuffer:
    """Replace RGB of every pixel whose colour is a mapping key; alpha untouched."""
    ensure_buffer(buf)
    out = buf.copy_rows()
    targets = _packed_targets(mapping or {})
    if not targets:
        return PixelBuffer.from_rgba_array(out)

    # Masks come from the input keys, so entries never chain (A->B, B->C).
    keys = pack_rows(buf.as_rows()).reshape(buf.height, buf.width)
    present = np.isin(keys, np.fromiter(targets.keys(), dtype=np.int64))
    if not np.any(present):
        return PixelBuffer.from_rgba_array(out)

    for key in np.unique(keys[present]).tolist():
        out[keys == key, :3] = targets[int(key)]
    return PixelBuffer.from_rgba_array(out)


__all__ = ["normalize_mapping", "set_mapping_entry", "clear_mapping", "remap"]
