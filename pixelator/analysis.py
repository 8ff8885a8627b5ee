# pixelator/analysis.py
from __future__ import annotations

"""
Palette statistics over packed RGB keys (alpha ignored).

Exports:
  count_distinct(buf) -> int
  analyze(buf) -> Palette (count desc, first-seen tie-break)
  total_pixels(palette) -> int
  palette_as_dicts(palette) -> list[dict]
  palette_from_dicts(rows) -> Palette
"""

from typing import Any, Dict, List, Tuple

import numpy as np

from .core_types import (
    Palette,
    PaletteEntry,
    PixelBuffer,
    ensure_buffer,
    pack_rows,
    packed_to_hex,
)

# ==================
# Distinct / counts
# ==================
def _unique_with_first_seen(buf: PixelBuffer) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Packed unique colours, their first row-major index, and their counts.
    Alpha is ignored.
    """
    keys = pack_rows(buf.as_rows())
    uniq, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)
    return uniq, first_idx, counts


def count_distinct(buf: PixelBuffer) -> int:
    """Number of unique (R, G, B) triples, alpha ignored."""
    ensure_buffer(buf)
    return int(np.unique(pack_rows(buf.as_rows())).size)


# =========
# Palette
# =========
def analyze(buf: PixelBuffer) -> Palette:
    """
    Frequency-sorted palette of a buffer.

    Counts come from one row-major pass; the sort is by count descending with
    the first-seen position as tie-break, which is what a stable sort over
    first-seen order gives.
    """
    ensure_buffer(buf)
    uniq, first_idx, counts = _unique_with_first_seen(buf)
    order = np.lexsort((first_idx, -counts))
    return [
        PaletteEntry(color=packed_to_hex(int(uniq[i])), count=int(counts[i]))
        for i in order.tolist()
    ]


def total_pixels(palette: Palette) -> int:
    return sum(entry.count for entry in palette)


def palette_as_dicts(palette: Palette) -> List[Dict[str, Any]]:
    """[{"color": "#rrggbb", "count": n}, ...] as stored in project files."""
    return [entry.as_dict() for entry in palette]


def palette_from_dicts(rows: List[Dict[str, Any]]) -> Palette:
    return [PaletteEntry(color=str(r["color"]).lower(), count=int(r["count"])) for r in rows]


__all__ = [
    "count_distinct",
    "analyze",
    "total_pixels",
    "palette_as_dicts",
    "palette_from_dicts",
]
