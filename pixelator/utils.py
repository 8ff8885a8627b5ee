# pixelator/utils.py
from __future__ import annotations

"""
Shared utilities for pixelator.

Time formatting, palette report lines for the CLI, and tidy print-based logging.
"""

import sys
from typing import Any, Iterable, List, Tuple

from .core_types import ColorMapping, Palette


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


# Palette report


def palette_report_lines(
    palette: Palette, mapping: ColorMapping | None = None, top: int = 16
) -> List[str]:
    """
    One line per palette entry, most used first:
      #rrggbb  count=   123  12.3%
    Entries produced by the mapping get a '<- #source' suffix.
    """
    total = sum(e.count for e in palette)
    reverse = {}
    for src, dst in (mapping or {}).items():
        if src != dst:
            reverse.setdefault(dst, []).append(src)
    lines: List[str] = []
    limit = len(palette) if top <= 0 else top
    for entry in palette[:limit]:
        pct = 100.0 * entry.count / max(1, total)
        line = f"  {entry.color}  count={entry.count:6d}  {pct:5.1f}%"
        sources = reverse.get(entry.color)
        if sources:
            line += "  <- " + ", ".join(sorted(sources))
        lines.append(line)
    if len(palette) > limit:
        lines.append(f"  ... {len(palette) - limit} more")
    return lines


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """
    Enable line-buffered stdout when supported.
    Keeps log lines in order when output is piped.
    """
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        try:
            reconfig(line_buffering=True, write_through=True)
        except (OSError, ValueError):
            pass


# Pretty logging


def format_value(value: Any) -> str:
    """'on'/'off' for bools, 1,234 for ints, trimmed floats, str() otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """Format (name, value) pairs as 'Name: value' blocks separated by sep."""
    return sep.join(f"{name}{eq}{format_value(value)}" for name, value in pairs)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [pipeline] Size: 50x34  Colours: 64  Contrast: 1.2  Mappings: 2
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    "format_seconds_compact",
    "palette_report_lines",
    "enable_line_buffered_stdout",
    "format_value",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
