# pixelator/core_types.py
from __future__ import annotations

"""
Core type aliases, value objects, error types and colour-key helpers.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
RGBATuple = Tuple[int, int, int, int]
HexStr = str

U8Flat = NDArray[np.uint8]  # (W*H*4,)
U8Image = NDArray[np.uint8]  # (H, W, 4)
PackedKeys = NDArray[np.int64]  # (N,) packed 0xRRGGBB

ColorMapping = Dict[HexStr, HexStr]  # "#rrggbb" -> "#rrggbb"
PixelRows = List[List[Dict[str, int]]]  # [[{"r","g","b","a"}, ...], ...]

# Errors


class PixelatorError(Exception):
    """Base class for every error raised by the package."""


class StructuralError(PixelatorError, ValueError):
    """Buffer length or array shape does not match its declared dimensions."""


class InvalidDimension(PixelatorError, ValueError):
    """Non-positive width or height passed to the resampler."""


class ProjectFormatError(PixelatorError, ValueError):
    """Project snapshot is missing required fields or is inconsistent."""


class ConfigError(PixelatorError, ValueError):
    """Invalid user-facing option (size mode, contrast, ...)."""


# Colour keys

_HEX_RE = re.compile(r"#[0-9a-fA-F]{6}")


def rgb_to_hex(rgb: Sequence[int]) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rrggbb' (case-insensitive) into an RGB tuple."""
    if not isinstance(hex_str, str) or _HEX_RE.fullmatch(hex_str) is None:
        raise ValueError(f"hex must be '#rrggbb', got {hex_str!r}")
    return (int(hex_str[1:3], 16), int(hex_str[3:5], 16), int(hex_str[5:7], 16))


def normalize_hex(hex_str: str) -> HexStr:
    """Canonical lowercase '#rrggbb' form; raises ValueError if unparseable."""
    return rgb_to_hex(hex_to_rgb(hex_str))


def pack_rgb(rgb: Sequence[int]) -> int:
    """(r, g, b) -> 0xRRGGBB."""
    return (int(rgb[0]) << 16) | (int(rgb[1]) << 8) | int(rgb[2])


def unpack_rgb(key: int) -> RGBTuple:
    """0xRRGGBB -> (r, g, b)."""
    k = int(key)
    return ((k >> 16) & 0xFF, (k >> 8) & 0xFF, k & 0xFF)


def packed_to_hex(key: int) -> HexStr:
    return rgb_to_hex(unpack_rgb(key))


def pack_rows(rgba: U8Image) -> PackedKeys:
    """Packed 24-bit keys for every pixel of an (H, W, 4) array, row-major."""
    flat = rgba.reshape(-1, 4).astype(np.int64)
    return (flat[:, 0] << 16) | (flat[:, 1] << 8) | flat[:, 2]


# Value objects


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Width, height and a flat RGBA byte sequence (R,G,B,A per pixel, row-major).

    The data array is copied on construction and made read-only, so a buffer
    never aliases the array it was built from and stages cannot write into it.
    """

    width: int
    height: int
    data: U8Flat = field(repr=False)

    def __post_init__(self) -> None:
        if int(self.width) < 1 or int(self.height) < 1:
            raise StructuralError(
                f"buffer dimensions must be >= 1, got {self.width}x{self.height}"
            )
        arr = np.array(self.data, dtype=np.uint8).reshape(-1)
        expected = int(self.width) * int(self.height) * 4
        if arr.size != expected:
            raise StructuralError(
                f"buffer length {arr.size} != {self.width}*{self.height}*4 ({expected})"
            )
        arr.setflags(write=False)
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        object.__setattr__(self, "data", arr)

    @classmethod
    def from_rgba_array(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Build from an (H, W, 4) uint8 array."""
        arr = np.asarray(rgba)
        if arr.ndim != 3 or arr.shape[-1] != 4:
            raise StructuralError(f"expected (H,W,4) array, got shape {arr.shape}")
        return cls(width=arr.shape[1], height=arr.shape[0], data=arr.astype(np.uint8))

    @classmethod
    def from_pixel_rows(cls, rows: Sequence[Sequence[Mapping[str, Any]]]) -> "PixelBuffer":
        """Build from a row-major grid of {r, g, b, a} objects."""
        height = len(rows)
        width = len(rows[0]) if height else 0
        out = np.zeros((height, width, 4), dtype=np.uint8)
        for y, row in enumerate(rows):
            if len(row) != width:
                raise StructuralError(
                    f"row {y} has {len(row)} pixels, expected {width}"
                )
            for x, px in enumerate(row):
                out[y, x] = (
                    int(px["r"]),
                    int(px["g"]),
                    int(px["b"]),
                    int(px.get("a", 255)),
                )
        return cls.from_rgba_array(out)

    def as_rows(self) -> U8Image:
        """Read-only (H, W, 4) view."""
        return self.data.reshape(self.height, self.width, 4)

    def rgb(self) -> NDArray[np.uint8]:
        """Read-only (H, W, 3) view."""
        return self.as_rows()[..., :3]

    def alpha(self) -> NDArray[np.uint8]:
        return self.as_rows()[..., 3]

    def copy_rows(self) -> U8Image:
        """Writable (H, W, 4) copy for stages building a new buffer."""
        return self.as_rows().copy()

    def pixel(self, x: int, y: int) -> RGBATuple:
        r, g, b, a = self.as_rows()[y, x].tolist()
        return (r, g, b, a)

    def to_pixel_rows(self) -> PixelRows:
        rows: PixelRows = []
        for row in self.as_rows().tolist():
            rows.append([{"r": r, "g": g, "b": b, "a": a} for r, g, b, a in row])
        return rows

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and bool(np.array_equal(self.data, other.data))
        )

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class PaletteEntry:
    """Distinct colour and how many pixels carry it."""

    color: HexStr
    count: int

    def as_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "count": self.count}


Palette = List[PaletteEntry]


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def ensure_buffer(buf: PixelBuffer) -> PixelBuffer:
    """
    Re-check the length invariant of a buffer handed to a stage.
    Catches callers that swapped the data array behind the dataclass.
    """
    if not isinstance(buf, PixelBuffer):
        raise StructuralError(f"expected PixelBuffer, got {type(buf).__name__}")
    if buf.data.size != buf.width * buf.height * 4:
        raise StructuralError(
            f"buffer length {buf.data.size} != {buf.width}*{buf.height}*4"
        )
    return buf


__all__ = [
    # aliases / types
    "RGBTuple",
    "RGBATuple",
    "HexStr",
    "U8Flat",
    "U8Image",
    "PackedKeys",
    "ColorMapping",
    "PixelRows",
    # errors
    "PixelatorError",
    "StructuralError",
    "InvalidDimension",
    "ProjectFormatError",
    "ConfigError",
    # colour keys
    "rgb_to_hex",
    "hex_to_rgb",
    "normalize_hex",
    "pack_rgb",
    "unpack_rgb",
    "packed_to_hex",
    "pack_rows",
    # value objects
    "PixelBuffer",
    "PaletteEntry",
    "Palette",
    # helpers
    "clamp_value",
    "ensure_buffer",
]
