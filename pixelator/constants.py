# pixelator/constants.py
"""
Defaults and tunables used across the project.

- Sizing limits (MAX_DIMENSION, DEFAULT_SIZE_*)
- Colour / contrast defaults
- Export and project snapshot constants
"""
from __future__ import annotations

from typing import FrozenSet, Tuple

# =========
# Sizing
# =========
SIZE_MODES: Tuple[str, str] = ("height", "width")
DEFAULT_SIZE_MODE = "height"
DEFAULT_SIZE_VALUE = 50
MAX_DIMENSION = 100  # working size; larger grids are clamped
MIN_DIMENSION = 1

# =================
# Colour / contrast
# =================
DEFAULT_COLOR_COUNT = 256
MIN_COLOR_COUNT = 2
MIN_QUANT_LEVELS = 2
DEFAULT_CONTRAST = 1.0
CONTRAST_RANGE: Tuple[float, float] = (0.5, 2.0)
CONTRAST_PIVOT = 128

# =========
# Export
# =========
EXPORT_SCALE = 10
OUTPUT_SUFFIX = "_pixel"
IMAGE_EXTENSIONS: FrozenSet[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}
)
PROJECT_EXTENSION = ".json"

# ================
# Project snapshot
# ================
PROJECT_MARKER = "pixelatorProject"
PROJECT_VERSION = "1.0"
