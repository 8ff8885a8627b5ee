# pixelator/__init__.py
"""
pixelator package.

Purpose:
  Turn a full-colour image into a small, reduced-palette pixel-art grid.
  See pixelate.py for the CLI.

Public API:
  resample        : nearest-neighbour downsampling to the target grid.
  apply_contrast  : linear contrast around the channel midpoint.
  quantize        : uniform per-channel grid quantizer.
  remap           : exact colour substitution from a ColorMapping.
  analyze         : frequency-sorted palette; count_distinct for unique colours.
  run             : fixed-order pipeline from a base buffer.
  Workbench       : base buffer + parameters for one loaded image.
  core_types      : PixelBuffer, PaletteEntry, error types, colour keys.
  image_io        : Pillow load/export helpers.
  project         : JSON project snapshots and mapping files.

Quick start:
  from pixelator import Workbench
  from pixelator.image_io import load_image

  bench = Workbench()
  bench.load_image(load_image(path), size_mode="height", size_value=40)
  bench.update(color_count=27, contrast=1.2)
  buffer, palette = bench.render()
"""

__version__ = "0.1.0"

from . import core_types
from . import image_io
from . import project
from . import utils

from .analysis import analyze, count_distinct
from .contrast import apply_contrast
from .core_types import (
    ConfigError,
    InvalidDimension,
    PaletteEntry,
    PixelBuffer,
    PixelatorError,
    ProjectFormatError,
    StructuralError,
)
from .pipeline import PipelineParameters, PipelineResult, Workbench, run
from .quantize import quantize, quantize_levels
from .remap import remap
from .resample import resample
from .sizing import target_dimensions

__all__ = [
    "__version__",
    "core_types",
    "image_io",
    "project",
    "utils",
    "PixelBuffer",
    "PaletteEntry",
    "PixelatorError",
    "StructuralError",
    "InvalidDimension",
    "ProjectFormatError",
    "ConfigError",
    "resample",
    "apply_contrast",
    "quantize",
    "quantize_levels",
    "remap",
    "analyze",
    "count_distinct",
    "target_dimensions",
    "PipelineParameters",
    "PipelineResult",
    "run",
    "Workbench",
]
