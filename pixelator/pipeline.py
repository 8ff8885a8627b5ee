# pixelator/pipeline.py
from __future__ import annotations

"""
Pipeline orchestration.

Stage order is fixed:
  base buffer -> contrast -> quantize (if needed) -> remap (if any) -> analyze

Every run starts from the base buffer handed in. Re-running from an earlier
output would compound rounding (quantizing twice at different levels is not
the same as quantizing once), so callers keep the base and pass it each time.

Workbench holds that base buffer plus the current parameters for one loaded
image, mirroring the editor's lifecycle: load, resize, tweak, render.
"""

import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, List, Mapping, NamedTuple, Optional, Tuple

from .analysis import analyze, count_distinct
from .constants import (
    DEFAULT_COLOR_COUNT,
    DEFAULT_CONTRAST,
    DEFAULT_SIZE_MODE,
    DEFAULT_SIZE_VALUE,
)
from .contrast import apply_contrast
from .core_types import (
    ColorMapping,
    ConfigError,
    InvalidDimension,
    Palette,
    PixelBuffer,
    PixelatorError,
    ensure_buffer,
)
from .quantize import quantize, quantize_levels
from .remap import normalize_mapping, remap, set_mapping_entry
from .resample import RasterSource, resample, source_size
from .sizing import clamp_size_value, target_dimensions
from .utils import debug_log, format_seconds_compact, key_value_pairs_to_string

if TYPE_CHECKING:  # pragma: no cover
    from .project import ProjectSnapshot


@dataclass(frozen=True)
class PipelineParameters:
    """
    Immutable snapshot of everything a run needs.

    target_width / target_height describe the base grid; size_mode / size_value
    are the user inputs they were derived from and are kept for project files.
    max_colors is the distinct-colour count of the base buffer when known.
    """

    target_width: int
    target_height: int
    contrast: float = DEFAULT_CONTRAST
    color_count: int = DEFAULT_COLOR_COUNT
    color_mapping: Mapping[str, str] = field(default_factory=dict)
    size_mode: str = DEFAULT_SIZE_MODE
    size_value: int = DEFAULT_SIZE_VALUE
    max_colors: Optional[int] = None

    def __post_init__(self) -> None:
        if int(self.target_width) < 1 or int(self.target_height) < 1:
            raise InvalidDimension(
                f"target dimensions must be >= 1, got {self.target_width}x{self.target_height}"
            )
        if not float(self.contrast) > 0.0:
            raise ConfigError(f"contrast must be positive, got {self.contrast}")
        object.__setattr__(
            self, "color_mapping", MappingProxyType(dict(self.color_mapping or {}))
        )

    def with_changes(self, **changes: Any) -> "PipelineParameters":
        return replace(self, **changes)

    def mapping_dict(self) -> ColorMapping:
        return dict(self.color_mapping)


class PipelineResult(NamedTuple):
    buffer: PixelBuffer
    palette: Palette


def run(
    base: PixelBuffer, params: PipelineParameters, debug: bool = False
) -> PipelineResult:
    """
    Derive the final buffer and its palette from the base buffer.

    Contrast is skipped at factor 1.0, quantization when the requested count
    already covers every distinct colour of the base, remapping when the
    mapping is empty. Neither `base` nor `params.color_mapping` is modified.
    """
    ensure_buffer(base)
    t0 = time.perf_counter()
    applied: List[str] = []

    buf = base
    if float(params.contrast) != 1.0:
        buf = apply_contrast(buf, params.contrast)
        applied.append("contrast")

    max_colors = (
        params.max_colors if params.max_colors is not None else count_distinct(base)
    )
    if int(params.color_count) < int(max_colors):
        buf = quantize(buf, params.color_count)
        applied.append("quantize")

    if params.color_mapping:
        buf = remap(buf, params.color_mapping)
        applied.append("remap")

    palette = analyze(buf)

    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Size", f"{base.width}x{base.height}"),
                    ("Stages", ",".join(applied) or "-"),
                    ("Levels", quantize_levels(params.color_count)),
                    ("Base colours", int(max_colors)),
                    ("Out colours", len(palette)),
                    ("Time", format_seconds_compact(time.perf_counter() - t0)),
                ]
            )
        )

    # Stages always return new buffers; a full skip still hands back a copy.
    if buf is base:
        buf = PixelBuffer.from_rgba_array(base.copy_rows())
    return PipelineResult(buffer=buf, palette=palette)


class Workbench:
    """
    State for one loaded image: the retained source, the base buffer, and the
    current parameters. The colour mapping outlives image loads; a loaded
    project replaces it wholesale.
    """

    def __init__(
        self,
        color_mapping: Optional[Mapping[str, str]] = None,
        contrast: float = DEFAULT_CONTRAST,
        size_mode: str = DEFAULT_SIZE_MODE,
        size_value: int = DEFAULT_SIZE_VALUE,
    ) -> None:
        self.source: Optional[RasterSource] = None
        self.base: Optional[PixelBuffer] = None
        self.params: Optional[PipelineParameters] = None
        self._contrast = float(contrast)
        self._size_mode = size_mode
        self._size_value = int(size_value)
        self._mapping: ColorMapping = dict(color_mapping or {})

    # Loading

    def load_image(
        self,
        image: RasterSource,
        size_mode: Optional[str] = None,
        size_value: Optional[int] = None,
    ) -> PixelBuffer:
        """Resample a decoded image into a new base buffer and reset colour counts."""
        self.source = image
        return self._rebuild_base(size_mode, size_value)

    def load_project(self, snapshot: "ProjectSnapshot") -> PixelBuffer:
        """Adopt a project's pixels as the base buffer and its settings as parameters."""
        self.source = None
        self.base = snapshot.base
        self._mapping = snapshot.params.mapping_dict()
        self._contrast = float(snapshot.params.contrast)
        self._size_mode = snapshot.params.size_mode
        self._size_value = int(snapshot.params.size_value)
        self.params = snapshot.params.with_changes(
            target_width=snapshot.base.width,
            target_height=snapshot.base.height,
            max_colors=count_distinct(snapshot.base),
        )
        return self.base

    def resize(
        self, size_mode: Optional[str] = None, size_value: Optional[int] = None
    ) -> PixelBuffer:
        """
        Re-derive the base buffer at a new size from the retained source.
        Project-loaded images have no source; only the colour bounds are refreshed.
        """
        if self.source is not None:
            return self._rebuild_base(size_mode, size_value)
        base, params = self._require_loaded()
        distinct = count_distinct(base)
        self.params = params.with_changes(
            max_colors=distinct, color_count=min(int(params.color_count), distinct)
        )
        return base

    def _rebuild_base(
        self, size_mode: Optional[str], size_value: Optional[int]
    ) -> PixelBuffer:
        if self.source is None:
            raise PixelatorError("no image loaded")
        mode = self._size_mode if size_mode is None else size_mode
        value = self._size_value if size_value is None else clamp_size_value(size_value)

        src_w, src_h = source_size(self.source)
        width, height = target_dimensions(src_w, src_h, mode, value)
        base = resample(self.source, width, height)
        distinct = count_distinct(base)
        self._size_mode, self._size_value = mode, value
        self.base = base
        self.params = PipelineParameters(
            target_width=width,
            target_height=height,
            contrast=self._contrast,
            color_count=distinct,
            color_mapping=self._mapping,
            size_mode=self._size_mode,
            size_value=self._size_value,
            max_colors=distinct,
        )
        return self.base

    # Parameters

    def _require_loaded(self) -> Tuple[PixelBuffer, PipelineParameters]:
        if self.base is None or self.params is None:
            raise PixelatorError("no image loaded")
        return self.base, self.params

    def update(self, **changes: Any) -> PipelineParameters:
        """Replace parameter fields; returns the new snapshot."""
        _base, params = self._require_loaded()
        if "color_mapping" in changes:
            changes["color_mapping"] = dict(changes["color_mapping"] or {})
        new_params = params.with_changes(**changes)
        self._contrast = float(new_params.contrast)
        self._mapping = new_params.mapping_dict()
        self.params = new_params
        return new_params

    @property
    def color_mapping(self) -> ColorMapping:
        return dict(self._mapping)

    def set_mapping(
        self, mapping: Optional[Mapping[str, str]]
    ) -> List[Tuple[str, str]]:
        """Replace the mapping; malformed entries are dropped and returned."""
        clean, rejected = normalize_mapping(mapping)
        self._mapping = clean
        if self.params is not None:
            self.params = self.params.with_changes(color_mapping=clean)
        return rejected

    def map_color(self, source: str, target: Optional[str]) -> ColorMapping:
        """Set or (with an empty/identical target) remove one mapping entry."""
        self._mapping = set_mapping_entry(self._mapping, source, target)
        if self.params is not None:
            self.params = self.params.with_changes(color_mapping=self._mapping)
        return dict(self._mapping)

    def clear_mapping(self) -> None:
        self.set_mapping({})

    # Rendering

    def render(self, debug: bool = False) -> PipelineResult:
        base, params = self._require_loaded()
        return run(base, params, debug=debug)


__all__ = ["PipelineParameters", "PipelineResult", "run", "Workbench"]
