"""Tests for the pipeline orchestrator, the Workbench lifecycle and sizing."""

from __future__ import annotations

import numpy as np
import pytest

from pixelator.analysis import count_distinct
from pixelator.core_types import (
    ConfigError,
    InvalidDimension,
    PaletteEntry,
    PixelBuffer,
    PixelatorError,
)
from pixelator.pipeline import PipelineParameters, Workbench, run
from pixelator.project import parse_snapshot
from pixelator.sizing import clamp_size_value, target_dimensions


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _example_base() -> PixelBuffer:
    arr = np.array(
        [
            [(0, 0, 0, 255), (255, 255, 255, 255)],
            [(100, 100, 100, 255), (200, 200, 200, 255)],
        ],
        dtype=np.uint8,
    )
    return PixelBuffer.from_rgba_array(arr)


def _params(base: PixelBuffer, **kwargs) -> PipelineParameters:
    return PipelineParameters(
        target_width=base.width, target_height=base.height, **kwargs
    )


def _gradient_image(width: int = 40, height: int = 20) -> np.ndarray:
    """RGB image with many distinct colours."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            img[y, x] = (x * 6 % 256, y * 12 % 256, (x * y) % 256)
    return img


def _rgb_list(buf: PixelBuffer):
    return [tuple(p[:3]) for p in buf.as_rows().reshape(-1, 4).tolist()]


# ---------------------------------------------------------------------------
# Tests: run()
# ---------------------------------------------------------------------------


class TestRun:
    def test_worked_example(self):
        base = _example_base()
        buf, palette = run(base, _params(base, color_count=3))
        assert _rgb_list(buf) == [(0, 0, 0), (255, 255, 255), (0, 0, 0), (255, 255, 255)]
        assert palette == [PaletteEntry("#000000", 2), PaletteEntry("#ffffff", 2)]

    def test_worked_example_with_mapping(self):
        base = _example_base()
        params = _params(base, color_count=3, color_mapping={"#000000": "#ff0000"})
        buf, palette = run(base, params)
        assert _rgb_list(buf) == [(255, 0, 0), (255, 255, 255), (255, 0, 0), (255, 255, 255)]
        assert palette == [PaletteEntry("#ff0000", 2), PaletteEntry("#ffffff", 2)]

    def test_quantize_skipped_when_count_covers_all_colours(self):
        base = _example_base()
        buf, palette = run(base, _params(base, color_count=4))
        assert buf == base
        assert [e.count for e in palette] == [1, 1, 1, 1]

    def test_max_colors_hint_is_used(self):
        base = _example_base()
        buf, _palette = run(base, _params(base, color_count=4, max_colors=5))
        assert count_distinct(buf) == 2

    def test_remap_matches_post_quantization_colours_only(self):
        base = _example_base()
        # 0x64 == 100: a pre-quantization colour, gone after snapping to 0/255
        params = _params(base, color_count=3, color_mapping={"#646464": "#ff0000"})
        buf, _palette = run(base, params)
        assert (255, 0, 0) not in _rgb_list(buf)

    def test_contrast_applied_before_analysis(self):
        base = _example_base()
        buf, palette = run(base, _params(base, contrast=2.0, color_count=256))
        assert _rgb_list(buf) == [(0, 0, 0), (255, 255, 255), (72, 72, 72), (255, 255, 255)]
        assert palette[0] == PaletteEntry("#ffffff", 2)

    def test_deterministic_and_pure(self):
        base = PixelBuffer.from_rgba_array(
            np.random.RandomState(1).randint(0, 256, (16, 16, 4), dtype=np.uint8)
        )
        before = base.copy_rows()
        mapping = {"#000000": "#123456"}
        params = _params(base, contrast=1.3, color_count=27, color_mapping=mapping)
        first = run(base, params)
        second = run(base, params)
        assert first.buffer == second.buffer
        assert first.palette == second.palette
        assert np.array_equal(base.as_rows(), before)
        assert mapping == {"#000000": "#123456"}

    def test_all_stages_skipped_returns_fresh_buffer(self):
        base = _example_base()
        result = run(base, _params(base, color_count=256))
        assert result.buffer == base
        assert result.buffer is not base

    def test_alpha_preserved_through_every_stage(self):
        arr = np.random.RandomState(4).randint(0, 256, (8, 8, 4), dtype=np.uint8)
        base = PixelBuffer.from_rgba_array(arr)
        params = _params(
            base, contrast=0.7, color_count=8, color_mapping={"#ffffff": "#000000"}
        )
        buf, _palette = run(base, params)
        assert np.array_equal(buf.alpha(), base.alpha())

    def test_debug_output(self, capsys):
        base = _example_base()
        run(base, _params(base, color_count=3), debug=True)
        out = capsys.readouterr().out
        assert out.startswith("[debug]")
        assert "quantize" in out


class TestParameters:
    def test_contrast_must_be_positive(self):
        with pytest.raises(ConfigError):
            PipelineParameters(target_width=2, target_height=2, contrast=0.0)

    def test_dimensions_must_be_positive(self):
        with pytest.raises(InvalidDimension):
            PipelineParameters(target_width=0, target_height=2)

    def test_mapping_is_a_read_only_snapshot(self):
        mapping = {"#000000": "#ffffff"}
        params = PipelineParameters(target_width=1, target_height=1, color_mapping=mapping)
        mapping["#111111"] = "#222222"
        assert dict(params.color_mapping) == {"#000000": "#ffffff"}
        with pytest.raises(TypeError):
            params.color_mapping["#333333"] = "#444444"  # type: ignore[index]


# ---------------------------------------------------------------------------
# Tests: Workbench
# ---------------------------------------------------------------------------


class TestWorkbench:
    def test_load_image_sets_base_and_colour_bounds(self):
        bench = Workbench()
        base = bench.load_image(_gradient_image(40, 20), size_mode="height", size_value=10)
        assert (base.width, base.height) == (20, 10)
        distinct = count_distinct(base)
        assert bench.params.color_count == distinct
        assert bench.params.max_colors == distinct

    def test_rerender_restarts_from_base(self):
        bench = Workbench()
        bench.load_image(_gradient_image(), size_value=10)
        full = bench.render().buffer
        bench.update(color_count=8)
        reduced = bench.render().buffer
        assert count_distinct(reduced) <= 8
        bench.update(color_count=bench.params.max_colors)
        assert bench.render().buffer == full

    def test_mapping_survives_new_image(self):
        bench = Workbench(color_mapping={"#000000": "#ff0000"})
        bench.load_image(_gradient_image(), size_value=10)
        bench.map_color("#ffffff", "#00ff00")
        bench.load_image(np.zeros((4, 4, 3), dtype=np.uint8), size_value=4)
        assert bench.color_mapping == {"#000000": "#ff0000", "#ffffff": "#00ff00"}
        buf, palette = bench.render()
        assert palette == [PaletteEntry("#ff0000", 16)]

    def test_map_color_with_same_target_removes_entry(self):
        bench = Workbench()
        bench.map_color("#000000", "#ff0000")
        bench.map_color("#000000", "#000000")
        assert bench.color_mapping == {}

    def test_set_mapping_reports_malformed_entries(self):
        bench = Workbench()
        rejected = bench.set_mapping({"#000000": "#ff0000", "#zzzzzz": "#000000"})
        assert rejected == [("#zzzzzz", "#000000")]
        assert bench.color_mapping == {"#000000": "#ff0000"}
        bench.clear_mapping()
        assert bench.color_mapping == {}

    def test_resize_rebuilds_from_source(self):
        bench = Workbench()
        bench.load_image(_gradient_image(40, 20), size_mode="height", size_value=10)
        base = bench.resize(size_mode="width", size_value=8)
        assert (base.width, base.height) == (8, 4)
        assert bench.params.size_mode == "width"

    def test_bad_update_leaves_state(self):
        bench = Workbench()
        bench.load_image(_gradient_image(), size_value=10)
        before = bench.params
        with pytest.raises(ConfigError):
            bench.update(contrast=-1.0)
        assert bench.params is before

    def test_bad_size_mode_leaves_state(self):
        bench = Workbench()
        bench.load_image(_gradient_image(), size_value=10)
        with pytest.raises(ConfigError):
            bench.resize(size_mode="diagonal")
        assert bench.params.size_mode == "height"

    def test_render_before_load(self):
        with pytest.raises(PixelatorError):
            Workbench().render()

    def test_load_project_replaces_mapping(self):
        base = _example_base()
        snapshot = parse_snapshot(
            {
                "pixelatorProject": True,
                "width": 2,
                "height": 2,
                "pixels": base.to_pixel_rows(),
                "settings": {"colorCount": 3, "colorMapping": {"#FFFFFF": "#0000ff"}},
            }
        )
        bench = Workbench(color_mapping={"#000000": "#ff0000"})
        bench.load_project(snapshot)
        assert bench.color_mapping == {"#ffffff": "#0000ff"}
        assert bench.params.max_colors == 4
        buf, palette = bench.render()
        assert palette == [PaletteEntry("#000000", 2), PaletteEntry("#0000ff", 2)]

    def test_resize_without_source_clamps_colour_count(self):
        base = _example_base()
        snapshot = parse_snapshot(
            {
                "pixelatorProject": True,
                "width": 2,
                "height": 2,
                "pixels": base.to_pixel_rows(),
                "settings": {"colorCount": 200},
            }
        )
        bench = Workbench()
        bench.load_project(snapshot)
        same = bench.resize(size_value=80)
        assert same == base
        assert bench.params.color_count == 4


# ---------------------------------------------------------------------------
# Tests: sizing
# ---------------------------------------------------------------------------


class TestSizing:
    def test_height_mode_derives_width(self):
        assert target_dimensions(200, 100, "height", 50) == (100, 50)

    def test_width_mode_derives_height(self):
        assert target_dimensions(100, 200, "width", 50) == (50, 100)

    def test_fixed_side_is_clamped(self):
        assert clamp_size_value(0) == 1
        assert clamp_size_value(500) == 100
        assert target_dimensions(300, 100, "height", 500) == (300, 100)

    def test_derived_side_never_zero(self):
        assert target_dimensions(1000, 1, "width", 10) == (10, 1)

    def test_rounds_half_up(self):
        assert target_dimensions(5, 2, "height", 1) == (3, 1)

    def test_unknown_mode(self):
        with pytest.raises(ConfigError):
            target_dimensions(10, 10, "diagonal", 5)
