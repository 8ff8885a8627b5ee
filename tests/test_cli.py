"""End-to-end tests for the pixelate command line."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
from PIL import Image

import pixelate


def _quadrant_png(path: Path, width: int = 40, height: int = 20) -> Path:
    """Four flat quadrants: black, white, reddish, bluish."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    hw, hh = width // 2, height // 2
    img[:hh, :hw] = (0, 0, 0)
    img[:hh, hw:] = (255, 255, 255)
    img[hh:, :hw] = (250, 10, 10)
    img[hh:, hw:] = (10, 10, 240)
    Image.fromarray(img).save(path)
    return path


# ---------------------------------------------------------------------------
# Tests: argument helpers
# ---------------------------------------------------------------------------


class TestArgs:
    def test_parse_map_args_skips_bad_entries(self, capsys):
        mapping = pixelate.parse_map_args(["#000000=#FF0000", "nonsense", "#12=#000000"])
        assert mapping == {"#000000": "#ff0000"}
        out = capsys.readouterr().out
        assert out.count("[warn]") == 2

    def test_mapping_file_then_cli_overrides(self, tmp_path: Path):
        mfile = tmp_path / "map.json"
        mfile.write_text(json.dumps({"#000000": "#111111", "#ffffff": "#222222"}))
        args = pixelate.parse_cli_args(
            [str(tmp_path), "--mapping-file", str(mfile), "--map", "#000000=#333333"]
        )
        assert pixelate.build_mapping(args) == {"#000000": "#333333", "#ffffff": "#222222"}


# ---------------------------------------------------------------------------
# Tests: main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_single_image_with_project(self, tmp_path: Path):
        src = _quadrant_png(tmp_path / "quad.png")
        outdir = tmp_path / "out"
        code = pixelate.main(
            [
                str(src),
                "--outdir", str(outdir),
                "--size", "10",
                "--colors", "8",
                "--map", "#000000=#00ff00",
                "--project",
            ]
        )
        assert code == 0

        with Image.open(outdir / "quad_pixel.png") as im:
            assert im.size == (200, 100)
            assert im.getpixel((0, 0)) == (0, 255, 0, 255)

        record = json.loads((outdir / "quad_pixel.json").read_text())
        assert record["pixelatorProject"] is True
        assert (record["width"], record["height"]) == (20, 10)
        colors = {row["color"] for row in record["colorStats"]}
        assert "#00ff00" in colors
        assert "#000000" not in colors
        assert record["settings"]["colorMapping"] == {"#000000": "#00ff00"}

    def test_project_as_input(self, tmp_path: Path):
        src = _quadrant_png(tmp_path / "quad.png")
        first = tmp_path / "first"
        assert pixelate.main([str(src), "--outdir", str(first), "--size", "10", "--project"]) == 0

        second = tmp_path / "second"
        code = pixelate.main(
            [str(first / "quad_pixel.json"), "--outdir", str(second), "--scale", "1"]
        )
        assert code == 0
        with Image.open(second / "quad_pixel_pixel.png") as im:
            assert im.size == (20, 10)

    def test_folder_skips_outputs_and_reports_failures(self, tmp_path: Path):
        _quadrant_png(tmp_path / "a.png")
        _quadrant_png(tmp_path / "b_pixel.png")
        (tmp_path / "broken.json").write_text("{nope", encoding="utf-8")

        inputs = pixelate.collect_inputs(tmp_path)
        assert [p.name for p in inputs] == ["a.png", "broken.json"]

        assert pixelate.main([str(tmp_path), "--size", "4", "--scale", "1"]) == 1
        assert (tmp_path / "a_pixel.png").exists()
        assert not (tmp_path / "b_pixel_pixel.png").exists()

    def test_project_with_bad_dimensions_is_reported(self, tmp_path: Path, capsys):
        rows = [[{"r": 0, "g": 0, "b": 0, "a": 255}]]
        bad = tmp_path / "bad.json"
        bad.write_text(
            json.dumps({"pixelatorProject": True, "width": "abc", "height": 1, "pixels": rows}),
            encoding="utf-8",
        )
        assert pixelate.main([str(bad), "--scale", "1"]) == 1
        assert "[error] bad.json" in capsys.readouterr().err

    def test_missing_source(self, tmp_path: Path, capsys):
        assert pixelate.main([str(tmp_path / "nope.png")]) == 2
        assert "[error]" in capsys.readouterr().err

    def test_bad_scale(self, tmp_path: Path):
        src = _quadrant_png(tmp_path / "quad.png")
        assert pixelate.main([str(src), "--scale", "0"]) == 2

    def test_save_mapping(self, tmp_path: Path):
        src = _quadrant_png(tmp_path / "quad.png")
        mfile = tmp_path / "prefs.json"
        code = pixelate.main(
            [
                str(src),
                "--outdir", str(tmp_path / "out"),
                "--size", "4",
                "--map", "#FFFFFF=#0000ff",
                "--mapping-file", str(mfile),
                "--save-mapping",
            ]
        )
        assert code == 0
        assert json.loads(mfile.read_text()) == {"#ffffff": "#0000ff"}
