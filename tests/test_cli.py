from __future__ import annotations

import json
from pathlib import Path

import pytest

from screenwarp.cli.main import build_parser, config_from_args, main
from screenwarp.core.bounds import RectBounds


def _write_corners(path: Path, offset_center: bool = False) -> None:
    lines = ["# screen_x screen_y h v"]
    for sy, b in ((0, -20), (540, 0), (1080, 20)):
        for sx, a in ((0, -30), (960, 0), (1920, 30)):
            if offset_center and sx == 960 and sy == 540:
                a = 5
            lines.append(f"{sx} {sy} {a} {b}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_cli_writes_display_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    meas = tmp_path / "meas.txt"
    out = tmp_path / "display.json"
    _write_corners(meas)
    assert main([str(meas), "--out", str(out), "--mirror-right-eye"]) == 0
    assert f"Wrote {out}" in capsys.readouterr().out

    data = json.loads(out.read_text(encoding="utf-8"))
    fov = data["display"]["hmd"]["field_of_view"]
    assert fov["monocular_horizontal"] == pytest.approx(60.0)
    assert fov["monocular_vertical"] == pytest.approx(40.0)
    assert len(data["display"]["hmd"]["distortion"]["mono_point_samples"]) == 2
    assert len(data["display"]["hmd"]["distortion"]["mono_point_samples"][0]) == 9


def test_cli_reports_angle_mismatch(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    meas = tmp_path / "meas.txt"
    _write_corners(meas, offset_center=True)
    rc = main([str(meas), "--out", str(tmp_path / "d.json"), "--verify-angles", "1", "0", "0", "1", "2"])
    assert rc == 0
    err = capsys.readouterr().err
    assert f"{meas}:6" in err
    assert err.count("angle mismatch") == 1


def test_cli_fails_on_degenerate_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    meas = tmp_path / "meas.txt"
    meas.write_text("0 0 -30 -20\n1 1 30 20\n", encoding="utf-8")
    out = tmp_path / "d.json"
    assert main([str(meas), "--out", str(out)]) == 2
    assert "error:" in capsys.readouterr().err
    assert not out.exists()


def test_cli_flags_override_config() -> None:
    args = build_parser().parse_args(
        ["m.txt", "--out", "o.json", "--lonlat", "--depth", "3", "--screen-bounds", "0", "10", "5", "0", "--reflect-bounds", "--grid", "4", "3"]
    )
    cfg = config_from_args(args)
    assert not cfg.use_field_angles
    assert cfg.depth == 3.0
    assert not cfg.compute_screen_bounds
    assert cfg.supplied_screen_bounds == RectBounds(left=0.0, right=10.0, top=5.0, bottom=0.0)
    assert cfg.reflect_screen_x
    assert cfg.mesh_grid == (4, 3)


def test_cli_reflected_bounds_keep_screen_in_unit_square(tmp_path: Path) -> None:
    meas = tmp_path / "meas.txt"
    # Screen x grows right to left: x=1920 is the leftmost column.
    meas.write_text(
        "1920 0 -30 -20\n0 0 30 -20\n1920 1080 -30 20\n0 1080 30 20\n",
        encoding="utf-8",
    )
    out = tmp_path / "d.json"
    rc = main([str(meas), "--out", str(out), "--screen-bounds", "0", "1920", "1080", "0", "--reflect-bounds"])
    assert rc == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    rows = data["display"]["hmd"]["distortion"]["mono_point_samples"][0]
    physical = [r[0] for r in rows]
    assert physical == [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]
    for from_xy, to_xy in rows:
        assert to_xy == pytest.approx(from_xy, abs=1e-9)


def test_cli_reflect_bounds_requires_screen_bounds(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    meas = tmp_path / "meas.txt"
    _write_corners(meas)
    out = tmp_path / "d.json"
    assert main([str(meas), "--out", str(out), "--reflect-bounds"]) == 2
    assert "--reflect-bounds requires --screen-bounds" in capsys.readouterr().err
    assert not out.exists()


@pytest.mark.parametrize(
    "content",
    [
        None,
        "{not json",
        "[1, 2, 3]",
        '{"schema_version": "screenwarp.config.v0", "depth": "abc"}',
    ],
)
def test_cli_bad_config_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str], content) -> None:
    meas = tmp_path / "meas.txt"
    _write_corners(meas)
    cfg = tmp_path / "config.json"
    if content is not None:
        cfg.write_text(content, encoding="utf-8")
    assert main([str(meas), "--out", str(tmp_path / "d.json"), "--config", str(cfg)]) == 2
    assert "error:" in capsys.readouterr().err


def test_cli_missing_measurements_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(tmp_path / "absent.txt"), "--out", str(tmp_path / "d.json")]) == 2
    assert "cannot read measurements" in capsys.readouterr().err
