from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from screenwarp.io.display_config import display_config_dict, save_display_config
from screenwarp.io.measurement_file import MeasurementFileError, load_measurements, parse_measurements
from screenwarp.measurements import DataOrigin
from screenwarp.mesh import MeshDescription
from screenwarp.screen import ProjectionDescription


def test_parse_measurements_skips_comments_and_blank_lines() -> None:
    text = "# x y long lat\n\n0 0 -30 -20\n1920, 0, 30, -20  # right\n  0\t1080\t-30\t20\n"
    m = parse_measurements(text, source="m.txt")
    assert len(m) == 3
    assert [r.line for r in m] == [3, 4, 5]
    assert m.measurements[1].screen == (1920.0, 0.0)
    assert m.measurements[1].angles_deg == (30.0, -20.0)
    assert m.measurements[1].origin(m) == DataOrigin("m.txt", 4)


@pytest.mark.parametrize("line", ["1 2 3", "1 2 3 x", "1 2 3 nan"])
def test_parse_measurements_reports_bad_line(line: str) -> None:
    with pytest.raises(MeasurementFileError) as info:
        parse_measurements("0 0 0 0\n" + line + "\n", source="m.txt")
    assert info.value.origins == (DataOrigin("m.txt", 2),)
    assert "m.txt:2" in str(info.value)


def test_load_measurements_records_path(tmp_path: Path) -> None:
    p = tmp_path / "meas.txt"
    p.write_text("0 0 0 0\n", encoding="utf-8")
    m = load_measurements(p)
    assert m.source == str(p)


def test_display_config_dict() -> None:
    proj = ProjectionDescription(h_fov_deg=60.0, v_fov_deg=40.0, overlap_percent=100.0, cop=(0.4, 0.5))
    mesh = MeshDescription(rows=(((0.0, 0.0), (0.01, 0.0)), ((1.0, 1.0), (0.99, 1.0))))
    d = display_config_dict(proj, mesh, mirror_right_eye=True)
    assert d["schema_version"] == "screenwarp.display.v0"
    hmd = d["display"]["hmd"]
    assert hmd["field_of_view"]["monocular_horizontal"] == 60.0
    assert hmd["field_of_view"]["monocular_vertical"] == 40.0
    assert hmd["distortion"]["type"] == "mono_point_samples"
    left, right = hmd["distortion"]["mono_point_samples"]
    assert left == [[[0.0, 0.0], [0.01, 0.0]], [[1.0, 1.0], [0.99, 1.0]]]
    assert right[0] == [[1.0, 0.0], [0.99, 0.0]]
    assert [e["center_proj_x"] for e in hmd["eyes"]] == pytest.approx([0.4, 0.6])


def test_display_config_rejects_non_finite(tmp_path: Path) -> None:
    proj = ProjectionDescription(h_fov_deg=math.nan, v_fov_deg=40.0)
    with pytest.raises(ValueError):
        save_display_config(tmp_path / "out.json", proj, MeshDescription())


def test_save_display_config_roundtrips_json(tmp_path: Path) -> None:
    proj = ProjectionDescription(h_fov_deg=60.0, v_fov_deg=40.0)
    out = save_display_config(tmp_path / "sub" / "out.json", proj, MeshDescription())
    data = json.loads(out.read_text(encoding="utf-8"))
    assert len(data["display"]["hmd"]["eyes"]) == 1
    assert data["display"]["hmd"]["distortion"]["mono_point_samples"] == [[]]


def test_load_measurements_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "absent.txt"
    with pytest.raises(MeasurementFileError) as info:
        load_measurements(path)
    assert info.value.origins == (DataOrigin(source=str(path)),)
    assert str(path) in str(info.value)
