from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

from screenwarp.mesh import MeshDescription
from screenwarp.screen import ProjectionDescription

SCHEMA_VERSION = "screenwarp.display.v0"


def _finite(x: float, name: str) -> float:
    x = float(x)
    if not math.isfinite(x):
        raise ValueError(f"non-finite value for {name}")
    return x


def _mesh_rows(mesh: MeshDescription) -> list[list[list[float]]]:
    return [
        [[_finite(f[0], "mesh"), _finite(f[1], "mesh")], [_finite(t[0], "mesh"), _finite(t[1], "mesh")]]
        for f, t in mesh.rows
    ]


def display_config_dict(
    projection: ProjectionDescription,
    mesh: MeshDescription,
    *,
    mirror_right_eye: bool = False,
) -> dict[str, Any]:
    """
    Display configuration fragment: field of view + mono point-sample distortion.

    With `mirror_right_eye`, the measured screen is taken as the left eye and the
    right eye is its horizontal reflection.
    """
    fov = {
        "monocular_horizontal": _finite(projection.h_fov_deg, "h_fov_deg"),
        "monocular_vertical": _finite(projection.v_fov_deg, "v_fov_deg"),
        "overlap_percent": _finite(projection.overlap_percent, "overlap_percent"),
        "pitch_tilt": 0,
    }
    eyes = [
        {
            "center_proj_x": _finite(projection.cop[0], "cop"),
            "center_proj_y": _finite(projection.cop[1], "cop"),
            "rotate_180": 0,
        }
    ]
    samples = [_mesh_rows(mesh)]
    if mirror_right_eye:
        eyes.append(
            {
                "center_proj_x": 1.0 - _finite(projection.cop[0], "cop"),
                "center_proj_y": _finite(projection.cop[1], "cop"),
                "rotate_180": 0,
            }
        )
        samples.append(_mesh_rows(mesh.mirrored()))

    return {
        "schema_version": SCHEMA_VERSION,
        "display": {
            "hmd": {
                "field_of_view": fov,
                "distortion": {
                    "type": "mono_point_samples",
                    "mono_point_samples": samples,
                },
                "eyes": eyes,
            }
        },
    }


def save_display_config(
    path: Path,
    projection: ProjectionDescription,
    mesh: MeshDescription,
    *,
    mirror_right_eye: bool = False,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = display_config_dict(projection, mesh, mirror_right_eye=mirror_right_eye)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
