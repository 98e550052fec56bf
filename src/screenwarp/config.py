from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from screenwarp.core.bounds import RectBounds, XYBounds, bounds_from_pair
from screenwarp.errors import InvalidConfiguration

SCHEMA_VERSION = "screenwarp.config.v0"


class ConfigValidationError(InvalidConfiguration):
    pass


@dataclass(frozen=True)
class Config:
    compute_screen_bounds: bool = True
    supplied_screen_bounds: RectBounds | None = None
    # Screen x grows right to left: x and the bounds are both mirrored before normalizing.
    reflect_screen_x: bool = False
    use_field_angles: bool = True
    to_meters: float = 1.0
    depth: float = 2.0

    verify_angles: bool = False
    # Reference axes (xx, xy, yx, yy): row-major 2x2 map from fitted to input angle axes.
    angle_axes: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 1.0)
    max_angle_diff_deg: float = 2.0

    screen_bounds: XYBounds = field(default_factory=XYBounds)
    angle_bounds: XYBounds = field(default_factory=XYBounds)

    overlap_percent: float = 100.0
    mesh_grid: tuple[int, int] | None = None
    coverage_margin: float = 0.05

    verbose: bool = False


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def _number(value: Any, name: str) -> float:
    _require(
        isinstance(value, (int, float)) and not isinstance(value, bool),
        f"{name} must be a number, got {value!r}",
    )
    return float(value)


def _integer(value: Any, name: str) -> int:
    _require(isinstance(value, int) and not isinstance(value, bool), f"{name} must be an integer, got {value!r}")
    return int(value)


def load_config(path: Path) -> Config:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigValidationError(f"cannot read config {path}: {e.strerror or e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigValidationError(f"config {path} is not valid JSON: {e}") from e
    return parse_config(data)


def _xy_bounds(data: Any, name: str) -> XYBounds:
    if data is None:
        return XYBounds()
    _require(isinstance(data, dict), f"{name} must be an object with optional x/y pairs")
    pairs = {}
    for axis in ("x", "y"):
        pair = data.get(axis)
        _require(
            pair is None or (isinstance(pair, (list, tuple)) and len(pair) == 2),
            f"{name}.{axis} must be [min,max] or null",
        )
        if pair is not None:
            pair = (_number(pair[0], f"{name}.{axis}"), _number(pair[1], f"{name}.{axis}"))
        pairs[axis] = bounds_from_pair(pair)
    return XYBounds(x=pairs["x"], y=pairs["y"])


def parse_config(data: Any) -> Config:
    _require(isinstance(data, dict), "config must be a JSON object")
    schema_version = data.get("schema_version", SCHEMA_VERSION)
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    compute_bounds = bool(data.get("compute_screen_bounds", True))
    supplied = data.get("supplied_screen_bounds")
    supplied_bounds = None
    if supplied is not None:
        _require(isinstance(supplied, dict), "supplied_screen_bounds must be {left,right,top,bottom}")
        for k in ("left", "right", "top", "bottom"):
            _require(k in supplied, f"supplied_screen_bounds.{k} is required")
        supplied_bounds = RectBounds(
            left=_number(supplied["left"], "supplied_screen_bounds.left"),
            right=_number(supplied["right"], "supplied_screen_bounds.right"),
            top=_number(supplied["top"], "supplied_screen_bounds.top"),
            bottom=_number(supplied["bottom"], "supplied_screen_bounds.bottom"),
        )
        _require(
            supplied_bounds.width != 0 and supplied_bounds.height != 0,
            "supplied_screen_bounds must have non-zero width and height",
        )
    _require(compute_bounds or supplied_bounds is not None, "supplied_screen_bounds is required when compute_screen_bounds is false")
    reflect = bool(data.get("reflect_screen_x", False))
    _require(not reflect or supplied_bounds is not None, "reflect_screen_x requires supplied_screen_bounds")

    angles = data.get("angles", "field")
    _require(angles in ("field", "lonlat"), "angles must be 'field' or 'lonlat'")

    to_meters = _number(data.get("to_meters", 1.0), "to_meters")
    depth = _number(data.get("depth", 2.0), "depth")
    _require(to_meters > 0.0, "to_meters must be > 0")
    _require(depth > 0.0, "depth must be > 0")

    verify = data.get("verify_angles")
    verify_angles = verify is not None
    axes = (1.0, 0.0, 0.0, 1.0)
    max_diff = 2.0
    if verify is not None:
        _require(isinstance(verify, dict), "verify_angles must be an object")
        axes_raw = verify.get("axes", [1.0, 0.0, 0.0, 1.0])
        _require(isinstance(axes_raw, (list, tuple)) and len(axes_raw) == 4, "verify_angles.axes must be [xx,xy,yx,yy]")
        xx, xy, yx, yy = (_number(a, "verify_angles.axes") for a in axes_raw)
        axes = (xx, xy, yx, yy)
        max_diff = _number(verify.get("max_angle_diff_deg", 2.0), "verify_angles.max_angle_diff_deg")
        _require(max_diff >= 0.0, "verify_angles.max_angle_diff_deg must be >= 0")

    overlap = _number(data.get("overlap_percent", 100.0), "overlap_percent")
    _require(0.0 < overlap <= 100.0, "overlap_percent must be in (0, 100]")

    grid = data.get("mesh_grid")
    mesh_grid = None
    if grid is not None:
        _require(isinstance(grid, (list, tuple)) and len(grid) == 2, "mesh_grid must be [nx,ny]")
        mesh_grid = (_integer(grid[0], "mesh_grid"), _integer(grid[1], "mesh_grid"))
        _require(mesh_grid[0] >= 2 and mesh_grid[1] >= 2, "mesh_grid values must be >= 2")

    margin = _number(data.get("coverage_margin", 0.05), "coverage_margin")
    _require(margin >= 0.0, "coverage_margin must be >= 0")

    return Config(
        compute_screen_bounds=compute_bounds,
        supplied_screen_bounds=supplied_bounds,
        reflect_screen_x=reflect,
        use_field_angles=angles == "field",
        to_meters=to_meters,
        depth=depth,
        verify_angles=verify_angles,
        angle_axes=axes,
        max_angle_diff_deg=max_diff,
        screen_bounds=_xy_bounds(data.get("screen_bounds"), "screen_bounds"),
        angle_bounds=_xy_bounds(data.get("angle_bounds"), "angle_bounds"),
        overlap_percent=overlap,
        mesh_grid=mesh_grid,
        coverage_margin=margin,
        verbose=bool(data.get("verbose", False)),
    )
