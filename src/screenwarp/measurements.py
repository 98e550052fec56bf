"""
Measurement records and their normalization into eye space.

An input measurement pairs a screen position (arbitrary units) with the view
angles, in degrees, at which that position is seen. Normalization rescales the
screen position into [0,1]^2 and turns the angles into a 3D point at the
working depth (eye at the origin looking along -Z, +X right, +Y up).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from screenwarp.config import Config
from screenwarp.core.bounds import RectBounds
from screenwarp.core.geometry import direction_from_rotations
from screenwarp.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataOrigin:
    source: str | None = None
    line: int | None = None

    @property
    def known(self) -> bool:
        return bool(self.source)

    def __str__(self) -> str:
        if not self.known:
            return "(unknown)"
        if self.line is None:
            return str(self.source)
        return f"{self.source}:{self.line}"


@dataclass(frozen=True)
class InputMeasurement:
    screen: tuple[float, float]
    # (longitude, latitude) or (horizontal, vertical) field angles
    angles_deg: tuple[float, float]
    line: int = 0

    @property
    def longitude(self) -> float:
        return self.angles_deg[0]

    @property
    def latitude(self) -> float:
        return self.angles_deg[1]

    def origin(self, parent: "InputMeasurements") -> DataOrigin:
        return DataOrigin(source=parent.source, line=self.line)


@dataclass(frozen=True)
class InputMeasurements:
    source: str | None = None
    measurements: tuple[InputMeasurement, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.measurements

    def __len__(self) -> int:
        return len(self.measurements)

    def __iter__(self) -> Iterator[InputMeasurement]:
        return iter(self.measurements)


@dataclass(frozen=True)
class NormalizedMeasurement:
    screen: tuple[float, float]  # in [0,1]^2
    point: np.ndarray = field(compare=False)  # (3,) eye space
    line: int = 0

    def origin(self, parent: "NormalizedMeasurements") -> DataOrigin:
        return DataOrigin(source=parent.source, line=self.line)


@dataclass(frozen=True)
class NormalizedMeasurements:
    source: str | None = None
    measurements: tuple[NormalizedMeasurement, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.measurements

    def __len__(self) -> int:
        return len(self.measurements)

    def __iter__(self) -> Iterator[NormalizedMeasurement]:
        return iter(self.measurements)

    def points(self) -> np.ndarray:
        if not self.measurements:
            return np.zeros((0, 3), dtype=np.float64)
        return np.stack([m.point for m in self.measurements], axis=0)

    def screens(self) -> np.ndarray:
        return np.asarray([m.screen for m in self.measurements], dtype=np.float64).reshape(-1, 2)

    def origins(self) -> tuple[DataOrigin, ...]:
        return tuple(m.origin(self) for m in self.measurements)


def screen_extents(inputs: InputMeasurements, config: Config) -> RectBounds:
    """
    Screen rectangle used as normalization denominator: the supplied bounds, or
    the observed min/max of the batch.
    """
    if not config.compute_screen_bounds:
        bounds = config.supplied_screen_bounds
        if bounds is None:
            raise InvalidConfiguration("screen bounds must be supplied when they are not computed")
        if bounds.width == 0 or bounds.height == 0:
            raise InvalidConfiguration(f"supplied screen bounds are degenerate: {bounds}")
        return bounds

    if inputs.empty:
        raise InvalidConfiguration("cannot compute screen bounds of an empty measurement set")

    xy = np.asarray([m.screen for m in inputs], dtype=np.float64).reshape(-1, 2)
    if not np.all(np.isfinite(xy)):
        bad = [m.origin(inputs) for m in inputs if not all(math.isfinite(v) for v in m.screen)]
        raise InvalidConfiguration("non-finite screen coordinates", bad)
    bounds = RectBounds(
        left=float(np.min(xy[:, 0])),
        right=float(np.max(xy[:, 0])),
        top=float(np.max(xy[:, 1])),
        bottom=float(np.min(xy[:, 1])),
    )
    if bounds.width <= 0.0 or bounds.height <= 0.0:
        raise InvalidConfiguration(
            f"screen extent is degenerate (width={bounds.width:g}, height={bounds.height:g})",
            [m.origin(inputs) for m in inputs],
        )
    logger.debug("computed screen bounds %s", bounds)
    return bounds


def angles_to_point(angles_deg: tuple[float, float], config: Config) -> np.ndarray:
    """
    3D point at the working depth for an angle pair, scaled to meters.

    Field angles: (depth*tan(h), depth*tan(v), -depth).
    Longitude/latitude: depth * unit ray; positive longitude is toward +X,
    i.e. a negative rotation about Y.
    """
    a0 = math.radians(float(angles_deg[0]))
    a1 = math.radians(float(angles_deg[1]))
    depth = float(config.depth)
    if config.use_field_angles:
        if abs(a0) >= math.pi / 2 or abs(a1) >= math.pi / 2:
            raise InvalidConfiguration(f"field angles must be within (-90, 90) degrees, got {tuple(angles_deg)}")
        p = np.array([depth * math.tan(a0), depth * math.tan(a1), -depth], dtype=np.float64)
    else:
        p = depth * direction_from_rotations(-a0, a1)
    return p * float(config.to_meters)


def normalize_measurement(
    m: InputMeasurement,
    extents: RectBounds,
    config: Config,
    *,
    parent: InputMeasurements | None = None,
) -> NormalizedMeasurement:
    origin = m.origin(parent) if parent is not None else DataOrigin(line=m.line)
    sx = float(m.screen[0])
    if config.reflect_screen_x:
        sx = -sx
        extents = extents.reflected_horizontally()
    x = (sx - extents.left) / extents.width
    y = (float(m.screen[1]) - extents.bottom) / extents.height
    try:
        point = angles_to_point(m.angles_deg, config)
    except InvalidConfiguration as e:
        raise InvalidConfiguration(e.message, [origin]) from e
    if not (math.isfinite(x) and math.isfinite(y) and np.all(np.isfinite(point))):
        raise InvalidConfiguration("measurement normalizes to non-finite values", [origin])
    return NormalizedMeasurement(screen=(x, y), point=point, line=m.line)


def normalize_measurements(inputs: InputMeasurements, config: Config) -> NormalizedMeasurements:
    extents = screen_extents(inputs, config)
    out = tuple(normalize_measurement(m, extents, config, parent=inputs) for m in inputs)
    return NormalizedMeasurements(source=inputs.source, measurements=out)
