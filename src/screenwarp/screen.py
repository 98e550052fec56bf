from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from screenwarp.config import Config
from screenwarp.core.geometry import Plane, fit_plane, project_onto_plane_checked
from screenwarp.errors import DegenerateGeometry, NumericFailure
from screenwarp.measurements import NormalizedMeasurements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionDescription:
    h_fov_deg: float
    v_fov_deg: float
    overlap_percent: float = 100.0
    # Center of projection as a fraction of the screen extent.
    cop: tuple[float, float] = (0.5, 0.5)


@dataclass(frozen=True, eq=False)
class ScreenDetails:
    """
    Fitted screen quantities shared by the projection and the mesh.

    Coordinates (u, w) are measured in the plane frame: origin at the eye's
    perpendicular foot, u along the horizontal axis, w along the vertical axis.
    """

    plane: Plane
    screen_left: np.ndarray  # (3,)
    screen_right: np.ndarray  # (3,)
    max_y: float

    def plane_coordinates(self, points_on_plane: np.ndarray) -> np.ndarray:
        foot, h, v = self.plane.frame()
        rel = np.asarray(points_on_plane, dtype=np.float64).reshape(-1, 3) - foot[None, :]
        return np.stack([rel @ h, rel @ v], axis=-1)

    @property
    def u_left(self) -> float:
        return float(self.plane_coordinates(self.screen_left)[0, 0])

    @property
    def u_right(self) -> float:
        return float(self.plane_coordinates(self.screen_right)[0, 0])

    def normalized_from_plane(self, uw: np.ndarray) -> np.ndarray:
        """Plane coordinates -> canonical normalized coordinates in [0,1]^2."""
        uw = np.asarray(uw, dtype=np.float64).reshape(-1, 2)
        u_l, u_r = self.u_left, self.u_right
        x = (uw[:, 0] - u_l) / (u_r - u_l)
        y = (uw[:, 1] + self.max_y) / (2.0 * self.max_y)
        return np.stack([x, y], axis=-1)

    def point_at(self, screen_xy: np.ndarray) -> np.ndarray:
        """
        Ideal (undistorted) 3D location of normalized screen coordinates on the
        fitted plane. Inverse of `normalized_from_plane`.
        """
        xy = np.asarray(screen_xy, dtype=np.float64).reshape(-1, 2)
        foot, h, v = self.plane.frame()
        u_l, u_r = self.u_left, self.u_right
        u = u_l + xy[:, 0] * (u_r - u_l)
        w = self.max_y * (2.0 * xy[:, 1] - 1.0)
        return foot[None, :] + u[:, None] * h[None, :] + w[:, None] * v[None, :]


def project_measurements(normalized: NormalizedMeasurements, plane: Plane) -> np.ndarray:
    """Project every measurement ray onto `plane`; rejects rays that cannot hit it."""
    out = np.zeros((len(normalized), 3), dtype=np.float64)
    for i, m in enumerate(normalized):
        try:
            out[i] = project_onto_plane_checked(m.point, plane)
        except NumericFailure as e:
            raise NumericFailure(e.message, [m.origin(normalized)]) from e
    return out


def fit_screen(normalized: NormalizedMeasurements, config: Config) -> tuple[ScreenDetails, ProjectionDescription]:
    """
    Fit the screen plane and derive the extreme points, FOV and center of projection.

    Both returned values are computed from the same fitted plane.
    """
    origins = normalized.origins()
    points = normalized.points()
    try:
        plane = fit_plane(points)
        foot, h, v = plane.frame()
    except DegenerateGeometry as e:
        raise DegenerateGeometry(e.message, origins) from e
    except NumericFailure as e:
        raise NumericFailure(e.message, origins) from e

    residual = plane.signed_distance(points)
    logger.debug(
        "screen plane %s, rms off-plane %.3g, max %.3g",
        np.array2string(plane.coeffs(), precision=4),
        float(np.sqrt(np.mean(residual**2))),
        float(np.max(np.abs(residual))),
    )

    projected = project_measurements(normalized, plane)
    rel = projected - foot[None, :]
    u = rel @ h
    w = rel @ v

    # Ties on u are broken by w so the choice does not depend on input order.
    i_left = int(np.lexsort((w, u))[0])
    i_right = int(np.lexsort((w, -u))[0])
    u_left = float(u[i_left])
    u_right = float(u[i_right])
    max_y = float(np.max(np.abs(w)))

    dist = -plane.d
    scale = max(dist, 1.0)
    if u_right - u_left <= 1e-12 * scale:
        raise DegenerateGeometry("screen has no horizontal extent", origins)
    if max_y <= 1e-12 * scale:
        raise DegenerateGeometry("screen has no vertical extent", origins)

    details = ScreenDetails(
        plane=plane,
        screen_left=projected[i_left].copy(),
        screen_right=projected[i_right].copy(),
        max_y=max_y,
    )

    h_fov = math.degrees(math.atan2(u_right, dist) - math.atan2(u_left, dist))
    v_fov = math.degrees(2.0 * math.atan2(max_y, dist))
    cop = ((0.0 - u_left) / (u_right - u_left), (0.0 + max_y) / (2.0 * max_y))
    projection = ProjectionDescription(
        h_fov_deg=h_fov,
        v_fov_deg=v_fov,
        overlap_percent=float(config.overlap_percent),
        cop=cop,
    )
    logger.debug(
        "screen fit: hFOV %.3f deg, vFOV %.3f deg, COP (%.4f, %.4f), left %s (%s), right %s (%s)",
        h_fov,
        v_fov,
        cop[0],
        cop[1],
        np.array2string(details.screen_left, precision=4),
        origins[i_left],
        np.array2string(details.screen_right, precision=4),
        origins[i_right],
    )
    return details, projection
