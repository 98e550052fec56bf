"""
Eye-space geometry.

Convention: eye at the origin looking along -Z, +X to the right, +Y up.
Rotations about Y are right-handed, so a positive rotation turns the forward
ray toward -X.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from screenwarp.errors import DegenerateGeometry, NumericFailure

_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)


def rotation_about_y(p: np.ndarray) -> float:
    """
    Rotation about +Y of the ray through `p`: 0 along -Z, positive toward -X.
    """
    p = np.asarray(p, dtype=np.float64).reshape(3)
    return float(np.arctan2(-p[0], -p[2]))


def direction_from_rotations(yaw: float, pitch: float) -> np.ndarray:
    """
    Unit ray obtained by tilting the forward ray (0,0,-1) by `pitch` toward +Y,
    then rotating it by `yaw` about +Y. Angles in radians.
    """
    cp = np.cos(pitch)
    return np.array([-np.sin(yaw) * cp, np.sin(pitch), -np.cos(yaw) * cp], dtype=np.float64)


def project_onto_plane(p: np.ndarray, a: float, b: float, c: float, d: float) -> np.ndarray:
    """
    Intersect the ray from the origin through `p` with a*x + b*y + c*z + d = 0.

    Returns s*p with s = -d / (a*x + b*y + c*z). When the ray is parallel to the
    plane the result is non-finite; use `project_onto_plane_checked` to reject it.
    """
    p = np.asarray(p, dtype=np.float64).reshape(3)
    denom = a * p[0] + b * p[1] + c * p[2]
    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.float64(-d) / np.float64(denom)
    return s * p


def distance_from(p: np.ndarray, q: np.ndarray) -> float:
    p = np.asarray(p, dtype=np.float64).reshape(3)
    q = np.asarray(q, dtype=np.float64).reshape(3)
    return float(np.linalg.norm(p - q))


@dataclass(frozen=True)
class Plane:
    """
    Plane a*x + b*y + c*z + d = 0 with a unit normal (a, b, c).

    Fitted screens keep d < 0: the normal points away from the eye.
    """

    normal: tuple[float, float, float]
    offset: float

    @classmethod
    def from_coeffs(cls, a: float, b: float, c: float, d: float) -> "Plane":
        n = np.array([a, b, c], dtype=np.float64)
        norm = float(np.linalg.norm(n))
        if not np.isfinite(norm) or norm < 1e-15:
            raise DegenerateGeometry("plane normal must be non-zero")
        n /= norm
        return cls(normal=(float(n[0]), float(n[1]), float(n[2])), offset=float(d) / norm)

    @property
    def a(self) -> float:
        return self.normal[0]

    @property
    def b(self) -> float:
        return self.normal[1]

    @property
    def c(self) -> float:
        return self.normal[2]

    @property
    def d(self) -> float:
        return self.offset

    def coeffs(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c, self.d], dtype=np.float64)

    def normal_vector(self) -> np.ndarray:
        return np.asarray(self.normal, dtype=np.float64)

    def signed_distance(self, p: np.ndarray) -> np.ndarray:
        p = np.asarray(p, dtype=np.float64)
        return p @ self.normal_vector() + self.d

    def foot(self) -> np.ndarray:
        """Perpendicular foot of the origin (the eye) on the plane."""
        return -self.d * self.normal_vector()

    def frame(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        In-plane frame (foot, horizontal, vertical).

        horizontal = normalize(n x +Y), which is +X for a screen facing the eye;
        vertical = horizontal x n, which is +Y for the same screen.
        """
        n = self.normal_vector()
        h = np.cross(n, _UP)
        norm = float(np.linalg.norm(h))
        if norm < 1e-9:
            raise DegenerateGeometry("screen plane is perpendicular to the vertical axis")
        h /= norm
        v = np.cross(h, n)
        return self.foot(), h, v

    def project(self, p: np.ndarray) -> np.ndarray:
        return project_onto_plane(p, self.a, self.b, self.c, self.d)


def project_onto_plane_checked(p: np.ndarray, plane: Plane) -> np.ndarray:
    """
    Like `project_onto_plane`, but raises NumericFailure for rays that are parallel
    to the plane or that meet it behind the eye.
    """
    p = np.asarray(p, dtype=np.float64).reshape(3)
    denom = float(p @ plane.normal_vector())
    scale = float(np.linalg.norm(p))
    if not np.isfinite(denom) or abs(denom) <= 1e-12 * max(scale, 1.0):
        raise NumericFailure("ray is parallel to the screen plane")
    out = plane.project(p)
    if not np.all(np.isfinite(out)):
        raise NumericFailure("non-finite projection onto the screen plane")
    if float(out @ p) <= 0.0:
        raise NumericFailure("ray meets the screen plane behind the eye")
    return out


def fit_plane(points: np.ndarray, *, rank_tol: float = 1e-9) -> Plane:
    """
    Total-least-squares plane through `points` (N,3).

    Uses the centroid and the smallest right singular vector of the centered
    points. The normal is oriented away from the origin (d < 0).
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if pts.shape[0] < 3:
        raise DegenerateGeometry(f"need >= 3 points to fit a plane, got {pts.shape[0]}")
    if not np.all(np.isfinite(pts)):
        raise NumericFailure("non-finite points in plane fit")

    centroid = np.mean(pts, axis=0)
    _u, sv, vt = np.linalg.svd(pts - centroid[None, :], full_matrices=False)
    if sv[0] <= 0.0 or sv[1] <= rank_tol * sv[0]:
        raise DegenerateGeometry("points are (nearly) collinear; cannot fit a plane")

    n = vt[-1]
    n = n / np.linalg.norm(n)
    d = -float(n @ centroid)
    extent = float(np.max(np.linalg.norm(pts, axis=1)))
    if abs(d) <= 1e-12 * max(extent, 1.0):
        raise DegenerateGeometry("fitted screen plane passes through the eye")
    if d > 0.0:
        n = -n
        d = -d
    return Plane(normal=(float(n[0]), float(n[1]), float(n[2])), offset=d)
