"""
Scattered 2D -> 2D interpolation for resampling the distortion map.

The map is measured at arbitrary physical screen positions; the grid mesh needs
it at regular positions. A thin-plate spline interpolates the measured samples
exactly and degrades to its affine part away from them.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Below this many samples the spline system is too small to be useful.
MIN_SPLINE_SAMPLES = 6


def _radial_basis(r2: np.ndarray) -> np.ndarray:
    # r^2 log(r^2), continuous at 0.
    r2 = np.asarray(r2, dtype=np.float64)
    out = np.zeros_like(r2)
    pos = r2 > 1e-18
    out[pos] = r2[pos] * np.log(r2[pos])
    return out


def _homogeneous(xy: np.ndarray) -> np.ndarray:
    return np.concatenate([np.ones((xy.shape[0], 1), dtype=np.float64), xy], axis=1)


def _pairwise_sq(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    diff = a[:, None, :] - b[None, :, :]
    return np.sum(diff * diff, axis=-1)


@dataclass(frozen=True, eq=False)
class AffineMap:
    """dst = [1, x, y] @ coeffs, coeffs shaped (3, 2)."""

    coeffs: np.ndarray

    @classmethod
    def fit(cls, src_xy: np.ndarray, dst_xy: np.ndarray) -> "AffineMap | None":
        src_xy = np.asarray(src_xy, dtype=np.float64).reshape(-1, 2)
        dst_xy = np.asarray(dst_xy, dtype=np.float64).reshape(-1, 2)
        if src_xy.shape[0] < 3:
            return None
        coeffs, _res, rank, _sv = np.linalg.lstsq(_homogeneous(src_xy), dst_xy, rcond=None)
        if int(rank) < 3:
            return None
        return cls(coeffs=coeffs)

    def __call__(self, query_xy: np.ndarray) -> np.ndarray:
        query_xy = np.asarray(query_xy, dtype=np.float64).reshape(-1, 2)
        return _homogeneous(query_xy) @ self.coeffs


@dataclass(frozen=True, eq=False)
class ThinPlateSpline:
    """
    Interpolating thin-plate spline. Sample positions are centered and scaled
    by their median radius before solving, so the system conditioning does not
    depend on the units of the screen coordinates.
    """

    centers: np.ndarray  # (N, 2), in scaled coordinates
    weights: np.ndarray  # (N, 2)
    affine: np.ndarray  # (3, 2)
    shift: np.ndarray  # (2,)
    scale: float

    @classmethod
    def fit(cls, src_xy: np.ndarray, dst_xy: np.ndarray) -> "ThinPlateSpline | None":
        src_xy = np.asarray(src_xy, dtype=np.float64).reshape(-1, 2)
        dst_xy = np.asarray(dst_xy, dtype=np.float64).reshape(-1, 2)
        n = src_xy.shape[0]
        shift = np.mean(src_xy, axis=0)
        scale = float(np.median(np.linalg.norm(src_xy - shift[None, :], axis=1))) + 1e-12
        centers = (src_xy - shift[None, :]) / scale

        P = _homogeneous(centers)
        system = np.zeros((n + 3, n + 3), dtype=np.float64)
        system[:n, :n] = _radial_basis(_pairwise_sq(centers, centers))
        system[:n, n:] = P
        system[n:, :n] = P.T
        rhs = np.concatenate([dst_xy, np.zeros((3, 2), dtype=np.float64)], axis=0)
        try:
            solution = np.linalg.solve(system, rhs)
        except np.linalg.LinAlgError:
            return None
        if not np.all(np.isfinite(solution)):
            return None
        return cls(centers=centers, weights=solution[:n], affine=solution[n:], shift=shift, scale=scale)

    def __call__(self, query_xy: np.ndarray) -> np.ndarray:
        q = (np.asarray(query_xy, dtype=np.float64).reshape(-1, 2) - self.shift[None, :]) / self.scale
        return _radial_basis(_pairwise_sq(q, self.centers)) @ self.weights + _homogeneous(q) @ self.affine


def interpolate_map(src_xy: np.ndarray, dst_xy: np.ndarray, query_xy: np.ndarray) -> np.ndarray:
    """
    Evaluate the map sampled as src_xy -> dst_xy at `query_xy`.

    Uses a thin-plate spline with at least MIN_SPLINE_SAMPLES samples and a
    least-squares affine map otherwise (or when the spline system is singular).
    Returns NaN rows when neither can be solved.
    """
    src_xy = np.asarray(src_xy, dtype=np.float64).reshape(-1, 2)
    dst_xy = np.asarray(dst_xy, dtype=np.float64).reshape(-1, 2)
    query_xy = np.asarray(query_xy, dtype=np.float64).reshape(-1, 2)
    if src_xy.shape[0] != dst_xy.shape[0]:
        raise ValueError("src_xy and dst_xy must have the same length")

    model = None
    if src_xy.shape[0] >= MIN_SPLINE_SAMPLES:
        model = ThinPlateSpline.fit(src_xy, dst_xy)
    if model is None:
        model = AffineMap.fit(src_xy, dst_xy)
    if model is None:
        return np.full((query_xy.shape[0], 2), np.nan, dtype=np.float64)
    return model(query_xy)


def hull_excess(samples_xy: np.ndarray, query_xy: np.ndarray) -> np.ndarray:
    """
    How far each query point lies outside the convex hull of `samples_xy`
    (0 inside), measured as the largest signed distance to a hull edge line.

    Raises ValueError when the samples do not span a 2D region.
    """
    from scipy.spatial import ConvexHull  # type: ignore
    from scipy.spatial import QhullError  # type: ignore

    samples_xy = np.asarray(samples_xy, dtype=np.float64).reshape(-1, 2)
    query_xy = np.asarray(query_xy, dtype=np.float64).reshape(-1, 2)
    if samples_xy.shape[0] < 3:
        raise ValueError("need >= 3 samples to span a 2D region")
    try:
        hull = ConvexHull(samples_xy)
    except QhullError as e:
        raise ValueError(f"samples do not span a 2D region: {e}") from e

    # equations rows are [nx, ny, offset] with unit outward normals.
    eq = np.asarray(hull.equations, dtype=np.float64)
    dist = query_xy @ eq[:, :2].T + eq[:, 2][None, :]
    return np.maximum(np.max(dist, axis=1), 0.0)
