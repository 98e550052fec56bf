"""
Distortion mesh: (physical, canonical) pairs of normalized screen coordinates.

physical  = where a sample actually appears on the display (the measured position);
canonical = where it lands under the ideal linear mapping of the fitted screen,
            i.e. where the renderer places content seen at that angle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from screenwarp.core.resample import hull_excess, interpolate_map
from screenwarp.errors import InsufficientCoverage, InvalidConfiguration, NumericFailure
from screenwarp.measurements import NormalizedMeasurements
from screenwarp.screen import ScreenDetails, project_measurements

logger = logging.getLogger(__name__)

MeshRow = tuple[tuple[float, float], tuple[float, float]]


@dataclass(frozen=True)
class MeshDescription:
    rows: tuple[MeshRow, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def as_array(self) -> np.ndarray:
        """(N, 2, 2): [:, 0] physical (from), [:, 1] canonical (to)."""
        return np.asarray(self.rows, dtype=np.float64).reshape(-1, 2, 2)

    def mirrored(self) -> "MeshDescription":
        """Horizontal reflection, e.g. to derive the other eye of a symmetric display."""
        return MeshDescription(rows=tuple(((1.0 - f[0], f[1]), (1.0 - t[0], t[1])) for f, t in self.rows))

    @classmethod
    def from_arrays(cls, physical: np.ndarray, canonical: np.ndarray) -> "MeshDescription":
        physical = np.asarray(physical, dtype=np.float64).reshape(-1, 2)
        canonical = np.asarray(canonical, dtype=np.float64).reshape(-1, 2)
        if physical.shape != canonical.shape:
            raise ValueError("physical and canonical must have the same shape")
        rows = tuple(
            ((float(p[0]), float(p[1])), (float(c[0]), float(c[1]))) for p, c in zip(physical, canonical)
        )
        return cls(rows=rows)


def canonical_coordinates(details: ScreenDetails, normalized: NormalizedMeasurements) -> np.ndarray:
    projected = project_measurements(normalized, details.plane)
    return details.normalized_from_plane(details.plane_coordinates(projected))


def generate_mesh(details: ScreenDetails, normalized: NormalizedMeasurements) -> MeshDescription:
    """One row per measurement, in measurement order."""
    canonical = canonical_coordinates(details, normalized)
    if not np.all(np.isfinite(canonical)):
        bad = [m.origin(normalized) for m, c in zip(normalized, canonical) if not np.all(np.isfinite(c))]
        raise NumericFailure("non-finite canonical coordinates", bad)
    return MeshDescription.from_arrays(normalized.screens(), canonical)


def sampling_grid(nx: int, ny: int) -> np.ndarray:
    """Regular grid over [0,1]^2 in raster order (y outer, x inner), shape (ny*nx, 2)."""
    if int(nx) < 2 or int(ny) < 2:
        raise InvalidConfiguration(f"sampling grid must be at least 2x2, got {nx}x{ny}")
    xs = np.linspace(0.0, 1.0, int(nx))
    ys = np.linspace(0.0, 1.0, int(ny))
    yy, xx = np.meshgrid(ys, xs, indexing="ij")
    return np.stack([xx.reshape(-1), yy.reshape(-1)], axis=-1)


def generate_grid_mesh(
    details: ScreenDetails,
    normalized: NormalizedMeasurements,
    nx: int,
    ny: int,
    *,
    margin: float = 0.05,
) -> MeshDescription:
    """
    Resample the measured physical->canonical map on a regular nx*ny grid.

    Grid points may lie outside the measured region by at most `margin` (in
    normalized units); anything further would be extrapolated and is rejected.
    """
    grid = sampling_grid(nx, ny)
    physical = normalized.screens()
    origins = normalized.origins()

    try:
        excess = hull_excess(physical, grid)
    except ValueError as e:
        raise InsufficientCoverage(f"measurements do not cover the screen: {e}", origins) from e
    worst = int(np.argmax(excess))
    if float(excess[worst]) > float(margin):
        raise InsufficientCoverage(
            f"grid point ({grid[worst, 0]:.3f}, {grid[worst, 1]:.3f}) lies {float(excess[worst]):.3f} "
            f"outside the measured region (margin {float(margin):.3f})",
            origins,
        )

    canonical = canonical_coordinates(details, normalized)
    to = interpolate_map(physical, canonical, grid)
    if not np.all(np.isfinite(to)):
        raise NumericFailure("could not interpolate the distortion mesh", origins)
    logger.debug("resampled %d measurements onto a %dx%d grid", len(normalized), nx, ny)
    return MeshDescription.from_arrays(grid, to)
