import numpy as np
import pytest

from screenwarp.config import Config
from screenwarp.core.bounds import RectBounds
from screenwarp.errors import InsufficientCoverage, InvalidConfiguration
from screenwarp.measurements import normalize_measurements
from screenwarp.mesh import MeshDescription, generate_grid_mesh, generate_mesh, sampling_grid
from screenwarp.screen import fit_screen
from synthetic import make_inputs, tilted_screen_rows


def _fit(inputs, config=None):
    config = config or Config()
    normalized = normalize_measurements(inputs, config)
    details, _proj = fit_screen(normalized, config)
    return details, normalized


def test_one_row_per_measurement_in_input_order(tilted_inputs):
    details, normalized = _fit(tilted_inputs)
    mesh = generate_mesh(details, normalized)
    assert len(mesh) == len(tilted_inputs)
    arr = mesh.as_array()
    assert arr.shape == (25, 2, 2)
    np.testing.assert_allclose(arr[:, 0], normalized.screens())
    assert np.all((arr[:, 0] >= 0.0) & (arr[:, 0] <= 1.0))


def test_undistorted_screen_gives_identity_mesh(tilted_inputs, corner_inputs):
    for inputs in (tilted_inputs, corner_inputs):
        details, normalized = _fit(inputs)
        arr = generate_mesh(details, normalized).as_array()
        np.testing.assert_allclose(arr[:, 1], arr[:, 0], atol=1e-9)


def test_distorted_screen_maps_physical_to_ideal_position():
    rows = []
    ideal = []
    for sx, sy, a, b in tilted_screen_rows():
        fx = (sx - 100.0) / 1920.0
        fy = (sy - 50.0) / 1080.0
        bend = 0.05 * np.sin(np.pi * fx) * (fy - 0.5)
        rows.append((100.0 + 1920.0 * (fx + bend), sy, a, b))
        ideal.append((fx, fy))
    details, normalized = _fit(make_inputs(rows))
    arr = generate_mesh(details, normalized).as_array()
    np.testing.assert_allclose(arr[:, 1], np.asarray(ideal), atol=1e-9)
    assert np.max(np.abs(arr[:, 0] - arr[:, 1])) > 0.005


def test_sampling_grid_is_raster_ordered():
    grid = sampling_grid(3, 2)
    np.testing.assert_allclose(grid, [[0, 0], [0.5, 0], [1, 0], [0, 1], [0.5, 1], [1, 1]])
    with pytest.raises(InvalidConfiguration):
        sampling_grid(1, 4)


def test_grid_mesh_resamples_undistorted_screen(tilted_inputs):
    details, normalized = _fit(tilted_inputs)
    mesh = generate_grid_mesh(details, normalized, 4, 3)
    arr = mesh.as_array()
    assert len(mesh) == 12
    np.testing.assert_allclose(arr[:, 0], sampling_grid(4, 3))
    np.testing.assert_allclose(arr[:, 1], arr[:, 0], atol=1e-6)


def test_grid_mesh_with_few_samples_uses_affine_map(corner_inputs):
    details, normalized = _fit(corner_inputs)
    arr = generate_grid_mesh(details, normalized, 3, 3).as_array()
    np.testing.assert_allclose(arr[:, 1], arr[:, 0], atol=1e-9)


def test_grid_mesh_rejects_extrapolation_beyond_margin(tilted_inputs):
    cfg = Config(
        compute_screen_bounds=False,
        supplied_screen_bounds=RectBounds(left=100.0, right=100.0 + 2 * 1920.0, top=1130.0, bottom=50.0),
    )
    details, normalized = _fit(tilted_inputs, cfg)
    with pytest.raises(InsufficientCoverage):
        generate_grid_mesh(details, normalized, 3, 3, margin=0.05)


def test_grid_mesh_rejects_uncovered_corner():
    rows = [r for r in tilted_screen_rows() if (r[0] - 100.0) / 1920.0 + (r[1] - 50.0) / 1080.0 <= 1.0 + 1e-9]
    details, normalized = _fit(make_inputs(rows))
    with pytest.raises(InsufficientCoverage):
        generate_grid_mesh(details, normalized, 3, 3, margin=0.05)


def test_mirrored_mesh():
    mesh = MeshDescription(rows=(((0.25, 0.5), (0.2, 0.5)),))
    assert mesh.mirrored().rows == (((0.75, 0.5), (0.8, 0.5)),)
