from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence, Union

from screenwarp.config import Config
from screenwarp.measurements import InputMeasurements, normalize_measurements
from screenwarp.mesh import MeshDescription, generate_grid_mesh, generate_mesh
from screenwarp.screen import ProjectionDescription, ScreenDetails, fit_screen
from screenwarp.verify import AngleVerificationMismatch, BoundsViolation, check_bounds, verify_angles

logger = logging.getLogger(__name__)

Finding = Union[AngleVerificationMismatch, BoundsViolation]


@dataclass(frozen=True)
class ScreenResult:
    projection: ProjectionDescription
    mesh: MeshDescription
    details: ScreenDetails
    findings: tuple[Finding, ...] = ()


def process_screen(inputs: InputMeasurements, config: Config) -> ScreenResult:
    """
    Run normalization -> screen fit -> mesh -> checks for one screen.

    Fatal errors propagate; no partial result is produced.
    """
    normalized = normalize_measurements(inputs, config)
    details, projection = fit_screen(normalized, config)

    if config.mesh_grid is not None:
        nx, ny = config.mesh_grid
        mesh = generate_grid_mesh(details, normalized, nx, ny, margin=config.coverage_margin)
    else:
        mesh = generate_mesh(details, normalized)

    findings: list[Finding] = []
    if config.verify_angles:
        findings.extend(verify_angles(inputs, normalized, details, config))
    findings.extend(check_bounds(inputs, config))

    logger.info(
        "%s: %d measurements, hFOV %.2f deg, vFOV %.2f deg, %d mesh rows, %d findings",
        inputs.source or "(unknown)",
        len(inputs),
        projection.h_fov_deg,
        projection.v_fov_deg,
        len(mesh),
        len(findings),
    )
    return ScreenResult(projection=projection, mesh=mesh, details=details, findings=tuple(findings))


def process_screens(
    screens: Sequence[InputMeasurements],
    config: Config,
    *,
    max_workers: int | None = None,
) -> list[ScreenResult]:
    """
    Process independent screens concurrently. Results keep the input order; the
    first failing screen (in input order) re-raises its error.
    """
    if not screens:
        return []
    if max_workers == 1 or len(screens) == 1:
        return [process_screen(s, config) for s in screens]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(process_screen, s, config) for s in screens]
        return [f.result() for f in futures]
