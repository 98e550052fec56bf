"""
Diagnostic checks. Nothing here raises for a failed check or changes the fit:
findings are returned (and logged) for the caller to report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from screenwarp.config import Config
from screenwarp.core.geometry import rotation_about_y
from screenwarp.measurements import DataOrigin, InputMeasurements, NormalizedMeasurements
from screenwarp.screen import ScreenDetails

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AngleVerificationMismatch:
    origin: DataOrigin
    expected_deg: tuple[float, float]
    measured_deg: tuple[float, float]
    difference_deg: float

    @property
    def message(self) -> str:
        return (
            f"angle mismatch of {self.difference_deg:.3f} deg: input "
            f"({self.expected_deg[0]:.3f}, {self.expected_deg[1]:.3f}), fitted screen implies "
            f"({self.measured_deg[0]:.3f}, {self.measured_deg[1]:.3f})"
        )


@dataclass(frozen=True)
class BoundsViolation:
    origin: DataOrigin
    message: str


def implied_angles(details: ScreenDetails, screen_xy: np.ndarray, use_field_angles: bool) -> np.ndarray:
    """
    Angles (deg) at which the fitted screen shows normalized screen positions,
    in the same convention as the inputs. Returns (N, 2).
    """
    pts = details.point_at(screen_xy)
    out = np.zeros((pts.shape[0], 2), dtype=np.float64)
    for i, p in enumerate(pts):
        horizontal = -rotation_about_y(p)
        if use_field_angles:
            vertical = float(np.arctan2(p[1], -p[2]))
        else:
            vertical = float(np.arcsin(np.clip(p[1] / np.linalg.norm(p), -1.0, 1.0)))
        out[i] = (horizontal, vertical)
    return np.degrees(out)


def verify_angles(
    inputs: InputMeasurements,
    normalized: NormalizedMeasurements,
    details: ScreenDetails,
    config: Config,
) -> tuple[AngleVerificationMismatch, ...]:
    """
    Compare each input angle with the angle the fitted screen implies at the
    measurement's screen position, mapped through the reference axes.
    """
    if len(inputs) != len(normalized):
        raise ValueError("inputs and normalized measurements must have the same length")
    if inputs.empty:
        return ()

    xx, xy, yx, yy = (float(a) for a in config.angle_axes)
    axes = np.array([[xx, xy], [yx, yy]], dtype=np.float64)
    measured = implied_angles(details, normalized.screens(), config.use_field_angles) @ axes.T
    expected = np.asarray([m.angles_deg for m in inputs], dtype=np.float64).reshape(-1, 2)
    diff = np.linalg.norm(measured - expected, axis=1)

    findings = []
    for m, e, a, d in zip(inputs, expected, measured, diff):
        if not float(d) > float(config.max_angle_diff_deg):
            continue
        finding = AngleVerificationMismatch(
            origin=m.origin(inputs),
            expected_deg=(float(e[0]), float(e[1])),
            measured_deg=(float(a[0]), float(a[1])),
            difference_deg=float(d),
        )
        logger.info("%s: %s", finding.origin, finding.message)
        findings.append(finding)
    logger.debug("angle verification: %d of %d measurements outside %.3f deg", len(findings), len(inputs), config.max_angle_diff_deg)
    return tuple(findings)


def check_bounds(inputs: InputMeasurements, config: Config) -> tuple[BoundsViolation, ...]:
    findings = []
    for m in inputs:
        if config.screen_bounds.outside(m.screen):
            findings.append(
                BoundsViolation(
                    origin=m.origin(inputs),
                    message=f"screen position ({m.screen[0]:g}, {m.screen[1]:g}) outside {config.screen_bounds}",
                )
            )
        if config.angle_bounds.outside(m.angles_deg):
            findings.append(
                BoundsViolation(
                    origin=m.origin(inputs),
                    message=f"angles ({m.angles_deg[0]:g}, {m.angles_deg[1]:g}) outside {config.angle_bounds}",
                )
            )
    for f in findings:
        logger.info("%s: %s", f.origin, f.message)
    return tuple(findings)
