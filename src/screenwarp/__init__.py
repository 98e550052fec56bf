from screenwarp.api import ScreenResult, process_screen, process_screens
from screenwarp.config import Config, load_config, parse_config
from screenwarp.errors import (
    DegenerateGeometry,
    InsufficientCoverage,
    InvalidConfiguration,
    NumericFailure,
    ScreenwarpError,
)
from screenwarp.measurements import DataOrigin, InputMeasurement, InputMeasurements, normalize_measurements
from screenwarp.mesh import MeshDescription, generate_grid_mesh, generate_mesh
from screenwarp.screen import ProjectionDescription, ScreenDetails, fit_screen
from screenwarp.verify import AngleVerificationMismatch, BoundsViolation, verify_angles

__all__ = [
    "AngleVerificationMismatch",
    "BoundsViolation",
    "Config",
    "DataOrigin",
    "DegenerateGeometry",
    "InputMeasurement",
    "InputMeasurements",
    "InsufficientCoverage",
    "InvalidConfiguration",
    "MeshDescription",
    "NumericFailure",
    "ProjectionDescription",
    "ScreenDetails",
    "ScreenResult",
    "ScreenwarpError",
    "fit_screen",
    "generate_grid_mesh",
    "generate_mesh",
    "load_config",
    "normalize_measurements",
    "parse_config",
    "process_screen",
    "process_screens",
    "verify_angles",
]
