from screenwarp.io.display_config import display_config_dict, save_display_config
from screenwarp.io.measurement_file import MeasurementFileError, load_measurements, parse_measurements

__all__ = [
    "MeasurementFileError",
    "display_config_dict",
    "load_measurements",
    "parse_measurements",
    "save_display_config",
]
