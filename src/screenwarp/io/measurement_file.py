from __future__ import annotations

import math
import re
from pathlib import Path

from screenwarp.errors import InvalidConfiguration
from screenwarp.measurements import DataOrigin, InputMeasurement, InputMeasurements

_SPLIT = re.compile(r"[,\s]+")


class MeasurementFileError(InvalidConfiguration):
    pass


def parse_measurements(text: str, source: str | None = None) -> InputMeasurements:
    """
    Parse a measurement table: one `screen_x screen_y angle_x angle_y` record per
    line (whitespace or comma separated). Blank lines and `#` comments are skipped.
    """
    records = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        fields = [f for f in _SPLIT.split(line) if f]
        origin = DataOrigin(source=source, line=lineno)
        if len(fields) != 4:
            raise MeasurementFileError(f"expected 4 values, got {len(fields)}", [origin])
        try:
            values = [float(f) for f in fields]
        except ValueError as e:
            raise MeasurementFileError(f"invalid number: {e}", [origin]) from e
        if not all(math.isfinite(v) for v in values):
            raise MeasurementFileError("non-finite value", [origin])
        records.append(
            InputMeasurement(screen=(values[0], values[1]), angles_deg=(values[2], values[3]), line=lineno)
        )
    return InputMeasurements(source=source, measurements=tuple(records))


def load_measurements(path: Path) -> InputMeasurements:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MeasurementFileError(f"cannot read measurements: {e}", [DataOrigin(source=str(path))]) from e
    return parse_measurements(text, source=str(path))
