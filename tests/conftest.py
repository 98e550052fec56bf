from __future__ import annotations

import pytest

from screenwarp.measurements import InputMeasurements
from synthetic import make_inputs, tilted_screen_rows


@pytest.fixture
def corner_inputs() -> InputMeasurements:
    return make_inputs([(0, 0, -30, -20), (1, 0, 30, -20), (0, 1, -30, 20), (1, 1, 30, 20)])


@pytest.fixture
def tilted_inputs() -> InputMeasurements:
    return make_inputs(tilted_screen_rows())
