import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


# 15 values around a setpoint of 6.0 followed by 3 acute values
SETPOINT_VALUES = [5.2, 5.6, 5.8, 6.1, 6.3, 5.9, 6.0, 6.4, 7.1, 5.4, 6.7, 5.0, 6.2, 6.8, 5.7]
ACUTE_VALUES = [12.5, 14.0, 16.1]


@pytest.fixture
def dominant_data() -> np.ndarray:
    """Setpoint population with a small acute cluster."""
    return np.array(SETPOINT_VALUES + ACUTE_VALUES)


@pytest.fixture
def scattered_data() -> np.ndarray:
    """Values too far apart for any component to claim half the series."""
    return np.array([1.0, 50.0, 100.0, 150.0, 200.0])
