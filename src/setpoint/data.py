"""
Data helpers for setpoint estimation.

Responsibilities:
- Generate reproducible WBC sample series (setpoint population plus acute values)
- Parse and validate comma-separated measurement input
- Load measurement series from CSV files
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd


INVALID_INPUT_MESSAGE = "Please enter at least 1 valid WBC value ({lower:g}-{upper:g})"


def generate_gaussian(
    mean: float,
    std: float,
    n: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw n normal values with the Box-Muller transform."""
    values = np.empty(n, dtype=np.float64)
    for i in range(n):
        u1 = 1.0 - rng.random()  # (0, 1], keeps log finite
        u2 = rng.random()
        z0 = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
        values[i] = mean + z0 * std
    return values


def generate_sample_data(
    seed: Optional[int] = 42,
    populations: Optional[Iterable[Dict]] = None,
) -> np.ndarray:
    """
    Generate a WBC count series.

    Default populations: 15 values from N(6.0, 0.8), the setpoint, followed by
    3 values from N(14.0, 2.0), acute excursions.

    Args:
        seed: Seed for numpy's default_rng (None for fresh entropy)
        populations: Iterable of {'mean', 'std', 'n'} dicts, concatenated in order

    Returns:
        1D array of sample values
    """
    if populations is None:
        populations = [
            {'mean': 6.0, 'std': 0.8, 'n': 15},
            {'mean': 14.0, 'std': 2.0, 'n': 3},
        ]

    rng = np.random.default_rng(seed)
    parts = [
        generate_gaussian(float(p['mean']), float(p['std']), int(p['n']), rng)
        for p in populations
    ]
    return np.concatenate(parts) if parts else np.empty(0, dtype=np.float64)


def format_values(values: Sequence[float]) -> str:
    """Comma-separated text with one decimal, as shown in the input box."""
    return ", ".join(f"{v:.1f}" for v in values)


def _check_values(values: np.ndarray, lower: float, upper: float) -> np.ndarray:
    valid = (
        len(values) >= 1
        and bool(np.all(np.isfinite(values)))
        and bool(np.all((values > lower) & (values < upper)))
    )
    if not valid:
        raise ValueError(INVALID_INPUT_MESSAGE.format(lower=lower, upper=upper))
    return values


def parse_values(
    text: str,
    lower: float = 0.0,
    upper: float = 100.0,
) -> np.ndarray:
    """
    Parse comma-separated measurements.

    Every token must be a number strictly inside (lower, upper).

    Raises:
        ValueError: on empty input, non-numeric tokens or out-of-range values
    """
    text = (text or "").strip()
    if not text:
        raise ValueError(INVALID_INPUT_MESSAGE.format(lower=lower, upper=upper))

    values: List[float] = []
    for token in text.split(','):
        try:
            values.append(float(token.strip()))
        except ValueError:
            raise ValueError(INVALID_INPUT_MESSAGE.format(lower=lower, upper=upper)) from None

    return _check_values(np.asarray(values, dtype=np.float64), lower, upper)


def load_values(
    path: str,
    column: Optional[str] = None,
    lower: float = 0.0,
    upper: float = 100.0,
    logger: Optional[logging.Logger] = None,
) -> np.ndarray:
    """
    Load a measurement series from a CSV file.

    Args:
        path: CSV file with a header row
        column: Column to read (first column if None)
        lower, upper: Exclusive validation range
        logger: Optional logger

    Returns:
        1D array of measurements in file order
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    df = pd.read_csv(csv_path)
    if column is None:
        column = df.columns[0]
    elif column not in df.columns:
        raise ValueError(f"Column '{column}' not found in {path}")

    series = pd.to_numeric(df[column], errors='coerce')
    dropped = int(series.isna().sum())
    if dropped > 0:
        logger.warning("Dropped %d non-numeric rows from %s", dropped, path)

    values = series.dropna().to_numpy(dtype=np.float64)
    logger.info("Loaded %d values from %s[%s]", len(values), path, column)

    return _check_values(values, lower, upper)
