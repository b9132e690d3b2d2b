"""
Cumulative setpoint estimation.

Re-fits the setpoint on every growing prefix of a measurement series to show
how the 95% band settles as measurements accrue. Each prefix is fitted from
scratch (no online update), which is quadratic in the series length.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import EMParams
from .model import select_model


@dataclass(frozen=True)
class CumulativePoint:
    mean: float
    lower: float
    upper: float


def _band(mean: float, variance: float, z_score: float) -> Optional[CumulativePoint]:
    if math.isnan(variance):
        return None
    std = math.sqrt(variance)
    return CumulativePoint(mean=mean, lower=mean - z_score * std, upper=mean + z_score * std)


def cumulative_fit(
    data: Sequence[float],
    min_points: int = 3,
    min_samples: int = 5,
    z_score: float = 1.96,
    max_components: int = 3,
    min_dominant_weight: float = 0.5,
    params: EMParams = EMParams(),
    logger: Optional[logging.Logger] = None,
) -> List[Optional[CumulativePoint]]:
    """
    Setpoint band for each prefix data[:i + 1].

    Prefixes shorter than min_points give None. Prefixes shorter than
    min_samples use the plain mean and sample variance; longer ones use the
    dominant component of the selected mixture. A NaN variance also gives None.

    Args:
        data: Ordered measurements
        min_points: Shortest prefix that gets a band
        min_samples: Shortest prefix that gets a mixture fit
        z_score: Band half-width in standard deviations
        max_components: Passed to select_model
        min_dominant_weight: Passed to select_model
        params: EM iteration limits
        logger: Optional logger

    Returns:
        One entry per measurement
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    x = np.asarray(data, dtype=np.float64)
    points: List[Optional[CumulativePoint]] = []

    for i in range(len(x)):
        prefix = x[:i + 1]
        n = len(prefix)

        if n < min_points:
            points.append(None)
            continue

        if n < min_samples:
            mean = float(prefix.sum() / n)
            with np.errstate(divide='ignore', invalid='ignore'):
                variance = float(np.sum((prefix - mean) ** 2) / (n - 1))
        else:
            best = select_model(
                prefix,
                max_components=max_components,
                min_dominant_weight=min_dominant_weight,
                min_samples=min_samples,
                params=params,
                logger=logger,
            )
            idx = best.model.dominant_index()
            if idx is None:
                points.append(None)
                continue
            mean = best.model.means[idx]
            variance = best.model.variances[idx]

        points.append(_band(mean, variance, z_score))

    n_bands = sum(p is not None for p in points)
    logger.info("Cumulative fit: %d of %d measurements have a setpoint band", n_bands, len(points))
    return points


def cumulative_frame(
    data: Sequence[float],
    points: Optional[List[Optional[CumulativePoint]]] = None,
    **kwargs,
) -> pd.DataFrame:
    """
    Cumulative fit as a table with columns measurement (1-based), value,
    mean, lower, upper. Missing bands are NaN.
    """
    if points is None:
        points = cumulative_fit(data, **kwargs)

    rows = []
    for i, (value, point) in enumerate(zip(data, points)):
        rows.append({
            'measurement': i + 1,
            'value': float(value),
            'mean': point.mean if point is not None else np.nan,
            'lower': point.lower if point is not None else np.nan,
            'upper': point.upper if point is not None else np.nan,
        })

    return pd.DataFrame(rows, columns=['measurement', 'value', 'mean', 'lower', 'upper'])
