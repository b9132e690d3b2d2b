"""Tests for the cumulative setpoint band."""

import math

import numpy as np
import pytest

from setpoint.cumulative import CumulativePoint, cumulative_fit, cumulative_frame
from setpoint.model import select_model


def test_first_two_points_absent(dominant_data):
    points = cumulative_fit(dominant_data)
    assert len(points) == len(dominant_data)
    assert points[0] is None
    assert points[1] is None
    assert all(p is not None for p in points[2:])


def test_three_points_use_sample_statistics():
    points = cumulative_fit([4.0, 5.0, 6.0])
    assert points[:2] == [None, None]
    assert points[2].mean == pytest.approx(5.0)
    assert points[2].lower == pytest.approx(5.0 - 1.96)
    assert points[2].upper == pytest.approx(5.0 + 1.96)


def test_four_points_use_sample_statistics():
    points = cumulative_fit([4.0, 5.0, 6.0, 9.0])
    std = math.sqrt(14.0 / 3.0)
    assert points[3].mean == pytest.approx(6.0)
    assert points[3].upper == pytest.approx(6.0 + 1.96 * std)


def test_longer_prefixes_use_dominant_component(dominant_data):
    points = cumulative_fit(dominant_data)
    for i in (4, len(dominant_data) - 1):
        best = select_model(dominant_data[:i + 1])
        idx = best.model.dominant_index()
        std = math.sqrt(best.model.variances[idx])
        assert points[i].mean == pytest.approx(best.model.means[idx])
        assert points[i].lower == pytest.approx(best.model.means[idx] - 1.96 * std)


def test_band_settles_near_setpoint(dominant_data):
    last = cumulative_fit(dominant_data)[-1]
    assert last.mean == pytest.approx(6.0, abs=1.0)
    assert last.lower < last.mean < last.upper


def test_nan_variance_gives_no_band():
    # a single value has no sample variance
    points = cumulative_fit([5.0, 6.0], min_points=1)
    assert points[0] is None
    assert points[1] is not None


def test_custom_z_score():
    points = cumulative_fit([4.0, 5.0, 6.0], z_score=1.0)
    assert points[2] == CumulativePoint(mean=5.0, lower=4.0, upper=6.0)


def test_empty_series():
    assert cumulative_fit([]) == []


def test_cumulative_frame(dominant_data):
    frame = cumulative_frame(dominant_data)
    assert list(frame.columns) == ['measurement', 'value', 'mean', 'lower', 'upper']
    assert frame['measurement'].tolist() == list(range(1, len(dominant_data) + 1))
    np.testing.assert_allclose(frame['value'], dominant_data)
    assert frame['mean'].iloc[:2].isna().all()
    assert frame['mean'].iloc[2:].notna().all()


def test_cumulative_frame_reuses_points():
    data = [4.0, 5.0, 6.0]
    frame = cumulative_frame(data, cumulative_fit(data))
    assert frame.loc[2, 'mean'] == pytest.approx(5.0)
