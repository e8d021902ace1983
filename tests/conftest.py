"""Shared fixtures for the analytics test suite."""

import pytest


@pytest.fixture
def five_points():
    """Two tight pairs and one far outlier in 2-D."""
    return [
        {"x": 1, "y": 2},
        {"x": 2, "y": 3},
        {"x": 10, "y": 10},
        {"x": 11, "y": 11},
        {"x": 50, "y": 50},
    ]


@pytest.fixture
def covariance_rows():
    """Three observations of two correlated measurements."""
    return [[6.5, 11], [7.1, 12.2], [6.3, 10.5]]


@pytest.fixture
def scattered_records():
    """Records with non-collinear coordinates and an extra label field."""
    return [
        {"name": "a", "x": 1.0, "y": 2.0},
        {"name": "b", "x": 2.0, "y": 5.0},
        {"name": "c", "x": 4.0, "y": 3.0},
        {"name": "d", "x": 6.0, "y": 8.0},
        {"name": "e", "x": 3.0, "y": 1.0},
    ]
