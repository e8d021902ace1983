"""
Distance module.

Provides Mahalanobis and Euclidean distance metrics.
"""

from src.distance.metrics import (
    RecordDistance,
    euclidean_distance,
    euclidean_distance_2d,
    get_mahalanobis_distance,
    mahalanobis_record_distance,
    quadratic_distance,
    record_distance,
)

__all__ = [
    "RecordDistance",
    "get_mahalanobis_distance",
    "euclidean_distance",
    "euclidean_distance_2d",
    "record_distance",
    "mahalanobis_record_distance",
    "quadratic_distance"
]
