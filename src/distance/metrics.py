"""
Distance metrics module.

Provides Mahalanobis and Euclidean distances between numeric vectors, plus
factories that turn them into record-to-record distance functions usable
by the DBSCAN clusterer.
"""

import math
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from config.logging_config import get_logger
from src.data_processing.records import as_numeric_vector, extract_vector
from src.errors import DimensionError
from src.linalg.matrix import as_square_matrix

logger = get_logger(__name__)

RecordDistance = Callable[[Mapping[str, Any], Mapping[str, Any]], float]


def quadratic_distance(diff: np.ndarray, inv_cov: np.ndarray) -> float:
    """Return sqrt(diff' * inv_cov * diff), clamping negative forms to zero."""
    quadratic = float(diff @ inv_cov @ diff)

    # Ill-conditioned or indefinite matrices can yield tiny negative values
    if quadratic < 0.0:
        logger.debug(f"Clamping negative quadratic form {quadratic:.3e} to 0")
        quadratic = 0.0

    return math.sqrt(quadratic)


def get_mahalanobis_distance(
    x1: Sequence[float],
    x2: Sequence[float],
    inv_cov: Any
) -> float:
    """
    Compute the Mahalanobis distance between two vectors.

    Args:
        x1: First vector of length d
        x2: Second vector of length d
        inv_cov: d x d inverse covariance matrix

    Returns:
        Non-negative distance. A negative quadratic form (possible with a
        matrix that is not positive semi-definite) is clamped to 0.

    Raises:
        DimensionError: If the vector lengths and matrix size disagree
        InvalidValueError: If an entry is not a finite number

    Example:
        >>> inv = get_covariance_matrix(data, invert=True)
        >>> get_mahalanobis_distance([1, 2], [3, 4], inv)
    """
    a = as_numeric_vector(x1, name="x1")
    b = as_numeric_vector(x2, name="x2")
    matrix = as_square_matrix(inv_cov)

    # Guard clause
    if not (len(a) == len(b) == matrix.shape[0]):
        raise DimensionError(
            f"Dimension mismatch: x1 has {len(a)}, x2 has {len(b)}, "
            f"matrix is {matrix.shape[0]}x{matrix.shape[1]}",
            {"x1": len(a), "x2": len(b), "matrix": matrix.shape[0]},
        )

    return quadratic_distance(a - b, matrix)


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Compute the straight-line distance between two vectors.

    Raises:
        DimensionError: If the vectors have different lengths
    """
    u = as_numeric_vector(a, name="a")
    v = as_numeric_vector(b, name="b")

    if len(u) != len(v):
        raise DimensionError(
            f"Vectors have different lengths: {len(u)} and {len(v)}",
            {"a": len(u), "b": len(v)},
        )

    return float(np.sqrt(np.sum((u - v) ** 2)))


def euclidean_distance_2d(x1: float, y1: float, x2: float, y2: float) -> float:
    """Distance between the points (x1, y1) and (x2, y2)."""
    return euclidean_distance([x1, y1], [x2, y2])


def record_distance(fields: Sequence[str]) -> RecordDistance:
    """
    Build a Euclidean distance function over named record fields.

    Args:
        fields: Ordered numeric fields to compare

    Returns:
        Function taking two records and returning their distance
    """
    columns = list(fields)
    if not columns:
        raise DimensionError("At least one field is required")

    def distance(a: Mapping[str, Any], b: Mapping[str, Any]) -> float:
        u = extract_vector(a, columns)
        v = extract_vector(b, columns)
        return float(np.sqrt(np.sum((u - v) ** 2)))

    return distance


def mahalanobis_record_distance(fields: Sequence[str], inv_cov: Any) -> RecordDistance:
    """
    Build a Mahalanobis distance function over named record fields.

    The matrix is validated once; its rows and columns follow ``fields``.

    Raises:
        DimensionError: If the matrix size differs from the number of fields
    """
    columns = list(fields)
    matrix = as_square_matrix(inv_cov)

    if matrix.shape[0] != len(columns):
        raise DimensionError(
            f"Matrix is {matrix.shape[0]}x{matrix.shape[0]} but {len(columns)} fields were given",
            {"matrix": matrix.shape[0], "fields": len(columns)},
        )

    def distance(a: Mapping[str, Any], b: Mapping[str, Any]) -> float:
        return quadratic_distance(extract_vector(a, columns) - extract_vector(b, columns), matrix)

    return distance
