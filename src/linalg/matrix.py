"""
Matrix algebra module.

Provides square-matrix inversion by Gauss-Jordan elimination with partial
pivoting and sample covariance estimation from row-oriented numeric data.
"""

from typing import Any, Optional

import numpy as np

from config.logging_config import get_logger
from config.settings import settings
from src.data_processing.records import as_numeric_matrix, as_rows
from src.errors import DimensionError, InsufficientDataError, SingularMatrixError

logger = get_logger(__name__)


def as_square_matrix(matrix: Any) -> np.ndarray:
    """Validate a square numeric matrix and return it as a float array."""
    rows = as_rows(matrix, name="matrix")

    # Guard clauses
    if not rows:
        raise DimensionError("Matrix must have at least one row")

    n = len(rows)
    for i, row in enumerate(rows):
        if len(row) != n:
            raise DimensionError(
                f"Matrix must be square: row {i} has {len(row)} columns, expected {n}",
                {"row": i, "expected": n, "actual": len(row)},
            )

    return as_numeric_matrix(rows, name="matrix")


def invert_matrix(matrix: Any, epsilon: Optional[float] = None) -> np.ndarray:
    """
    Invert a square matrix.

    Uses Gauss-Jordan elimination on the augmented matrix ``[A | I]``. In
    every column the remaining row with the largest absolute entry becomes
    the pivot row, which bounds the growth of rounding error.

    The singularity threshold is relative: a pivot is rejected when it is
    smaller than ``epsilon`` times the largest absolute entry of the input,
    so rescaling the matrix does not change the outcome.

    Args:
        matrix: Square matrix (nested sequences or 2-D array), n >= 1
        epsilon: Relative pivot threshold; defaults to
            ``settings.linalg.singular_epsilon``

    Returns:
        New n x n float array; the input is not mutated

    Raises:
        DimensionError: If the matrix is empty or not square
        InvalidValueError: If an entry is not a finite number
        SingularMatrixError: If a pivot falls below ``epsilon * max|a_ij|``

    Example:
        >>> invert_matrix([[4, 7], [2, 6]])
        array([[ 0.6, -0.7],
               [-0.2,  0.4]])
    """
    if epsilon is None:
        epsilon = settings.linalg.singular_epsilon

    a = as_square_matrix(matrix)
    n = a.shape[0]

    # An all-zero matrix keeps a positive threshold so it is still rejected
    scale = max(float(np.abs(a).max()), np.finfo(float).tiny)
    threshold = epsilon * scale

    logger.debug(f"Inverting {n}x{n} matrix (pivot threshold {threshold:.3e})")

    augmented = np.hstack([a, np.eye(n)])

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        pivot = augmented[pivot_row, col]

        if abs(pivot) < threshold:
            raise SingularMatrixError(
                f"Matrix is singular: pivot {pivot:.3e} in column {col} is below "
                f"{threshold:.1e} ({epsilon:.1e} x largest entry {scale:.3e})",
                {"column": col, "pivot": float(pivot), "threshold": threshold},
            )

        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

        augmented[col] /= pivot

        # Eliminate the column from every other row in one step
        factors = augmented[:, col].copy()
        factors[col] = 0.0
        augmented -= np.outer(factors, augmented[col])

    return augmented[:, n:].copy()


def get_covariance_matrix(
    data: Any,
    invert: bool = False,
    epsilon: Optional[float] = None
) -> np.ndarray:
    """
    Compute the sample covariance matrix of row-oriented data.

    Each row is one observation and each column one dimension. Entry (i, j)
    is ``sum((x_i - mean_i) * (x_j - mean_j)) / (n - 1)``.

    Args:
        data: n x d numeric rows, n >= 2, d >= 1
        invert: Return the inverse of the covariance matrix instead
        epsilon: Pivot threshold forwarded to ``invert_matrix``

    Returns:
        d x d symmetric float array (or its inverse)

    Raises:
        InsufficientDataError: If fewer than two rows are given
        InvalidValueError: If an entry is not a finite number
        DimensionError: If rows have different lengths
        SingularMatrixError: If ``invert`` is set and the matrix is singular

    Example:
        >>> get_covariance_matrix([[6.5, 11], [7.1, 12.2], [6.3, 10.5]])
        array([[0.17333333, 0.36333333],
               [0.36333333, 0.76333333]])
    """
    x = as_numeric_matrix(data, name="data")
    n, d = x.shape

    # Guard clause
    if n < 2:
        raise InsufficientDataError(
            f"Need at least 2 observations for sample covariance, got {n}",
            {"observations": n},
        )

    centered = x - x.mean(axis=0)
    covariance = centered.T @ centered / (n - 1)
    # Force exact symmetry
    covariance = (covariance + covariance.T) / 2.0

    logger.debug(f"Computed {d}x{d} covariance matrix from {n} observations")

    if invert:
        return invert_matrix(covariance, epsilon=epsilon)

    return covariance


def is_symmetric(matrix: np.ndarray, tolerance: Optional[float] = None) -> bool:
    """
    Check whether a square matrix equals its transpose.

    Entries are compared with an absolute tolerance (``|m_ij - m_ji| <=
    tolerance``), defaulting to ``settings.linalg.symmetry_tolerance``.
    Input that is not a square 2-D array is reported as not symmetric.
    """
    if tolerance is None:
        tolerance = settings.linalg.symmetry_tolerance
    m = np.asarray(matrix, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        return False
    return bool(np.allclose(m, m.T, rtol=0.0, atol=tolerance))
