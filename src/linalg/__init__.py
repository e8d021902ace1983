"""
Linear algebra module.

Provides matrix inversion and covariance estimation.
"""

from src.linalg.matrix import (
    as_square_matrix,
    get_covariance_matrix,
    invert_matrix,
    is_symmetric,
)

__all__ = [
    "invert_matrix",
    "get_covariance_matrix",
    "is_symmetric",
    "as_square_matrix"
]
