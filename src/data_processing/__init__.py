"""
Data processing module.

Provides record validation and DataFrame conversion.
"""

from src.data_processing.records import (
    as_numeric_matrix,
    as_numeric_vector,
    extract_vector,
    extract_vectors,
    is_finite_number,
    records_from_frame,
    records_to_frame,
)

__all__ = [
    "extract_vector",
    "extract_vectors",
    "as_numeric_matrix",
    "as_numeric_vector",
    "is_finite_number",
    "records_from_frame",
    "records_to_frame"
]
