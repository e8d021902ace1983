"""
Record validation module.

Records are mappings from field name to value. Every analytics operation
reads a fixed, ordered set of numeric fields from them; this module is the
single boundary where that capability is checked.
"""

import math
from numbers import Real
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from config.logging_config import get_logger
from src.errors import DimensionError, InsufficientDataError, InvalidValueError

logger = get_logger(__name__)


def is_finite_number(value: Any) -> bool:
    """Return True for real, finite numbers (bools excluded)."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def extract_vector(
    record: Mapping[str, Any],
    fields: Sequence[str],
    index: int = 0
) -> np.ndarray:
    """
    Project one record onto the given fields.

    Args:
        record: Mapping exposing numeric values under ``fields``
        fields: Ordered field names
        index: Position of the record, used in error messages

    Returns:
        1-D float array with one entry per field

    Raises:
        DimensionError: If a field is missing
        InvalidValueError: If a value is not a finite number
    """
    values = []
    for field in fields:
        # Guard clauses
        if field not in record:
            raise DimensionError(
                f"Record {index} is missing field '{field}'",
                {"index": index, "field": field},
            )
        value = record[field]
        if not is_finite_number(value):
            raise InvalidValueError(
                f"Record {index} has a non-numeric value for '{field}'",
                {"index": index, "field": field, "value": value},
            )
        values.append(float(value))

    return np.array(values, dtype=float)


def extract_vectors(
    data: Sequence[Mapping[str, Any]],
    fields: Sequence[str]
) -> np.ndarray:
    """
    Project every record onto the given fields.

    Args:
        data: Collection of records
        fields: Ordered field names, the column order of the result

    Returns:
        Float array of shape (n_records, n_fields)
    """
    if len(fields) == 0:
        raise DimensionError("At least one field is required")

    rows = [extract_vector(record, fields, index=i) for i, record in enumerate(data)]
    if not rows:
        return np.empty((0, len(fields)), dtype=float)

    return np.vstack(rows)


def as_rows(data: Any, name: str = "data") -> List[List[Any]]:
    """Materialize a 2-D sequence as a list of row lists."""
    rows = []
    for i, row in enumerate(data):
        if isinstance(row, (str, bytes)) or not hasattr(row, "__iter__"):
            raise DimensionError(
                f"{name} row {i} is not a sequence",
                {"row": i, "value": row},
            )
        rows.append(list(row))
    return rows


def as_numeric_matrix(data: Any, name: str = "data") -> np.ndarray:
    """
    Convert nested numeric sequences into a 2-D float array.

    Args:
        data: Rectangular sequence of numeric rows
        name: Argument name used in error messages

    Returns:
        Float array of shape (n_rows, n_cols)

    Raises:
        InsufficientDataError: If there are no rows or an empty row
        DimensionError: If rows have different lengths
        InvalidValueError: If an entry is not a finite number
    """
    rows = as_rows(data, name=name)

    if not rows:
        raise InsufficientDataError(f"{name} has no rows")

    width = len(rows[0])
    if width == 0:
        raise InsufficientDataError(f"{name} rows are empty")

    for i, row in enumerate(rows):
        if len(row) != width:
            raise DimensionError(
                f"{name} row {i} has {len(row)} entries, expected {width}",
                {"row": i, "expected": width, "actual": len(row)},
            )
        for j, value in enumerate(row):
            if not is_finite_number(value):
                raise InvalidValueError(
                    f"{name}[{i}][{j}] is not a finite number",
                    {"row": i, "column": j, "value": value},
                )

    return np.array(rows, dtype=float)


def as_numeric_vector(values: Sequence[Any], name: str = "vector") -> np.ndarray:
    """Convert a numeric sequence into a 1-D float array."""
    items = list(values)
    for i, value in enumerate(items):
        if not is_finite_number(value):
            raise InvalidValueError(
                f"{name}[{i}] is not a finite number",
                {"position": i, "value": value},
            )
    return np.array(items, dtype=float)


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame into a list of record dicts with string keys."""
    records = df.to_dict(orient="records")
    logger.debug(f"Converted DataFrame with {len(df)} rows to records")
    return [{str(key): value for key, value in row.items()} for row in records]


def records_to_frame(records: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Convert annotated records back into a DataFrame."""
    return pd.DataFrame([dict(record) for record in records])
