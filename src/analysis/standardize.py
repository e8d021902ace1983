"""Z-score standardization of a record field."""

from typing import Any, List, MutableMapping, Optional

from config.logging_config import get_logger
from config.settings import settings
from src.data_processing.records import extract_vectors
from src.errors import InsufficientDataError, NumericDomainError

logger = get_logger(__name__)


def add_z_score(
    data: List[MutableMapping[str, Any]],
    variable: str,
    new_key: Optional[str] = None
) -> List[MutableMapping[str, Any]]:
    """
    Annotate records with the z-score of one numeric field.

    Uses the sample standard deviation (n - 1 denominator).

    Args:
        data: Records exposing ``variable``
        variable: Field to standardize
        new_key: Output field, defaults to ``zScore``

    Returns:
        The same list, annotated

    Raises:
        InsufficientDataError: If fewer than two records are given
        NumericDomainError: If every value is identical
    """
    if new_key is None:
        new_key = settings.enrichment.z_score_field

    values = extract_vectors(data, [variable])[:, 0]

    # Guard clauses
    if len(values) < 2:
        raise InsufficientDataError(
            f"Need at least 2 records for a z-score, got {len(values)}",
            {"records": len(values)},
        )

    mean = float(values.mean())
    sigma = float(values.std(ddof=1))

    if sigma == 0.0:
        raise NumericDomainError(
            f"Standard deviation of '{variable}' is zero",
            {"variable": variable},
        )

    scores = (values - mean) / sigma

    for record, score in zip(data, scores):
        record[new_key] = float(score)

    logger.debug(f"Added {new_key} for '{variable}' (mean={mean:.4f}, sd={sigma:.4f})")

    return data
