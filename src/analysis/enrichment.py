"""
Mahalanobis enrichment module.

Annotates records with their Mahalanobis distance to a reference point and,
optionally, a similarity score normalized over the batch.
"""

from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import numpy as np

from config.logging_config import get_logger
from config.settings import settings
from src.data_processing.records import extract_vector, extract_vectors
from src.distance.metrics import quadratic_distance
from src.errors import DimensionError
from src.linalg.matrix import as_square_matrix, get_covariance_matrix, is_symmetric

logger = get_logger(__name__)


class MahalanobisScorer:
    """
    Mahalanobis distance scoring relative to an origin record.

    The dimensions are the keys of ``origin`` in their insertion order. That
    order fixes the rows and columns of the inverse covariance matrix and the
    coordinates of every record vector.

    Example:
        >>> scorer = MahalanobisScorer({"x": 1.0, "y": 2.0})
        >>> scorer.fit(records)
        >>> records = scorer.annotate(records, similarity=True)
    """

    def __init__(
        self,
        origin: Mapping[str, Any],
        matrix: Optional[Any] = None
    ):
        """
        Initialize the scorer.

        Args:
            origin: Mapping from dimension name to reference coordinate
            matrix: Optional precomputed inverse covariance matrix

        Raises:
            DimensionError: If origin is empty or the matrix size differs
                from the number of dimensions
            InvalidValueError: If an origin coordinate is not a finite number
        """
        # Guard clause
        if len(origin) == 0:
            raise DimensionError("Origin must define at least one dimension")

        self.fields: List[str] = list(origin.keys())
        self.origin_vector: np.ndarray = extract_vector(origin, self.fields)

        self.inv_cov: Optional[np.ndarray] = None
        self._metrics: Dict[str, float] = {}

        if matrix is not None:
            self.inv_cov = self._check_matrix(matrix)

        logger.debug(f"Initialized MahalanobisScorer over dimensions {self.fields}")

    def _check_matrix(self, matrix: Any) -> np.ndarray:
        """Validate a caller-supplied inverse covariance matrix."""
        m = as_square_matrix(matrix)
        d = len(self.fields)

        if m.shape[0] != d:
            raise DimensionError(
                f"Matrix is {m.shape[0]}x{m.shape[0]} but origin has {d} dimensions",
                {"matrix": m.shape[0], "dimensions": d},
            )

        if not is_symmetric(m):
            logger.warning("Supplied inverse covariance matrix is not symmetric")

        return m

    def fit(self, data: List[Mapping[str, Any]]) -> "MahalanobisScorer":
        """
        Estimate the inverse covariance matrix from records.

        Args:
            data: Records exposing every origin dimension

        Returns:
            Self for method chaining
        """
        vectors = extract_vectors(data, self.fields)
        self.inv_cov = get_covariance_matrix(vectors, invert=True)

        logger.info(
            f"Estimated inverse covariance over {len(self.fields)} dimensions "
            f"from {len(vectors)} records"
        )

        return self

    def score(self, data: List[Mapping[str, Any]]) -> np.ndarray:
        """
        Compute the distance of every record to the origin.

        Fits the matrix on ``data`` first if none is available.

        Returns:
            Array of distances, one per record
        """
        vectors = extract_vectors(data, self.fields)

        if self.inv_cov is None:
            self.inv_cov = get_covariance_matrix(vectors, invert=True)

        inv_cov = self.inv_cov
        distances = np.array(
            [quadratic_distance(vector - self.origin_vector, inv_cov) for vector in vectors],
            dtype=float,
        )

        if len(distances) > 0:
            self._metrics = {
                "n_records": float(len(distances)),
                "max_distance": float(distances.max()),
                "mean_distance": float(distances.mean()),
            }

        return distances

    @staticmethod
    def similarity_scores(distances: np.ndarray) -> np.ndarray:
        """
        Normalize distances into similarities in [0, 1].

        The farthest record gets 0 and records at the origin get 1. When every
        distance is 0 all similarities are 1.
        """
        if len(distances) == 0:
            return np.array([], dtype=float)

        max_distance = float(np.max(distances))
        if max_distance == 0.0:
            return np.ones(len(distances), dtype=float)

        return 1.0 - distances / max_distance

    def annotate(
        self,
        data: List[MutableMapping[str, Any]],
        similarity: bool = False
    ) -> List[MutableMapping[str, Any]]:
        """
        Write distances (and optionally similarities) into the records.

        All values are computed before any record is modified, so a failure
        leaves the records untouched.

        Args:
            data: Records to annotate in place
            similarity: Also write the normalized similarity score

        Returns:
            The same list, annotated
        """
        distances = self.score(data)
        similarities = self.similarity_scores(distances) if similarity else None

        distance_field = settings.enrichment.distance_field
        similarity_field = settings.enrichment.similarity_field

        for i, record in enumerate(data):
            record[distance_field] = float(distances[i])
            if similarities is not None:
                record[similarity_field] = float(similarities[i])

        logger.info(f"Added Mahalanobis distance to {len(data)} records")

        return data

    def get_metrics(self) -> Dict[str, float]:
        """Get summary of the last scoring run."""
        return self._metrics.copy()


def add_mahalanobis_distance(
    origin: Mapping[str, Any],
    data: List[MutableMapping[str, Any]],
    matrix: Optional[Any] = None,
    similarity: bool = False
) -> List[MutableMapping[str, Any]]:
    """
    Annotate records with their Mahalanobis distance to ``origin``.

    Args:
        origin: Mapping from dimension name to reference coordinate
        data: Records containing every origin dimension
        matrix: Precomputed inverse covariance matrix; estimated from
            ``data`` when omitted
        similarity: Also write ``1 - mahaDist / max(mahaDist)``

    Returns:
        The same list, with ``mahaDist`` (and ``similarity``) fields

    Raises:
        DimensionError: If a record or the matrix disagrees with origin
        InvalidValueError: If a coordinate is not a finite number
        InsufficientDataError, SingularMatrixError: From covariance estimation

    Example:
        >>> data = [{"x": 1, "y": 2}, {"x": 2, "y": 5}, {"x": 4, "y": 3}]
        >>> add_mahalanobis_distance({"x": 1, "y": 2}, data, similarity=True)
    """
    scorer = MahalanobisScorer(origin, matrix=matrix)
    return scorer.annotate(data, similarity=similarity)
