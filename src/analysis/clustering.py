"""
Clustering module for tabular records.

Provides DBSCAN clustering of record collections with a
caller-supplied distance function, core/border/noise classification and
automatic metric calculation.
"""

import math
from numbers import Integral, Real
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional

import numpy as np
import pandas as pd
from sklearn.cluster import DBSCAN
from sklearn.metrics import silhouette_score

from config.logging_config import get_logger
from config.settings import settings
from src.errors import DimensionError, InvalidValueError

logger = get_logger(__name__)

DistanceFunction = Callable[[Any, Any], float]

CORE = "core"
BORDER = "border"
NOISE = "noise"


class DBSCANClusterer:
    """
    DBSCAN clustering for density-based cluster detection.

    Points with at least ``min_neighbours`` points (themselves included)
    within ``min_distance`` are core points. The distance function is
    evaluated once per pair and the resulting matrix is clustered by
    scikit-learn's DBSCAN with ``metric="precomputed"``. Clusters are
    numbered in the input order of their first core point, and a border
    point within reach of two clusters joins the earlier one.

    Example:
        >>> clusterer = DBSCANClusterer(5, 2, record_distance(["x", "y"]))
        >>> clusterer.fit(records)
        >>> records = clusterer.assign_labels(records)
        >>> metrics = clusterer.get_metrics()
    """

    def __init__(
        self,
        min_distance: float,
        min_neighbours: int,
        distance: DistanceFunction
    ):
        """
        Initialize DBSCAN clusterer.

        Args:
            min_distance: Neighbourhood radius (inclusive), > 0
            min_neighbours: Neighbourhood size that makes a core point, >= 1
            distance: Symmetric distance function over pairs of records

        Raises:
            InvalidValueError: If the radius or neighbour count is invalid
            TypeError: If distance is not callable
        """
        # Guard clauses
        if isinstance(min_distance, bool) or not isinstance(min_distance, Real) \
                or not math.isfinite(min_distance) or min_distance <= 0:
            raise InvalidValueError(
                f"min_distance must be a positive number, got {min_distance!r}",
                {"min_distance": min_distance},
            )

        if isinstance(min_neighbours, bool) or not isinstance(min_neighbours, Integral) \
                or min_neighbours < 1:
            raise InvalidValueError(
                f"min_neighbours must be an integer >= 1, got {min_neighbours!r}",
                {"min_neighbours": min_neighbours},
            )

        if not callable(distance):
            raise TypeError("distance must be callable")

        self.min_distance = float(min_distance)
        self.min_neighbours = int(min_neighbours)
        self.distance = distance

        # Type-annotated attributes
        self.model: Optional[DBSCAN] = None
        self.labels_: Optional[np.ndarray] = None
        self.core_mask_: Optional[np.ndarray] = None
        self.distances_: Optional[np.ndarray] = None
        self._metrics: Dict[str, Any] = {}

        logger.debug(
            f"Initialized DBSCANClusterer with min_distance={min_distance}, "
            f"min_neighbours={min_neighbours}"
        )

    def fit(self, data: List[Any]) -> "DBSCANClusterer":
        """
        Cluster the records.

        Args:
            data: Records accepted by the distance function

        Returns:
            Self for method chaining

        Raises:
            InvalidValueError: If the distance function returns a negative or
                non-finite value
        """
        logger.info(
            f"Fitting DBSCAN with min_distance={self.min_distance}, "
            f"min_neighbours={self.min_neighbours} on {len(data)} records..."
        )

        self.distances_ = self._pairwise_distances(data)
        n = len(data)
        self.core_mask_ = np.zeros(n, dtype=bool)

        # scikit-learn rejects empty input
        if n == 0:
            self.model = None
            self.labels_ = np.empty(0, dtype=int)
        else:
            self.model = DBSCAN(
                eps=self.min_distance,
                min_samples=self.min_neighbours,
                metric="precomputed"
            )

            raw_labels = self.model.fit_predict(self.distances_)

            # 1-based cluster numbers, noise stays -1
            self.labels_ = np.where(raw_labels == -1, -1, raw_labels + 1)
            self.core_mask_[self.model.core_sample_indices_] = True

        # Compute metrics
        self._compute_metrics()

        logger.info(
            f"DBSCAN complete. Found {self._metrics['n_clusters']} clusters, "
            f"{self._metrics['n_noise']} noise points"
        )

        return self

    def fit_predict(self, data: List[Any]) -> np.ndarray:
        """Fit and return labels (1-based cluster numbers, -1 for noise)."""
        self.fit(data)

        if self.labels_ is None:
            raise ValueError("Model fitting failed")

        return self.labels_

    def _pairwise_distances(self, data: List[Any]) -> np.ndarray:
        """Evaluate the distance function once per unordered pair."""
        n = len(data)
        distances = np.zeros((n, n), dtype=float)

        for i in range(n):
            for j in range(i + 1, n):
                value = self.distance(data[i], data[j])
                if isinstance(value, bool) or not isinstance(value, Real) \
                        or not math.isfinite(value) or value < 0:
                    raise InvalidValueError(
                        f"Distance between records {i} and {j} is not a "
                        f"non-negative number: {value!r}",
                        {"i": i, "j": j, "value": value},
                    )
                distances[i, j] = distances[j, i] = float(value)

        return distances

    def _compute_metrics(self) -> None:
        """Compute clustering metrics."""
        if self.labels_ is None or self.core_mask_ is None or self.distances_ is None:
            return

        n = len(self.labels_)
        clustered = self.labels_ != -1
        n_clusters = max(int(self.labels_.max()), 0) if n > 0 else 0
        n_noise = int((~clustered).sum())
        n_core = int(self.core_mask_.sum())

        self._metrics = {
            "n_clusters": n_clusters,
            "n_core": n_core,
            "n_border": int(clustered.sum()) - n_core,
            "n_noise": n_noise,
            "noise_ratio": n_noise / n if n > 0 else 0.0,
        }

        # Silhouette needs 2+ clusters and fewer clusters than clustered points
        n_clustered = int(clustered.sum())
        if 2 <= n_clusters < n_clustered:
            sub = self.distances_[np.ix_(clustered, clustered)]
            try:
                self._metrics["silhouette"] = float(
                    silhouette_score(sub, self.labels_[clustered], metric="precomputed")
                )
            except ValueError as e:
                logger.debug(f"Could not compute silhouette: {e}")
                self._metrics["silhouette"] = 0.0
        else:
            self._metrics["silhouette"] = 0.0

    def get_metrics(self) -> Dict[str, Any]:
        """Get computed metrics."""
        return self._metrics.copy()

    def get_core_samples(self) -> Optional[np.ndarray]:
        """Get indices of core samples."""
        if self.core_mask_ is None:
            return None
        return np.flatnonzero(self.core_mask_)

    def get_assignments(self) -> List[Dict[str, Optional[str]]]:
        """
        Get per-record cluster assignments.

        Returns:
            List of ``{"clusterId": ..., "clusterType": ...}`` dicts in input order

        Raises:
            ValueError: If model not fitted
        """
        if self.labels_ is None or self.core_mask_ is None:
            raise ValueError("No labels available - fit model first")

        id_field = settings.clustering.id_field
        type_field = settings.clustering.type_field
        prefix = settings.clustering.cluster_prefix

        assignments: List[Dict[str, Optional[str]]] = []
        for label, is_core in zip(self.labels_, self.core_mask_):
            if label == -1:
                assignments.append({id_field: None, type_field: NOISE})
            else:
                assignments.append({
                    id_field: f"{prefix}{int(label)}",
                    type_field: CORE if is_core else BORDER,
                })

        return assignments

    def assign_labels(
        self,
        data: List[MutableMapping[str, Any]],
        reset: bool = False
    ) -> List[MutableMapping[str, Any]]:
        """
        Write ``clusterId`` and ``clusterType`` into the records.

        Every call overwrites existing labels. With ``reset`` the old fields
        are removed first; without it a warning is logged if any were present.

        Args:
            data: The records the model was fitted on
            reset: Clear pre-existing cluster fields before writing

        Returns:
            The same list, annotated

        Raises:
            ValueError: If labels not available
            DimensionError: If record count differs from the fitted data
        """
        assignments = self.get_assignments()

        if len(assignments) != len(data):
            raise DimensionError(
                f"Label count ({len(assignments)}) doesn't match record count ({len(data)})",
                {"labels": len(assignments), "records": len(data)},
            )

        id_field = settings.clustering.id_field
        type_field = settings.clustering.type_field

        if reset:
            for record in data:
                record.pop(id_field, None)
                record.pop(type_field, None)
        elif any(id_field in record or type_field in record for record in data):
            logger.warning("Records already carry cluster labels; overwriting them")

        for record, assignment in zip(data, assignments):
            record.update(assignment)

        return data

    def assign_labels_to_df(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add cluster labels to DataFrame.

        Note: noise points get a missing ``clusterId``.
        """
        assignments = self.get_assignments()

        if len(assignments) != len(df):
            raise DimensionError("Label count doesn't match DataFrame length")

        id_field = settings.clustering.id_field
        type_field = settings.clustering.type_field

        df = df.copy()
        df[id_field] = [a[id_field] for a in assignments]
        df[type_field] = [a[type_field] for a in assignments]

        return df


def add_clusters(
    data: List[MutableMapping[str, Any]],
    min_distance: float,
    min_neighbours: int,
    distance: Callable[[Mapping[str, Any], Mapping[str, Any]], float],
    reset: bool = False
) -> List[MutableMapping[str, Any]]:
    """
    Annotate records with DBSCAN cluster membership.

    Cluster ids are ``cluster1``, ``cluster2``, ... numbered per call in the
    order their first core point appears. Noise points get ``clusterId``
    None. Records are only modified once clustering has fully succeeded.

    Args:
        data: Records to cluster
        min_distance: Neighbourhood radius (inclusive)
        min_neighbours: Minimum neighbourhood size for a core point
        distance: Symmetric distance function over two records
        reset: Clear existing cluster fields before writing

    Returns:
        The same list, with ``clusterId`` and ``clusterType`` fields

    Example:
        >>> data = [{"x": 1, "y": 2}, {"x": 2, "y": 3}, {"x": 10, "y": 10},
        ...         {"x": 11, "y": 11}, {"x": 50, "y": 50}]
        >>> add_clusters(data, 5, 2, record_distance(["x", "y"]))
    """
    clusterer = DBSCANClusterer(min_distance, min_neighbours, distance)
    clusterer.fit(data)
    return clusterer.assign_labels(data, reset=reset)
