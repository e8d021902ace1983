"""
Cluster statistics module.

Computes summary statistics and profiles for records annotated by the
DBSCAN clusterer.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, cast

import pandas as pd

from config.logging_config import get_logger
from config.settings import settings
from src.data_processing.records import records_to_frame

logger = get_logger(__name__)

NOISE_LABEL = "noise"


class ClusterStatistics:
    """
    Computes statistics for clustered records.

    Noise points are grouped under the ``"noise"`` label.

    Example:
        >>> stats = ClusterStatistics(records, fields=["x", "y"])
        >>> summary = stats.compute_summary()
        >>> print(stats.describe_cluster("cluster1"))
    """

    def __init__(
        self,
        data: Sequence[Mapping[str, Any]],
        fields: Optional[List[str]] = None
    ):
        """
        Initialize statistics calculator.

        Args:
            data: Records annotated with ``clusterId`` and ``clusterType``
            fields: Numeric fields to summarize (all numeric columns if None)
        """
        self.id_field = settings.clustering.id_field
        self.type_field = settings.clustering.type_field

        df = records_to_frame(data)

        # Guard clause
        if self.id_field not in df.columns or self.type_field not in df.columns:
            raise ValueError(
                f"Records must carry '{self.id_field}' and '{self.type_field}' - cluster them first"
            )

        # Noise records are grouped under the "noise" label
        self.labels: pd.Series = df[self.id_field].fillna(NOISE_LABEL).rename("cluster")
        self.df = df

        if fields is None:
            fields = [
                str(c) for c in df.select_dtypes(include="number").columns
            ]
        self.fields = [f for f in fields if f in df.columns]

        self._summary: Optional[pd.DataFrame] = None

        logger.debug(f"Initialized ClusterStatistics with {len(df)} rows")

    def compute_summary(self) -> pd.DataFrame:
        """
        Compute summary statistics per cluster.

        Returns:
            DataFrame indexed by cluster label with counts, share of total
            and mean/std/min/max per field
        """
        grouped = self.df.groupby(self.labels, sort=True)

        summary = pd.DataFrame({
            "n_records": grouped.size(),
            "n_core": grouped[self.type_field].agg(lambda s: int((s == "core").sum())),
            "n_border": grouped[self.type_field].agg(lambda s: int((s == "border").sum())),
        })

        total = len(self.df)
        summary["pct_of_total"] = (summary["n_records"] / total * 100).round(1)

        if self.fields:
            agg_dict: Dict[str, Any] = {
                field: ["mean", "std", "min", "max"] for field in self.fields
            }
            field_stats = grouped.agg(agg_dict)
            multi_cols = cast(pd.MultiIndex, field_stats.columns)
            field_stats.columns = pd.Index([f"{col}_{stat}" for col, stat in multi_cols])
            summary = summary.join(field_stats)

        summary.index.name = "cluster"

        self._summary = summary
        logger.info(f"Computed summary statistics for {len(summary)} groups")

        return summary

    def get_cluster_sizes(self) -> Dict[str, int]:
        """Get number of records per cluster label."""
        counts = self.labels.value_counts()
        return {str(label): int(count) for label, count in counts.items()}

    def describe_cluster(self, cluster_id: str) -> str:
        """
        Generate human-readable description of a cluster.

        Args:
            cluster_id: Cluster to describe (or ``"noise"``)

        Returns:
            Text description
        """
        cluster_data = self.df[self.labels == cluster_id]

        if len(cluster_data) == 0:
            return f"{cluster_id}: No data"

        n_core = int((cluster_data[self.type_field] == "core").sum())
        lines = [
            f"=== {cluster_id} ===",
            f"Records: {len(cluster_data)} ({len(cluster_data)/len(self.df)*100:.1f}%)",
            f"Core points: {n_core}",
        ]

        for field in self.fields:
            lines.append(f"Average {field}: {cluster_data[field].mean():.3f}")

        return "\n".join(lines)
