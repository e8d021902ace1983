"""
Analysis module.

Provides DBSCAN clustering, Mahalanobis enrichment, standardization and
cluster statistics.
"""

from src.analysis.clustering import DBSCANClusterer, add_clusters
from src.analysis.enrichment import MahalanobisScorer, add_mahalanobis_distance
from src.analysis.standardize import add_z_score
from src.analysis.statistics import ClusterStatistics

__all__ = [
    "DBSCANClusterer",
    "add_clusters",
    "MahalanobisScorer",
    "add_mahalanobis_distance",
    "add_z_score",
    "ClusterStatistics"
]
