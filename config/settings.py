"""Settings and configuration for tabular record analytics."""


class LinalgSettings:
    """Matrix algebra settings."""

    # Pivots smaller than this times the largest absolute entry mark a matrix as singular
    singular_epsilon: float = 1e-10
    symmetry_tolerance: float = 1e-9


class ClusteringSettings:
    """DBSCAN clustering settings."""

    cluster_prefix: str = "cluster"
    id_field: str = "clusterId"
    type_field: str = "clusterType"


class EnrichmentSettings:
    """Field names written by the record annotators."""

    distance_field: str = "mahaDist"
    similarity_field: str = "similarity"
    z_score_field: str = "zScore"


class Settings:
    """Main settings container."""

    def __init__(self):
        self.linalg = LinalgSettings()
        self.clustering = ClusteringSettings()
        self.enrichment = EnrichmentSettings()


# Global settings instance
settings = Settings()
