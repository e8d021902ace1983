"""Tests for cluster statistics and z-score standardization."""

import pytest

from src.analysis import ClusterStatistics, add_clusters, add_z_score
from src.distance import record_distance
from src.errors import DimensionError, InsufficientDataError, NumericDomainError


@pytest.fixture
def clustered(five_points):
    return add_clusters(five_points, 5, 2, record_distance(["x", "y"]))


class TestClusterStatistics:

    def test_summary(self, clustered):
        summary = ClusterStatistics(clustered, fields=["x", "y"]).compute_summary()

        assert list(summary.index) == ["cluster1", "cluster2", "noise"]
        assert summary.loc["cluster1", "n_records"] == 2
        assert summary.loc["cluster1", "n_core"] == 2
        assert summary.loc["noise", "n_border"] == 0
        assert summary.loc["noise", "pct_of_total"] == 20.0
        assert summary.loc["cluster1", "x_mean"] == pytest.approx(1.5)
        assert summary.loc["cluster2", "y_max"] == 11

    def test_numeric_fields_detected(self, clustered):
        stats = ClusterStatistics(clustered)
        assert stats.fields == ["x", "y"]

    def test_cluster_sizes(self, clustered):
        sizes = ClusterStatistics(clustered).get_cluster_sizes()
        assert sizes == {"cluster1": 2, "cluster2": 2, "noise": 1}

    def test_describe_cluster(self, clustered):
        stats = ClusterStatistics(clustered, fields=["x"])

        text = stats.describe_cluster("cluster2")
        assert "=== cluster2 ===" in text
        assert "Records: 2 (40.0%)" in text
        assert "Average x: 10.500" in text

        assert stats.describe_cluster("cluster9") == "cluster9: No data"

    def test_existing_cluster_field_is_kept(self, clustered):
        for i, record in enumerate(clustered):
            record["cluster"] = i * 10

        stats = ClusterStatistics(clustered, fields=["cluster"])
        summary = stats.compute_summary()

        assert stats.df["cluster"].tolist() == [0, 10, 20, 30, 40]
        assert list(summary.index) == ["cluster1", "cluster2", "noise"]
        assert summary.loc["cluster2", "cluster_mean"] == pytest.approx(25.0)
        assert stats.get_cluster_sizes() == {"cluster1": 2, "cluster2": 2, "noise": 1}
        assert "Average cluster: 40.000" in stats.describe_cluster("noise")

    def test_requires_cluster_labels(self, five_points):
        with pytest.raises(ValueError):
            ClusterStatistics(five_points)


class TestZScore:

    def test_sample_standard_deviation(self):
        records = [{"v": 1}, {"v": 2}, {"v": 3}]
        result = add_z_score(records, "v")

        assert result is records
        assert [r["zScore"] for r in records] == pytest.approx([-1.0, 0.0, 1.0])

    def test_custom_key(self):
        records = [{"v": 10}, {"v": 20}]
        add_z_score(records, "v", new_key="vZ")
        assert records[0]["vZ"] == pytest.approx(-0.7071067811865475)
        assert "zScore" not in records[0]

    def test_single_record(self):
        with pytest.raises(InsufficientDataError):
            add_z_score([{"v": 1}], "v")

    def test_constant_values(self):
        records = [{"v": 4}, {"v": 4}]
        with pytest.raises(NumericDomainError):
            add_z_score(records, "v")
        assert "zScore" not in records[0]

    def test_missing_field(self):
        with pytest.raises(DimensionError):
            add_z_score([{"v": 1}, {"w": 2}], "v")
