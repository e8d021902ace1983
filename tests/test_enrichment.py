"""Tests for Mahalanobis enrichment of records."""

import copy
import logging

import numpy as np
import pytest

from config.settings import settings
from src.analysis import MahalanobisScorer, add_mahalanobis_distance
from src.distance import euclidean_distance, get_mahalanobis_distance
from src.errors import (
    DimensionError,
    InsufficientDataError,
    InvalidValueError,
    SingularMatrixError,
)
from src.linalg import get_covariance_matrix


class TestAddMahalanobisDistance:

    def test_returns_same_list_and_keeps_fields(self, scattered_records):
        records = scattered_records
        first = records[0]

        result = add_mahalanobis_distance({"x": 1.0, "y": 2.0}, records)

        assert result is records
        assert result[0] is first
        assert [r["name"] for r in result] == ["a", "b", "c", "d", "e"]
        assert all("mahaDist" in r for r in result)
        assert all("similarity" not in r for r in result)

    def test_distances_use_covariance_of_data(self, scattered_records):
        vectors = [[r["x"], r["y"]] for r in scattered_records]
        inv = get_covariance_matrix(vectors, invert=True)

        add_mahalanobis_distance({"x": 2.0, "y": 2.0}, scattered_records)

        for record, vector in zip(scattered_records, vectors):
            expected = get_mahalanobis_distance(vector, [2.0, 2.0], inv)
            assert record["mahaDist"] == pytest.approx(expected)

    def test_similarity_scenario(self, scattered_records):
        add_mahalanobis_distance({"x": 1.0, "y": 2.0}, scattered_records, similarity=True)

        origin_record = scattered_records[0]
        assert origin_record["mahaDist"] == 0.0
        assert origin_record["similarity"] == 1.0

        farthest = max(scattered_records, key=lambda r: r["mahaDist"])
        assert farthest["similarity"] == 0.0

        for record in scattered_records:
            assert 0.0 <= record["similarity"] <= 1.0
            assert record["similarity"] == pytest.approx(
                1 - record["mahaDist"] / farthest["mahaDist"]
            )

    def test_origin_key_order_does_not_change_distances(self, scattered_records):
        first = copy.deepcopy(scattered_records)
        second = copy.deepcopy(scattered_records)

        add_mahalanobis_distance({"x": 3.0, "y": 4.0}, first)
        add_mahalanobis_distance({"y": 4.0, "x": 3.0}, second)

        for a, b in zip(first, second):
            assert a["mahaDist"] == pytest.approx(b["mahaDist"])

    def test_precomputed_identity_matrix(self, scattered_records):
        add_mahalanobis_distance({"x": 0.0, "y": 0.0}, scattered_records, matrix=np.eye(2))

        for record in scattered_records:
            assert record["mahaDist"] == pytest.approx(
                euclidean_distance([record["x"], record["y"]], [0.0, 0.0])
            )

    def test_precomputed_matrix_allows_single_record(self):
        records = [{"x": 3.0, "y": 4.0}]
        add_mahalanobis_distance({"x": 0, "y": 0}, records, matrix=[[1, 0], [0, 1]], similarity=True)
        assert records[0]["mahaDist"] == 5.0
        assert records[0]["similarity"] == 0.0

    def test_all_records_at_origin(self):
        records = [{"x": 1.0}, {"x": 1.0}]
        add_mahalanobis_distance({"x": 1.0}, records, matrix=[[1.0]], similarity=True)
        assert [r["similarity"] for r in records] == [1.0, 1.0]

    def test_configured_field_names(self, scattered_records, monkeypatch):
        monkeypatch.setattr(settings.enrichment, "distance_field", "dist")
        add_mahalanobis_distance({"x": 1.0, "y": 2.0}, scattered_records)
        assert "dist" in scattered_records[0]
        assert "mahaDist" not in scattered_records[0]


class TestEnrichmentFailures:
    """Failures leave every record untouched."""

    def test_missing_dimension(self, scattered_records):
        del scattered_records[3]["y"]
        before = copy.deepcopy(scattered_records)

        with pytest.raises(DimensionError) as excinfo:
            add_mahalanobis_distance({"x": 1.0, "y": 2.0}, scattered_records)

        assert excinfo.value.context == {"index": 3, "field": "y"}
        assert scattered_records == before

    def test_non_numeric_value(self, scattered_records):
        scattered_records[2]["x"] = "four"
        before = copy.deepcopy(scattered_records)

        with pytest.raises(InvalidValueError):
            add_mahalanobis_distance({"x": 1.0, "y": 2.0}, scattered_records)

        assert scattered_records == before

    def test_matrix_dimension_mismatch(self, scattered_records):
        with pytest.raises(DimensionError):
            add_mahalanobis_distance({"x": 1.0, "y": 2.0}, scattered_records, matrix=np.eye(3))
        assert all("mahaDist" not in r for r in scattered_records)

    def test_singular_covariance(self):
        records = [{"x": 1, "y": 2}, {"x": 2, "y": 4}, {"x": 3, "y": 6}]
        with pytest.raises(SingularMatrixError):
            add_mahalanobis_distance({"x": 0, "y": 0}, records)
        assert all("mahaDist" not in r for r in records)

    def test_singular_covariance_at_large_scale(self):
        records = [{"x": x * 1e5, "y": 3 * x * 1e5 + 7e5} for x in (1.1, 2.3, 3.7, 4.9)]
        with pytest.raises(SingularMatrixError):
            add_mahalanobis_distance({"x": 0, "y": 0}, records)
        assert all("mahaDist" not in r for r in records)

    def test_single_record_without_matrix(self):
        with pytest.raises(InsufficientDataError):
            add_mahalanobis_distance({"x": 0}, [{"x": 1}])

    def test_empty_origin(self, scattered_records):
        with pytest.raises(DimensionError):
            add_mahalanobis_distance({}, scattered_records)

    def test_non_numeric_origin(self, scattered_records):
        with pytest.raises(InvalidValueError):
            add_mahalanobis_distance({"x": None, "y": 2.0}, scattered_records)


class TestMahalanobisScorer:

    def test_fit_then_reuse_matrix(self, scattered_records):
        scorer = MahalanobisScorer({"x": 1.0, "y": 2.0}).fit(scattered_records)
        fitted = scorer.inv_cov.copy()

        others = [{"x": 1.0, "y": 2.0}, {"x": 9.0, "y": 9.0}]
        scorer.annotate(others, similarity=True)

        np.testing.assert_array_equal(scorer.inv_cov, fitted)
        assert others[0]["mahaDist"] == 0.0
        assert others[1]["similarity"] == 0.0

    def test_metrics(self, scattered_records):
        scorer = MahalanobisScorer({"x": 1.0, "y": 2.0})
        distances = scorer.score(scattered_records)

        metrics = scorer.get_metrics()
        assert metrics["n_records"] == 5
        assert metrics["max_distance"] == pytest.approx(distances.max())

    def test_similarity_scores_empty(self):
        assert len(MahalanobisScorer.similarity_scores(np.array([]))) == 0

    def test_asymmetric_matrix_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            MahalanobisScorer({"x": 0, "y": 0}, matrix=[[1, 2], [0, 1]])
        assert "not symmetric" in caplog.text
