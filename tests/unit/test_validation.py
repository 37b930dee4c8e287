"""
Unit tests for cluster quality validation.
"""

import math

import pytest

from prank.config import ConfigurationError
from prank.graphs import Graph, find_strongly_connected_components
from prank.simplex import PointInSimplex
from prank.validation import ClusterQualityValidator, PairConfusion


def partition_of(groups, extra_nodes=()):
    """Partition whose components are the given groups (each made a cycle)."""
    graph = Graph()
    graph.add_nodes(extra_nodes)
    for group in groups:
        graph.add_nodes(group)
        if len(group) > 1:
            for u, v in zip(group, group[1:] + group[:1]):
                graph.put_edge(u, v)
    return find_strongly_connected_components(graph)


@pytest.fixture
def labels() -> dict:
    return {0: "A", 1: "A", 2: "A", 3: "B", 4: "B", 5: "B"}


class TestPairConfusion:
    """Tests for PairConfusion."""

    def test_rates(self):
        """Test false negative and false positive rates."""
        counts = PairConfusion(tp=6, fn=2, fp=1, tn=11)
        assert counts.total == 20
        assert counts.false_negative_rate == pytest.approx(0.25)
        assert counts.false_positive_rate == pytest.approx(1 / 12)
        assert counts.as_matrix() == [[6, 1], [2, 11]]

    def test_undefined_rates(self):
        """Test that rates without denominators are NaN."""
        counts = PairConfusion(tp=0, fn=0, fp=0, tn=3)
        assert math.isnan(counts.false_negative_rate)
        assert counts.false_positive_rate == 0.0


class TestClusterQualityValidator:
    """Tests for ClusterQualityValidator."""

    def test_classify_pair(self, labels):
        """Test the four pair outcomes."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1], [2], [3, 4, 5]]))
        assert validator.classify_pair(0, 1) == "tp"
        assert validator.classify_pair(0, 2) == "fn"
        assert validator.classify_pair(3, 4) == "tp"
        assert validator.classify_pair(2, 3) == "tn"

        merged = ClusterQualityValidator(labels, partition_of([[0, 1, 2, 3, 4, 5]]))
        assert merged.classify_pair(0, 5) == "fp"

    def test_exact_confusion(self, labels):
        """Test exact pair counts over all 15 pairs."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1], [2], [3, 4, 5]]))
        exact = validator.exact_confusion()

        assert (exact.tp, exact.fn, exact.fp, exact.tn) == (4, 2, 0, 9)
        assert exact.false_negative_rate == pytest.approx(1 / 3)
        assert exact.false_positive_rate == 0.0

    def test_perfect_partition(self, labels):
        """Test that a partition matching the labels has no errors."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1, 2], [3, 4, 5]]))
        report = validator.report(n_pairs=500, seed=3)

        assert report.adjusted_rand_index == pytest.approx(1.0)
        assert report.sampled.total == 500
        assert report.sampled.fn == report.sampled.fp == 0
        assert report.n_labels == report.n_components == 2

    def test_imperfect_partition(self, labels):
        """Test that splitting a label lowers the adjusted Rand index."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1], [2], [3, 4, 5]]))
        assert 0.0 < validator.adjusted_rand_index() < 1.0

    def test_sampled_pairs_are_distinct(self, labels):
        """Test that sampling never pairs a point with itself."""
        validator = ClusterQualityValidator(labels, partition_of([[0], [1], [2], [3], [4], [5]]))
        counts = validator.sampled_confusion(n_pairs=1000, seed=0)

        # All singletons: a self pair would be counted as same component
        assert counts.tp == counts.fp == 0
        assert counts.total == 1000

    def test_default_pair_count(self, labels):
        """Test that the default pair count is capped by n(n-1)/2."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1, 2], [3, 4, 5]]))
        assert validator.sampled_confusion(seed=1).total == 15

    def test_unknown_points_rejected(self, labels):
        """Test that labeled points missing from the partition are rejected."""
        with pytest.raises(ConfigurationError):
            ClusterQualityValidator(labels, partition_of([[0, 1, 2]]))

    def test_from_templates(self):
        """Test labels taken from simplex point templates."""
        points = [
            PointInSimplex.of([0.9, 0.1], 0),
            PointInSimplex.of([0.8, 0.2], 0),
            PointInSimplex.of([0.1, 0.9], 1),
        ]
        validator = ClusterQualityValidator.from_templates(
            points, partition_of([points[:2], points[2:]])
        )
        exact = validator.exact_confusion()
        assert (exact.tp, exact.fn, exact.fp, exact.tn) == (1, 0, 0, 2)

    def test_report_summary(self, labels):
        """Test the report summary dictionary."""
        validator = ClusterQualityValidator(labels, partition_of([[0, 1], [2], [3, 4, 5]]))
        summary = validator.report(seed=2).summary()

        assert summary["n_points"] == 6
        assert summary["n_components"] == 3
        assert summary["false_negative_rate"] == pytest.approx(1 / 3)
