"""
Unit tests for ranking systems.
"""

import math

import pytest

from prank.ranking import ComparatorRanking, DivergenceRanking


@pytest.fixture
def distance_ranking() -> DivergenceRanking:
    return DivergenceRanking(lambda a, b: abs(a - b))


class TestDivergenceRanking:
    """Tests for DivergenceRanking."""

    def test_compare_sign(self, distance_ranking):
        """Test comparison from a point's perspective."""
        assert distance_ranking.compare(5, 6, 9) < 0
        assert distance_ranking.compare(5, 9, 6) > 0
        assert distance_ranking.compare(5, 4, 6) == 0

    def test_prefers(self, distance_ranking):
        """Test the strict preference helper."""
        assert distance_ranking.prefers(0, 1, 2)
        assert not distance_ranking.prefers(0, 2, 1)

    def test_rank_sorted(self, distance_ranking):
        """Test sorting by a point's preference."""
        assert distance_ranking.rank_sorted(5, [1, 9, 6, 20]) == [6, 1, 9, 20]

    def test_asymmetric_divergence(self):
        """Test that the first argument is the point doing the ranking."""
        ranking = DivergenceRanking(lambda a, b: (b - a) if b > a else 10 * (a - b))
        # From 0: 3 costs 3, -1 costs 10
        assert ranking.rank_sorted(0, [-1, 3]) == [3, -1]

    def test_nan_rejected(self):
        """Test that an undefined divergence raises."""
        ranking = DivergenceRanking(lambda a, b: math.nan if b == 2 else float(b))
        with pytest.raises(ValueError):
            ranking.compare(0, 1, 2)


class TestComparatorRanking:
    """Tests for ComparatorRanking."""

    def test_matches_divergence_ranking(self, distance_ranking):
        """Test that a comparator-based ranking orders the same way."""
        def comparator_for(x):
            return lambda y, z: (abs(x - y) > abs(x - z)) - (abs(x - y) < abs(x - z))

        ranking = ComparatorRanking(comparator_for)
        points = [3, 17, 8, 11, 0]

        assert ranking.rank_sorted(10, points) == distance_ranking.rank_sorted(10, points)
        assert ranking.compare(10, 11, 17) < 0
