"""
Prank Simplex Module

Probability vectors as points, for testing clustering on simulated data.

Key components:
- PointInSimplex: Probability vector with cached logs and template label
- KLDivergenceRanking: Ranking system by KL divergence from each point
- DirichletSampler: Dirichlet vectors and grouped template points
"""

from prank.simplex.point import KLDivergenceRanking, PointInSimplex, kl_divergence, points_frame
from prank.simplex.dirichlet import DirichletSampler

__all__ = [
    "PointInSimplex",
    "KLDivergenceRanking",
    "kl_divergence",
    "points_frame",
    "DirichletSampler",
]
