"""
Dirichlet random vectors for simulating clustered probability data.

Template points come in groups: every point of a group is drawn from a
Dirichlet distribution with the same randomly chosen parameter vector, so
groups form natural clusters under KL divergence.
"""

from __future__ import annotations

from typing import List, Optional, Sequence
import logging

import numpy as np

from prank.simplex.point import PointInSimplex

logger = logging.getLogger(__name__)

# Smallest component returned by simulate_alpha
DEFAULT_EPS = 1.0e-6


class DirichletSampler:
    """
    Sample Dirichlet random vectors from a seeded numpy generator.

    Example:
        >>> sampler = DirichletSampler(seed=42)
        >>> points = sampler.generate_template_points(d=20, n_groups=5, n_points=2000)
    """

    def __init__(self, seed: Optional[int] = None, eps: float = DEFAULT_EPS):
        if not 0.0 < eps < 1.0:
            raise ValueError(f"eps must be in (0, 1), got {eps}")
        self.rng = np.random.default_rng(seed)
        self.eps = eps

    def simulate(self, d: int) -> np.ndarray:
        """
        Flat Dirichlet vector: d Exponential(1) variables divided by their sum.
        """
        if d < 1:
            raise ValueError(f"d must be at least 1, got {d}")
        x = self.rng.standard_exponential(d)
        return x / x.sum()

    def simulate_inverse_uniform(self, d: int) -> np.ndarray:
        """
        Random Dirichlet parameters 1/U with U ~ Uniform(eps, 1).

        One such vector is shared by a whole group of points.
        """
        if d < 1:
            raise ValueError(f"d must be at least 1, got {d}")
        return 1.0 / self.rng.uniform(self.eps, 1.0, size=d)

    def simulate_alpha(self, alpha: Sequence[float], size: Optional[int] = None) -> np.ndarray:
        """
        Dirichlet vector(s) with parameters alpha.

        Gamma(alpha_i, 1) draws are normalized and then shifted so that no
        component is smaller than eps while the total stays 1.

        Args:
            alpha: d positive parameters
            size: Number of vectors; None returns a single vector

        Returns:
            Array of shape (d,) or (size, d)
        """
        alpha = np.asarray(alpha, dtype=float)
        if alpha.ndim != 1 or alpha.size == 0:
            raise ValueError("alpha must be a non-empty vector")
        if np.any(alpha <= 0):
            raise ValueError("All Dirichlet parameters must be positive")

        shape = alpha.shape if size is None else (size, alpha.size)
        x = self.rng.gamma(alpha, size=shape)
        total = x.sum(axis=-1, keepdims=True)
        scale = 1.0 - self.eps * alpha.size
        return self.eps + scale * x / total

    def simulate_with_random_params(self, d: int, n: int) -> np.ndarray:
        """
        n Dirichlet vectors sharing one random parameter vector.

        Returns:
            Array of shape (n, d)
        """
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")
        alpha = self.simulate_inverse_uniform(d)
        return self.simulate_alpha(alpha, size=n)

    def group_sizes(self, n_groups: int, n_points: int) -> List[int]:
        """
        Split n_points into n_groups sizes proportional to a flat Dirichlet.

        Sizes are rounded, so they may not sum exactly to n_points.
        """
        if n_groups < 1:
            raise ValueError(f"n_groups must be at least 1, got {n_groups}")
        if n_points < 0:
            raise ValueError(f"n_points must be non-negative, got {n_points}")
        weights = self.simulate(n_groups)
        return [int(s) for s in np.rint(weights * n_points)]

    def generate_template_points(
        self,
        d: int,
        n_groups: int,
        n_points: int,
    ) -> List[PointInSimplex]:
        """
        Generate labeled points in groups (templates).

        Args:
            d: Dimension of the simplex
            n_groups: Number of templates
            n_points: Approximate total number of points

        Returns:
            Points whose ``template`` is the index of their group
        """
        sizes = self.group_sizes(n_groups, n_points)
        points: List[PointInSimplex] = []
        for template, size in enumerate(sizes):
            for row in self.simulate_with_random_params(d, size):
                points.append(PointInSimplex(tuple(row), template))

        logger.info(
            f"Generated {len(points)} Dirichlet samples of dimension {d} "
            f"in {n_groups} templates of sizes {sizes}"
        )
        return points
