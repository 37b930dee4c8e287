"""
Points in the probability simplex ranked by Kullback-Leibler divergence.

A point stores a probability vector with all components positive. The logs
are computed once at construction, so each divergence evaluation is a
single dot product.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Tuple
import math

import numpy as np
import pandas as pd

from prank.ranking import DivergenceRanking


@dataclass(frozen=True)
class PointInSimplex:
    """
    A probability distribution on d outcomes.

    Equality and hashing use the probability vector only; the template
    label records which generating distribution produced the point and is
    ignored when comparing points.

    Attributes:
        p: Probabilities, all > 0
        template: Index of the generating template (None if irrelevant)
    """
    p: Tuple[float, ...]
    template: Optional[int] = field(default=None, compare=False)
    _p: np.ndarray = field(init=False, repr=False, compare=False)
    _logp: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        probabilities = tuple(float(v) for v in self.p)
        if not probabilities:
            raise ValueError("A point in the simplex needs at least one component")
        if min(probabilities) <= 0.0:
            raise ValueError("All probabilities must be positive")
        object.__setattr__(self, "p", probabilities)
        object.__setattr__(self, "_p", np.asarray(probabilities, dtype=float))
        object.__setattr__(self, "_logp", np.log(self._p))

    @classmethod
    def of(cls, probabilities: Sequence[float], template: Optional[int] = None) -> PointInSimplex:
        return cls(tuple(probabilities), template)

    @property
    def dimension(self) -> int:
        return len(self.p)

    def divergence(self, other: PointInSimplex) -> float:
        """
        Kullback-Leibler divergence D(self || other).

        Returns NaN when the dimensions differ.
        """
        if self.dimension != other.dimension:
            return math.nan
        return float(np.dot(self._p, self._logp - other._logp))

    def compare(self, y: PointInSimplex, z: PointInSimplex) -> int:
        """Negative when this point ranks y before z."""
        diff = self.divergence(y) - self.divergence(z)
        return (diff > 0) - (diff < 0)


def kl_divergence(x: PointInSimplex, y: PointInSimplex) -> float:
    return x.divergence(y)


class KLDivergenceRanking(DivergenceRanking[PointInSimplex]):
    """
    Each point ranks the others by KL divergence from itself.

    Example:
        >>> ranking = KLDivergenceRanking()
        >>> friend_graph = FriendGraph(points, ranking, k=10)
    """

    def __init__(self):
        super().__init__(kl_divergence)


def points_frame(points: Iterable[PointInSimplex]) -> pd.DataFrame:
    """
    Tabulate points as id, template and one column per coordinate.

    Useful for writing points to CSV and comparing with other clustering
    tools such as DBSCAN.
    """
    points = list(points)
    d = max((x.dimension for x in points), default=0)
    rows = []
    for i, x in enumerate(points):
        row = {"id": i, "template": x.template}
        row.update({f"p{j}": v for j, v in enumerate(x.p)})
        rows.append(row)
    return pd.DataFrame(rows, columns=["id", "template"] + [f"p{j}" for j in range(d)])
