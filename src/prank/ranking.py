"""
Concordant ranking systems.

A ranking system gives every point its own strict order over all other
points: ``compare(x, y, z) < 0`` means that x prefers y to z. The core
algorithms never look inside points; this is the only notion of distance
they use.

Preconditions (not checked at runtime):
- For each x, ``compare(x, ., .)`` is a strict total order over the points
  other than x.
- The order depends only on the three points involved and is stable for
  the whole lifetime of a descent run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cmp_to_key
from typing import Any, Callable, Generic, Hashable, Iterable, List, TypeVar
import math

V = TypeVar("V", bound=Hashable)


class RankingSystem(ABC, Generic[V]):
    """
    Capability interface: compare two points from the perspective of a third.

    Subclasses implement ``compare``. ``key_for`` may be overridden when a
    cheaper sort key exists (e.g. a precomputed divergence).
    """

    @abstractmethod
    def compare(self, x: V, y: V, z: V) -> int:
        """Negative if x ranks y before z, positive if after, zero on a tie."""

    def key_for(self, x: V) -> Callable[[V], Any]:
        """Sort key ordering points by x's preference (most preferred first)."""
        return cmp_to_key(lambda y, z: self.compare(x, y, z))

    def prefers(self, x: V, y: V, z: V) -> bool:
        """True when x ranks y strictly before z."""
        return self.compare(x, y, z) < 0

    def rank_sorted(self, x: V, points: Iterable[V]) -> List[V]:
        """Sort points by x's preference."""
        return sorted(points, key=self.key_for(x))


class DivergenceRanking(RankingSystem[V]):
    """
    Ranking induced by a (possibly asymmetric) divergence.

    x ranks y before z when ``divergence(x, y) < divergence(x, z)``.

    Example:
        >>> ranking = DivergenceRanking(lambda a, b: abs(a - b))
        >>> ranking.rank_sorted(5, [1, 9, 6])
        [6, 1, 9]
    """

    def __init__(self, divergence: Callable[[V, V], float]):
        self.divergence = divergence

    def compare(self, x: V, y: V, z: V) -> int:
        diff = self.divergence(x, y) - self.divergence(x, z)
        if math.isnan(diff):
            raise ValueError(f"Divergence undefined when ranking {y!r} and {z!r} from {x!r}")
        return (diff > 0) - (diff < 0)

    def key_for(self, x: V) -> Callable[[V], float]:
        return lambda y: self.divergence(x, y)


class ComparatorRanking(RankingSystem[V]):
    """
    Ranking built from a function mapping a point to its comparator.

    ``comparator_for(x)(y, z)`` follows the usual ``cmp`` convention.
    """

    def __init__(self, comparator_for: Callable[[V], Callable[[V, V], int]]):
        self.comparator_for = comparator_for

    def compare(self, x: V, y: V, z: V) -> int:
        return self.comparator_for(x)(y, z)

    def key_for(self, x: V) -> Callable[[V], Any]:
        return cmp_to_key(self.comparator_for(x))
