"""
Cluster Quality Validation

Compares strongly connected components of the cluster graph with known
ground-truth labels (e.g. the template each simulated point came from).

Two views are reported:
- sampled pairs: random distinct pairs classified as TP / FN / FP / TN,
  cheap enough for large n
- exact pair counts and the adjusted Rand index from scikit-learn
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Hashable, List, Mapping, Optional, Sequence, TypeVar
import logging
import math

import numpy as np
from sklearn.metrics import adjusted_rand_score
from sklearn.metrics.cluster import pair_confusion_matrix

from prank.config import ConfigurationError
from prank.graphs import ComponentPartition

V = TypeVar("V", bound=Hashable)

logger = logging.getLogger(__name__)

# Upper limit on sampled pairs
MAX_SAMPLED_PAIRS = 20000


@dataclass
class PairConfusion:
    """
    Pair counts of "same label" against "same component".

    tp: same label, same component
    fn: same label, different components
    fp: different labels, same component
    tn: different labels, different components
    """
    tp: int = 0
    fn: int = 0
    fp: int = 0
    tn: int = 0

    @property
    def total(self) -> int:
        return self.tp + self.fn + self.fp + self.tn

    @property
    def false_negative_rate(self) -> float:
        """Fraction of same-label pairs reported in different components."""
        same = self.tp + self.fn
        return self.fn / same if same else math.nan

    @property
    def false_positive_rate(self) -> float:
        """Fraction of different-label pairs reported in the same component."""
        different = self.fp + self.tn
        return self.fp / different if different else math.nan

    def as_matrix(self) -> List[List[int]]:
        """[[tp, fp], [fn, tn]]: rows = reported same / different."""
        return [[self.tp, self.fp], [self.fn, self.tn]]


@dataclass
class QualityReport:
    """Sampled and exact cluster quality measures."""
    sampled: PairConfusion
    exact: PairConfusion
    adjusted_rand_index: float
    n_points: int
    n_labels: int
    n_components: int

    def summary(self) -> Dict[str, Any]:
        return {
            "n_points": self.n_points,
            "n_labels": self.n_labels,
            "n_components": self.n_components,
            "sampled_pairs": self.sampled.total,
            "sampled_false_negative_rate": self.sampled.false_negative_rate,
            "sampled_false_positive_rate": self.sampled.false_positive_rate,
            "false_negative_rate": self.exact.false_negative_rate,
            "false_positive_rate": self.exact.false_positive_rate,
            "adjusted_rand_index": self.adjusted_rand_index,
        }


class ClusterQualityValidator(Generic[V]):
    """
    Validate a component partition against ground-truth labels.

    Example:
        >>> validator = ClusterQualityValidator.from_templates(points, result.components)
        >>> report = validator.report(seed=1)
        >>> print(f"ARI: {report.adjusted_rand_index:.3f}")
    """

    def __init__(self, labels: Mapping[V, Hashable], partition: ComponentPartition[V]):
        """
        Initialize validator.

        Args:
            labels: Point -> ground-truth label; every labeled point must
                belong to the partition
            partition: Components reported by the cohesion step
        """
        if len(labels) < 2:
            raise ConfigurationError("Need at least two labeled points to compare pairs")
        self.points: List[V] = list(labels)
        self.labels = dict(labels)
        self.partition = partition

        missing = [x for x in self.points if x not in partition]
        if missing:
            raise ConfigurationError(f"{len(missing)} labeled points are not in the partition")

        self._true = [self.labels[x] for x in self.points]
        self._pred = [partition.component_index(x) for x in self.points]

    @classmethod
    def from_templates(cls, points: Sequence[Any], partition: ComponentPartition) -> ClusterQualityValidator:
        """Use each point's ``template`` attribute as its label."""
        return cls({x: x.template for x in points}, partition)

    def classify_pair(self, x: V, y: V) -> str:
        """One of "tp", "fn", "fp", "tn" for the pair {x, y}."""
        same_label = self.labels[x] == self.labels[y]
        same_component = self.partition.same_component(x, y)
        if same_label:
            return "tp" if same_component else "fn"
        return "fp" if same_component else "tn"

    def sampled_confusion(
        self,
        n_pairs: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> PairConfusion:
        """
        Classify uniformly sampled distinct pairs (with replacement across pairs).

        Args:
            n_pairs: Pairs to sample (default min(20000, n(n-1)/2))
            seed: Seed for the sampling generator
        """
        n = len(self.points)
        if n_pairs is None:
            n_pairs = min(MAX_SAMPLED_PAIRS, n * (n - 1) // 2)
        if n_pairs < 1:
            raise ConfigurationError(f"n_pairs must be at least 1, got {n_pairs}")

        rng = np.random.default_rng(seed)
        xs = rng.integers(n, size=n_pairs)
        ys = rng.integers(n - 1, size=n_pairs)
        ys = np.where(ys >= xs, ys + 1, ys)

        counts = PairConfusion()
        for i, j in zip(xs, ys):
            outcome = self.classify_pair(self.points[i], self.points[j])
            setattr(counts, outcome, getattr(counts, outcome) + 1)

        logger.debug(f"Sampled {n_pairs} pairs: {counts}")
        return counts

    def exact_confusion(self) -> PairConfusion:
        """Counts over all unordered pairs, via scikit-learn."""
        # pair_confusion_matrix counts ordered pairs
        matrix = pair_confusion_matrix(self._true, self._pred)
        return PairConfusion(
            tp=int(matrix[1, 1]) // 2,
            fn=int(matrix[1, 0]) // 2,
            fp=int(matrix[0, 1]) // 2,
            tn=int(matrix[0, 0]) // 2,
        )

    def adjusted_rand_index(self) -> float:
        return float(adjusted_rand_score(self._true, self._pred))

    def report(self, n_pairs: Optional[int] = None, seed: Optional[int] = None) -> QualityReport:
        """Run both sampled and exact comparisons."""
        sampled = self.sampled_confusion(n_pairs, seed)
        report = QualityReport(
            sampled=sampled,
            exact=self.exact_confusion(),
            adjusted_rand_index=self.adjusted_rand_index(),
            n_points=len(self.points),
            n_labels=len(set(self._true)),
            n_components=len(set(self._pred)),
        )
        logger.info(
            f"Out of {sampled.tp + sampled.fn} sampled pairs with the same label, "
            f"{100.0 * sampled.false_negative_rate:.2f}% were reported in different components; "
            f"out of {sampled.fp + sampled.tn} with different labels, "
            f"{100.0 * sampled.false_positive_rate:.2f}% were reported in the same component"
        )
        return report
