"""
Partitioned local depth cohesion and the cluster graph.

Turns a frozen friend map into:
- a directed cohesion graph with loops, weighted on the (n - 1) x cohesion
  scale
- the empirical and theoretical mean cohesion
- a cluster graph keeping x -> y only when both D(x, y) and D(y, x) exceed
  the empirical mean
- the strongly connected components of that cluster graph

References:
- K. S. Berenhaut, K. E. Moore, R. L. Melvin. Communities in data: a
  socially-motivated perspective on cohesion and clustering, 2020
- R. W. R. Darling. Efficient low dimensional embedding of concordant
  ranking systems, 2020
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generic, Hashable, Mapping, Optional, Sequence, Set, TypeVar
import logging
import math
import time

import pandas as pd

from prank.cohesion.focus import FocusStatistics
from prank.graphs import ComponentPartition, Graph, ValueGraph, find_strongly_connected_components
from prank.parallel import run_parallel

V = TypeVar("V", bound=Hashable)

logger = logging.getLogger(__name__)

# Relative tolerance when comparing empirical and theoretical mean cohesion
MEAN_COHESION_RTOL = 1e-9


@dataclass
class CohesionResult(Generic[V]):
    """
    Everything derived from one friend map.

    All cohesion values are on the (n - 1) x cohesion scale; divide by
    ``n - 1`` for probability-like values.
    """
    n: int
    focus_graph: ValueGraph[V, int]
    mutual_friend_graph: Graph[V]
    cohesion_graph: ValueGraph[V, float]
    cluster_graph: Graph[V]
    components: ComponentPartition[V]
    empirical_mean_cohesion: float
    theoretical_mean_cohesion: float
    timings: Dict[str, float] = field(default_factory=dict)

    def cohesion(self, x: V, y: V) -> float:
        """D(x, y), or 0.0 when y is neither x nor a friend of x."""
        return self.cohesion_graph.edge_value(x, y, 0.0)

    def component_of(self, point: V) -> FrozenSet[V]:
        return self.components.component_of(point)

    def component_sizes(self) -> Dict[int, int]:
        """Component size -> number of components of that size."""
        return self.components.size_tally()

    def neighborhood(self, point: V, steps: int = 1) -> Set[V]:
        """
        Points within `steps` arcs of `point` in the cohesion graph.

        The point itself is included.
        """
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")
        reached = {point}
        frontier = {point}
        for _ in range(steps):
            frontier = {
                y for x in frontier for y in self.cohesion_graph.successors(x)
            } - reached
            if not frontier:
                break
            reached |= frontier
        return reached

    def cohesion_frame(self, include_loops: bool = True) -> pd.DataFrame:
        """Cohesion arcs as a table with a normalized cohesion column."""
        scale = max(self.n - 1, 1)
        rows = [
            {"source": x, "target": y, "score": w, "cohesion": w / scale}
            for x, y, w in self.cohesion_graph.edge_items()
            if include_loops or x != y
        ]
        return pd.DataFrame(rows, columns=["source", "target", "score", "cohesion"])

    def summary(self) -> Dict[str, Any]:
        return {
            "n_points": self.n,
            "focus_edges": self.focus_graph.number_of_edges(),
            "mutual_friend_edges": self.mutual_friend_graph.number_of_edges(),
            "cohesion_arcs": self.cohesion_graph.number_of_edges(),
            "cluster_edges": self.cluster_graph.number_of_edges(),
            "n_components": len(self.components),
            "n_non_trivial": len(self.components.non_trivial),
            "n_isolated": len(self.components.singletons),
            "empirical_mean_cohesion": self.empirical_mean_cohesion,
            "theoretical_mean_cohesion": self.theoretical_mean_cohesion,
            "component_sizes": self.component_sizes(),
        }


class CohesionGraphBuilder(Generic[V]):
    """
    Build cohesion and cluster graphs from sorted friend sets.

    Friend sets need not all have the same size, but each must be sorted
    by its owner's ranking; no ranking system is needed at this stage.

    Example:
        >>> builder = CohesionGraphBuilder(friend_graph.friends)
        >>> result = builder.build()
        >>> print(result.component_sizes())
    """

    def __init__(
        self,
        friends: Mapping[V, Sequence[V]],
        max_workers: Optional[int] = None,
        force_serial: bool = False,
    ):
        """
        Initialize the builder.

        Args:
            friends: Point -> friends sorted by that point's ranking
            max_workers: Cap on worker threads
            force_serial: If True, never use the thread pool

        Raises:
            ConfigurationError: If the friend map is empty or malformed
        """
        self.statistics: FocusStatistics[V] = FocusStatistics(
            friends, max_workers=max_workers, force_serial=force_serial
        )
        self.friends = self.statistics.friends
        self.n = self.statistics.n
        self.max_workers = max_workers
        self.force_serial = force_serial

    def cohesion_scores(self, x: V, focus_graph: ValueGraph[V, int]) -> Dict[V, float]:
        """
        Map v -> D(x, v) for every friend v of x, and for v = x.

        Walks x's friends from the worst up. Each friend y contributes
        1/|V_{x,y}| if mutual and 1/n otherwise; only half of the last
        contribution counts for v = y. Strangers add n_strangers / n.
        """
        n = float(self.n)
        friend_set = self.friends[x]
        n_strangers = self.n - len(friend_set) - 1

        running = n_strangers / n
        scores: Dict[V, float] = {}
        for y in reversed(friend_set):
            if self.statistics.is_mutual(x, y):
                summand = 1.0 / focus_graph.edge_value(x, y)
            else:
                summand = 1.0 / n
            running += summand
            scores[y] = running - 0.5 * summand
        scores[x] = running
        return scores

    def theoretical_mean_cohesion(
        self,
        focus_graph: ValueGraph[V, int],
        mutual_friend_graph: Graph[V],
    ) -> float:
        """tau = 0.5 + (S_MF - 0.5) / n - M / n^2 over mutual friend pairs."""
        n = float(self.n)
        sum_mf = sum(
            1.0 / focus_graph.edge_value(x, y)
            for x, y in mutual_friend_graph.edges()
        )
        num_mf = mutual_friend_graph.number_of_edges()
        return 0.5 + (sum_mf - 0.5) / n - num_mf / (n * n)

    def build(self) -> CohesionResult[V]:
        """
        Build focus, mutual friend, cohesion and cluster graphs and the
        strongly connected components of the cluster graph.

        Returns:
            CohesionResult with every graph and both mean cohesions
        """
        timings: Dict[str, float] = {}

        start = time.perf_counter()
        focus_graph, mutual_friend_graph = self.statistics.build()
        timings["focus"] = time.perf_counter() - start

        # Cohesion graph
        start = time.perf_counter()
        points = list(self.friends)
        score_maps = run_parallel(
            lambda x: self.cohesion_scores(x, focus_graph),
            points,
            max_workers=self.max_workers,
            force_serial=self.force_serial,
        )
        cohesion_graph: ValueGraph[V, float] = ValueGraph(directed=True, allows_self_loops=True)
        cohesion_graph.add_nodes(points)
        weighted_trace = 0.0
        for x, scores in zip(points, score_maps):
            for v, score in scores.items():
                cohesion_graph.put_edge(x, v, score)
            weighted_trace += scores[x]
        timings["cohesion"] = time.perf_counter() - start

        empirical = 0.5 * weighted_trace / self.n
        theoretical = self.theoretical_mean_cohesion(focus_graph, mutual_friend_graph)
        if not math.isclose(empirical, theoretical, rel_tol=MEAN_COHESION_RTOL, abs_tol=1e-12):
            logger.warning(
                f"Empirical mean cohesion {empirical} differs from theoretical value {theoretical}"
            )
        logger.info(
            f"Cohesion graph built in {timings['cohesion']:.3f} seconds: "
            f"{cohesion_graph.number_of_edges()} arcs including loops; "
            f"mean cohesion {empirical:.6f} (theoretical {theoretical:.6f})"
        )

        # Cluster graph
        start = time.perf_counter()
        cluster_graph = self.build_cluster_graph(cohesion_graph, empirical)
        timings["cluster"] = time.perf_counter() - start
        if cluster_graph.number_of_edges() == 0:
            logger.info("Cluster graph has no edges -- all points are isolated")

        start = time.perf_counter()
        components = find_strongly_connected_components(cluster_graph)
        timings["components"] = time.perf_counter() - start

        result = CohesionResult(
            n=self.n,
            focus_graph=focus_graph,
            mutual_friend_graph=mutual_friend_graph,
            cohesion_graph=cohesion_graph,
            cluster_graph=cluster_graph,
            components=components,
            empirical_mean_cohesion=empirical,
            theoretical_mean_cohesion=theoretical,
            timings=timings,
        )
        logger.info(
            f"Cluster graph has {cluster_graph.number_of_edges()} edges and "
            f"{len(components.non_trivial)} non-trivial components "
            f"({len(components.singletons)} isolated points)"
        )
        return result

    @staticmethod
    def build_cluster_graph(
        cohesion_graph: ValueGraph[V, float],
        threshold: float,
    ) -> Graph[V]:
        """
        Keep x -> y (x != y) when min(D(x, y), D(y, x)) > threshold.

        A missing reverse arc counts as 0. Every point is kept as a node so
        isolated points become singleton components.
        """
        cluster_graph: Graph[V] = Graph(directed=True, allows_self_loops=False)
        cluster_graph.add_nodes(cohesion_graph.nodes())
        for x, y, forward in cohesion_graph.edge_items():
            if x == y:
                continue
            backward = cohesion_graph.edge_value(y, x, 0.0)
            if min(forward, backward) > threshold:
                cluster_graph.put_edge(x, y)
        return cluster_graph
