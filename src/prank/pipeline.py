"""
End-to-end clustering: KNN descent followed by partitioned local depth.

Usage:
    from prank.pipeline import cluster_points
    from prank.simplex import KLDivergenceRanking

    result = cluster_points(points, KLDivergenceRanking())
    print(result.summary())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Hashable, Optional, Sequence, TypeVar
import logging

from prank.cohesion import CohesionGraphBuilder, CohesionResult
from prank.config import PrankConfig
from prank.neighbors import DescentReport, FriendGraph
from prank.ranking import RankingSystem

V = TypeVar("V", bound=Hashable)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult(Generic[V]):
    """Friend graph, descent diagnostics and cohesion output of one run."""
    config: PrankConfig
    friend_graph: FriendGraph[V]
    descent: DescentReport
    cohesion: CohesionResult[V]

    @property
    def components(self):
        return self.cohesion.components

    def summary(self) -> Dict[str, Any]:
        return {
            "k": self.config.k,
            "descent": self.descent.summary(),
            "cohesion": self.cohesion.summary(),
        }


def cluster_points(
    points: Sequence[V],
    ranking: RankingSystem[V],
    config: Optional[PrankConfig] = None,
) -> PipelineResult[V]:
    """
    Cluster points under a ranking system.

    Args:
        points: Points to cluster
        ranking: Ranking system giving each point its preference order
        config: Parameters (default PrankConfig())

    Returns:
        PipelineResult with the component partition in ``components``

    Raises:
        ConfigurationError: If config is invalid or there are too few points
    """
    config = (config or PrankConfig()).check()

    friend_graph = FriendGraph(
        points,
        ranking,
        k=config.k,
        seed=config.seed,
        max_workers=config.max_workers,
        force_serial=config.force_serial,
        chunk_size=config.chunk_size,
    )
    descent = friend_graph.run(
        max_rounds=config.max_rounds,
        sample_rate=config.sample_rate,
        quality_sample_size=config.quality_sample_size,
    )

    builder = CohesionGraphBuilder(
        friend_graph.friends,
        max_workers=config.max_workers,
        force_serial=config.force_serial,
    )
    cohesion = builder.build()

    logger.info(
        f"Clustered {friend_graph.n} points into {len(cohesion.components)} components "
        f"({len(cohesion.components.non_trivial)} non-trivial)"
    )
    return PipelineResult(
        config=config,
        friend_graph=friend_graph,
        descent=descent,
        cohesion=cohesion,
    )
