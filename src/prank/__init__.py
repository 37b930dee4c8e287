"""
Prank - Ranking-Based Clustering

Clustering from nothing more than each point's own preference order over the
other points: approximate k-nearest neighbors by KNN descent, then
partitioned local depth (PaLD) cohesion over the friend graph.

Modules:
- ranking: Concordant ranking systems
- neighbors: KNN descent (friend and co-friend sets)
- cohesion: K-focus counts, cohesion and cluster graphs
- graphs: Adjacency-map graphs and strongly connected components
- simplex: Probability vectors, KL divergence and Dirichlet sampling
- validation: Cluster quality against ground-truth labels
"""

__version__ = "0.1.0"
__author__ = "Prank Development Team"

# Re-export key classes for convenience
from prank.config import ConfigurationError, PrankConfig, config
from prank.ranking import RankingSystem, DivergenceRanking, ComparatorRanking
from prank.graphs import (
    Graph,
    ValueGraph,
    ComponentPartition,
    find_strongly_connected_components,
)
from prank.neighbors import (
    FriendGraph,
    FriendSnapshot,
    DescentReport,
    RoundReport,
    SummaryStatistics,
)
from prank.cohesion import (
    FocusStatistics,
    CohesionGraphBuilder,
    CohesionResult,
)
from prank.simplex import (
    PointInSimplex,
    KLDivergenceRanking,
    DirichletSampler,
    points_frame,
)
from prank.validation import ClusterQualityValidator, PairConfusion, QualityReport
from prank.pipeline import PipelineResult, cluster_points

__all__ = [
    # Version
    "__version__",
    # Config
    "ConfigurationError",
    "PrankConfig",
    "config",
    # Ranking
    "RankingSystem",
    "DivergenceRanking",
    "ComparatorRanking",
    # Graphs
    "Graph",
    "ValueGraph",
    "ComponentPartition",
    "find_strongly_connected_components",
    # Neighbors
    "FriendGraph",
    "FriendSnapshot",
    "DescentReport",
    "RoundReport",
    "SummaryStatistics",
    # Cohesion
    "FocusStatistics",
    "CohesionGraphBuilder",
    "CohesionResult",
    # Simplex
    "PointInSimplex",
    "KLDivergenceRanking",
    "DirichletSampler",
    "points_frame",
    # Validation
    "ClusterQualityValidator",
    "PairConfusion",
    "QualityReport",
    # Pipeline
    "PipelineResult",
    "cluster_points",
]
