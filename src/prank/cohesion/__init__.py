"""
Prank Cohesion Module

Partitioned local depth over an approximate k-NN graph.

Key components:
- FocusStatistics: K-focus counts, focus graph and mutual friend graph
- CohesionGraphBuilder: Cohesion scores, mean cohesion, cluster graph
- CohesionResult: Graphs, thresholds and the final component partition
"""

from prank.cohesion.focus import FocusStatistics
from prank.cohesion.builder import CohesionGraphBuilder, CohesionResult

__all__ = [
    "FocusStatistics",
    "CohesionGraphBuilder",
    "CohesionResult",
]
