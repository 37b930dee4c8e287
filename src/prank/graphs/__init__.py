"""
Prank Graphs Module

Minimal graph structures and algorithms used by the cohesion pipeline.

Key components:
- ValueGraph / Graph: Adjacency-map graphs, directed or undirected
- find_strongly_connected_components: Iterative Kosaraju
- ComponentPartition: Components plus their condensation graph
"""

from prank.graphs.adjacency import Graph, ValueGraph
from prank.graphs.components import (
    ComponentPartition,
    find_strongly_connected_components,
    reverse_postorder,
)

__all__ = [
    "Graph",
    "ValueGraph",
    "ComponentPartition",
    "find_strongly_connected_components",
    "reverse_postorder",
]
