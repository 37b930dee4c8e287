"""
Strongly connected components (Kosaraju's algorithm).

Both traversals use explicit stacks so large cluster graphs never hit the
interpreter's recursion limit.

Algorithm:
    1. Reverse postorder (finish order) of the graph.
    2. Transpose the graph.
    3. For each node in reverse postorder that is not yet assigned, traverse
       the transpose through unassigned nodes; everything reached is one
       component. Assigned nodes reached on the way belong to components
       discovered earlier and give the condensation edges into the new one.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Generic, Hashable, Iterator, List, TypeVar
import logging

import pandas as pd

from prank.config import ConfigurationError
from prank.graphs.adjacency import Graph, ValueGraph

N = TypeVar("N", bound=Hashable)

logger = logging.getLogger(__name__)


@dataclass
class ComponentPartition(Generic[N]):
    """
    Partition of a graph's nodes into strongly connected components.

    ``components`` is in discovery order, which is a topological order of
    the condensation. ``graph`` is the condensation itself: one node per
    component, an edge when some arc of the input graph joins them.
    """
    components: List[FrozenSet[N]]
    graph: Graph[FrozenSet[N]]
    _membership: Dict[N, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if not self._membership:
            for index, component in enumerate(self.components):
                for node in component:
                    self._membership[node] = index

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[FrozenSet[N]]:
        return iter(self.components)

    def __contains__(self, node: object) -> bool:
        return node in self._membership

    def component_of(self, node: N) -> FrozenSet[N]:
        """Component containing a node."""
        return self.components[self._membership[node]]

    def component_index(self, node: N) -> int:
        return self._membership[node]

    def same_component(self, u: N, v: N) -> bool:
        return self._membership[u] == self._membership[v]

    def size_tally(self) -> Dict[int, int]:
        """Component size -> number of components of that size, by size."""
        counts = Counter(len(component) for component in self.components)
        return dict(sorted(counts.items()))

    @property
    def singletons(self) -> List[FrozenSet[N]]:
        return [c for c in self.components if len(c) == 1]

    @property
    def non_trivial(self) -> List[FrozenSet[N]]:
        return [c for c in self.components if len(c) > 1]

    def to_frame(self) -> pd.DataFrame:
        """One row per node: node, component index, component size."""
        rows = [
            {"node": node, "component": index, "size": len(component)}
            for index, component in enumerate(self.components)
            for node in component
        ]
        return pd.DataFrame(rows, columns=["node", "component", "size"])


def reverse_postorder(graph: ValueGraph) -> List:
    """Nodes sorted by decreasing depth-first finishing time."""
    visited = set()
    finished = []

    for root in graph.nodes():
        if root in visited:
            continue
        visited.add(root)
        stack = [(root, iter(graph.successors(root)))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if child not in visited:
                    visited.add(child)
                    stack.append((child, iter(graph.successors(child))))
                    break
            else:
                stack.pop()
                finished.append(node)

    finished.reverse()
    return finished


def find_strongly_connected_components(graph: ValueGraph[N, object]) -> ComponentPartition[N]:
    """
    Compute the strongly connected components of a directed graph.

    A graph with nodes but no edges is valid and yields one singleton
    component per node.

    Args:
        graph: Directed graph (self loops are ignored)

    Returns:
        ComponentPartition with the components and their condensation

    Raises:
        ConfigurationError: If the graph has no nodes
    """
    if graph.number_of_nodes() == 0:
        raise ConfigurationError("Can't find components in an empty graph")

    condensation: Graph[FrozenSet[N]] = Graph(directed=True, allows_self_loops=False)
    assigned: Dict[N, FrozenSet[N]] = {}
    components: List[FrozenSet[N]] = []

    # Step 1
    order = reverse_postorder(graph)
    # Step 2
    transposed = graph.transpose()
    # Step 3
    for node in order:
        if node in assigned:
            continue
        members = {node}
        reached_earlier = set()
        stack = [node]
        while stack:
            current = stack.pop()
            for source in transposed.successors(current):
                if source in assigned:
                    reached_earlier.add(source)
                elif source not in members:
                    members.add(source)
                    stack.append(source)

        component = frozenset(members)
        condensation.add_node(component)
        for source in reached_earlier:
            condensation.put_edge(assigned[source], component)
        for member in component:
            assigned[member] = component
        components.append(component)

    logger.debug(
        f"Found {len(components)} strongly connected components "
        f"in a graph with {graph.number_of_nodes()} nodes and {graph.number_of_edges()} edges"
    )
    return ComponentPartition(components=components, graph=condensation)
