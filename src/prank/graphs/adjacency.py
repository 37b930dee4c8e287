"""
Adjacency-map graphs.

A small graph abstraction covering what the cohesion pipeline
needs: nodes in insertion order, edges carrying a value, lookup with a
default, neighbor iteration and transposition. Directed and undirected
variants share one implementation.
"""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterable, Iterator, Optional, Tuple, TypeVar

N = TypeVar("N", bound=Hashable)
W = TypeVar("W")


class ValueGraph(Generic[N, W]):
    """
    Graph whose edges carry a value.

    For undirected graphs each edge is stored under both endpoints and
    reported once by ``edges()``.

    Example:
        >>> g = ValueGraph(directed=False)
        >>> g.put_edge("a", "b", 3)
        >>> g.edge_value("b", "a")
        3
    """

    def __init__(self, directed: bool = True, allows_self_loops: bool = False):
        self.directed = directed
        self.allows_self_loops = allows_self_loops
        self._succ: Dict[N, Dict[N, W]] = {}
        self._pred: Dict[N, Dict[N, W]] = {}
        self._order: Dict[N, int] = {}
        self._edge_count = 0

    def add_node(self, node: N) -> bool:
        """Add a node. Returns False if it was already present."""
        if node in self._succ:
            return False
        self._order[node] = len(self._order)
        self._succ[node] = {}
        self._pred[node] = self._succ[node] if not self.directed else {}
        return True

    def add_nodes(self, nodes: Iterable[N]) -> None:
        for node in nodes:
            self.add_node(node)

    def put_edge(self, u: N, v: N, value: W) -> None:
        """Insert or overwrite the edge u -> v (or {u, v} if undirected)."""
        if u == v and not self.allows_self_loops:
            raise ValueError(f"Self loop on {u!r} not allowed in this graph")
        self.add_node(u)
        self.add_node(v)
        if v not in self._succ[u]:
            self._edge_count += 1
        self._succ[u][v] = value
        if self.directed:
            self._pred[v][u] = value
        else:
            self._succ[v][u] = value

    def has_edge(self, u: N, v: N) -> bool:
        return u in self._succ and v in self._succ[u]

    def edge_value(self, u: N, v: N, default: Optional[W] = None) -> Optional[W]:
        """Value of the edge u -> v, or `default` when absent."""
        return self._succ.get(u, {}).get(v, default)

    def has_node(self, node: N) -> bool:
        return node in self._succ

    def nodes(self) -> Iterator[N]:
        return iter(self._succ)

    def successors(self, node: N) -> Iterable[N]:
        return self._succ[node].keys()

    def predecessors(self, node: N) -> Iterable[N]:
        return self._pred[node].keys()

    def adjacent_nodes(self, node: N) -> Iterable[N]:
        """Neighbors in either direction."""
        if not self.directed:
            return self._succ[node].keys()
        return self._succ[node].keys() | self._pred[node].keys()

    def out_degree(self, node: N) -> int:
        return len(self._succ[node])

    def in_degree(self, node: N) -> int:
        return len(self._pred[node])

    def degree(self, node: N) -> int:
        """Number of incident edges; a self loop counts twice."""
        if not self.directed:
            return len(self._succ[node]) + (1 if node in self._succ[node] else 0)
        return len(self._succ[node]) + len(self._pred[node])

    def edges(self) -> Iterator[Tuple[N, N]]:
        """Each edge once; undirected edges are reported by insertion order of endpoints."""
        for u, targets in self._succ.items():
            for v in targets:
                if self.directed or self._order[u] <= self._order[v]:
                    yield u, v

    def edge_items(self) -> Iterator[Tuple[N, N, W]]:
        for u, v in self.edges():
            yield u, v, self._succ[u][v]

    def number_of_nodes(self) -> int:
        return len(self._succ)

    def number_of_edges(self) -> int:
        return self._edge_count

    def transpose(self) -> "ValueGraph[N, W]":
        """New graph with every edge reversed (a copy when undirected)."""
        result = self.__class__(self.directed, self.allows_self_loops)
        result.add_nodes(self.nodes())
        for u, v, value in self.edge_items():
            result.put_edge(v, u, value)
        return result

    def __contains__(self, node: object) -> bool:
        return node in self._succ

    def __len__(self) -> int:
        return len(self._succ)

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return (
            f"{self.__class__.__name__}({kind}, nodes={self.number_of_nodes()}, "
            f"edges={self.number_of_edges()})"
        )


class Graph(ValueGraph[N, bool]):
    """Unweighted graph: every edge carries the value True."""

    def put_edge(self, u: N, v: N, value: bool = True) -> None:
        super().put_edge(u, v, True)
