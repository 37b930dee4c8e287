"""
Performance benchmarks for KNN descent and cohesion.

Tests descent and cohesion on simulated Dirichlet data to keep the
per-round cost in check as the code changes.
"""

import pytest

from prank.cohesion import CohesionGraphBuilder
from prank.graphs import Graph, find_strongly_connected_components
from prank.neighbors import FriendGraph
from prank.simplex import DirichletSampler, KLDivergenceRanking


@pytest.fixture(scope="module")
def dirichlet_points():
    return DirichletSampler(seed=42).generate_template_points(d=10, n_groups=5, n_points=1000)


@pytest.fixture(scope="module")
def converged_friends(dirichlet_points):
    graph = FriendGraph(dirichlet_points, KLDivergenceRanking(), k=10, seed=42)
    graph.run()
    return dict(graph.friends)


@pytest.mark.benchmark
def test_descent_round_performance(benchmark, dirichlet_points):
    """Benchmark one refresh round on ~1000 points."""
    graph = FriendGraph(dirichlet_points, KLDivergenceRanking(), k=10, seed=42)
    graph.initialize()

    benchmark(graph.refresh)

    # Target: <5 seconds per round for 1000 points
    assert benchmark.stats['mean'] < 5.0


@pytest.mark.benchmark
def test_cohesion_build_performance(benchmark, converged_friends):
    """Benchmark the cohesion and cluster graph build."""
    def build():
        return CohesionGraphBuilder(converged_friends).build()

    result = benchmark(build)

    assert result.n == len(converged_friends)
    assert benchmark.stats['mean'] < 5.0


@pytest.mark.benchmark
def test_components_performance(benchmark):
    """Benchmark strongly connected components on 10000 disjoint 5-cliques."""
    graph = Graph()
    for block in range(10000):
        nodes = [block * 5 + i for i in range(5)]
        for u in nodes:
            for v in nodes:
                if u != v:
                    graph.put_edge(u, v)

    partition = benchmark(find_strongly_connected_components, graph)

    assert len(partition) == 10000
    assert benchmark.stats['mean'] < 5.0
