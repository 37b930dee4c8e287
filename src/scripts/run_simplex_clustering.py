#!/usr/bin/env python3
"""
Cluster simulated Dirichlet data and report cluster quality.

Points are drawn in n_groups templates; each template shares one random
Dirichlet parameter vector. KNN descent under KL divergence builds the
friend graph, then cohesion components are compared with the templates.

Usage:
    python src/scripts/run_simplex_clustering.py D N_GROUPS N K [--seed S] [--csv FILE]
"""

import sys
import argparse
import logging
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from prank.config import ConfigurationError, PrankConfig
from prank.pipeline import cluster_points
from prank.simplex import DirichletSampler, KLDivergenceRanking, points_frame
from prank.validation import ClusterQualityValidator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def descent_table(result) -> Table:
    table = Table(title="KNN Descent")
    table.add_column("Round", justify="right", style="cyan")
    table.add_column("Seconds", justify="right")
    table.add_column("Clustering rate", justify="right", style="green")
    table.add_column("Co-friend sizes", style="yellow")

    descent = result.descent
    table.add_row("0", f"{descent.initialization_seconds:.3f}", str(descent.initial_clustering_rate), "")
    for r in descent.round_reports:
        table.add_row(str(r.round), f"{r.seconds:.3f}", str(r.clustering_rate), str(r.co_friend_stats))
    return table


def component_table(result) -> Table:
    table = Table(title="Component Sizes")
    table.add_column("Size", justify="right", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for size, count in result.cohesion.component_sizes().items():
        table.add_row(str(size), str(count))
    return table


def quality_table(report) -> Table:
    table = Table(title="Cluster Quality")
    table.add_column("Measure", style="cyan")
    table.add_column("Value", justify="right", style="green")
    sampled = report.sampled
    table.add_row("Sampled pairs", f"{sampled.total:,}")
    table.add_row("Confusion [TP FP]", f"[{sampled.tp} {sampled.fp}]")
    table.add_row("Confusion [FN TN]", f"[{sampled.fn} {sampled.tn}]")
    table.add_row("False negative rate", f"{100.0 * sampled.false_negative_rate:.2f}%")
    table.add_row("False positive rate", f"{100.0 * sampled.false_positive_rate:.2f}%")
    table.add_row("Exact false negative rate", f"{100.0 * report.exact.false_negative_rate:.2f}%")
    table.add_row("Exact false positive rate", f"{100.0 * report.exact.false_positive_rate:.2f}%")
    table.add_row("Adjusted Rand index", f"{report.adjusted_rand_index:.4f}")
    return table


def main():
    parser = argparse.ArgumentParser(
        description="KNN descent and cohesion clustering on simulated Dirichlet data"
    )
    parser.add_argument('d', type=int, help='Dimension of the simplex')
    parser.add_argument('n_groups', type=int, help='Number of templates (true clusters)')
    parser.add_argument('n', type=int, help='Approximate number of points')
    parser.add_argument('k', type=int, help='Friends per point')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--pairs', type=int, help='Pairs sampled for the quality report')
    parser.add_argument('--csv', type=Path, help='Write points and components to this CSV file')
    args = parser.parse_args()

    console = Console()
    console.print(Panel.fit(
        f"[bold blue]Prank - Simplex Clustering[/bold blue]\n"
        f"d={args.d}, groups={args.n_groups}, n={args.n}, k={args.k}",
        border_style="blue"
    ))

    sampler = DirichletSampler(seed=args.seed)
    points = sampler.generate_template_points(args.d, args.n_groups, args.n)

    config = PrankConfig.from_env()
    config.k = args.k
    if args.seed is not None:
        config.seed = args.seed

    try:
        result = cluster_points(points, KLDivergenceRanking(), config)
    except ConfigurationError as e:
        console.print(f"[red]Cannot cluster: {e}[/red]")
        return 1

    console.print(descent_table(result))
    if result.descent.quality is not None:
        console.print(f"Fraction of true k-NN recovered: {result.descent.quality}")
    console.print(
        f"Mean cohesion {result.cohesion.empirical_mean_cohesion:.6f} "
        f"(theoretical {result.cohesion.theoretical_mean_cohesion:.6f})"
    )
    console.print(component_table(result))

    validator = ClusterQualityValidator.from_templates(result.friend_graph.points, result.components)
    report = validator.report(n_pairs=args.pairs, seed=args.seed)
    console.print(quality_table(report))

    if args.csv:
        frame = points_frame(result.friend_graph.points)
        frame["component"] = [result.components.component_index(x) for x in result.friend_graph.points]
        frame.to_csv(args.csv, index=False)
        console.print(f"[green]Wrote {len(frame)} points to {args.csv}[/green]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
