"""
Thread-pool helpers for per-point work.

Every parallel stage in prank maps a pure function over points (or chunks
of points) against a frozen snapshot, so an order-preserving map is the only
primitive needed. Threads are used rather than processes because ranking
systems are usually closures that cannot be pickled.

Usage:
    from prank.parallel import run_parallel

    results = run_parallel(fn, items)                 # Auto-tunes workers
    results = run_parallel(fn, items, max_workers=4)  # Manual override
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

# Minimum items required to justify parallelization (per worker)
MIN_ITEMS_PER_WORKER = 2


def get_cpu_count() -> int:
    """Number of available CPUs, minimum 1."""
    return os.cpu_count() or 1


def get_optimal_workers(max_workers: Optional[int] = None) -> int:
    """
    Calculate the number of workers based on available CPUs.

    Heuristics:
    - 1-2 CPUs: 1 worker (serial execution)
    - 3-4 CPUs: 2 workers
    - 5+ CPUs: cpu_count - 2 (leave headroom for system)

    Args:
        max_workers: Optional maximum to cap the result.

    Returns:
        Number of workers (>= 1).
    """
    cpu = get_cpu_count()

    if cpu <= 2:
        optimal = 1
    elif cpu <= 4:
        optimal = 2
    else:
        optimal = max(1, cpu - 2)

    if max_workers is not None:
        optimal = min(optimal, max_workers)

    return max(1, optimal)


def should_use_parallel(n_items: int, max_workers: Optional[int] = None) -> bool:
    """
    Determine if parallel execution is worth the overhead.

    Returns False if only one worker is available or if there are too few
    items to keep every worker busy.
    """
    workers = get_optimal_workers(max_workers)

    if workers <= 1:
        return False

    if n_items < workers * MIN_ITEMS_PER_WORKER:
        return False

    return True


def run_parallel(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    force_serial: bool = False,
) -> List[R]:
    """
    Apply a function to every item on a thread pool.

    Features:
    - Automatically determines worker count
    - Falls back to serial execution for small workloads
    - Maintains result order (same as input order)
    - Exceptions raised by `fn` propagate to the caller

    Args:
        fn: Function to apply to each item. Must not mutate shared state.
        items: Sequence of items to process.
        max_workers: Optional cap on number of workers.
        force_serial: If True, always use serial execution.

    Returns:
        List of results in same order as input items.
    """
    items_list = list(items)
    n_items = len(items_list)

    if n_items == 0:
        return []

    use_parallel = (
        not force_serial
        and should_use_parallel(n_items, max_workers)
    )

    if not use_parallel:
        return [fn(item) for item in items_list]

    workers = get_optimal_workers(max_workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(fn, items_list))


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split a sequence into consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]
