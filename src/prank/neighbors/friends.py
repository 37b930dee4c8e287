"""
K-nearest neighbor descent.

Builds, for every point, a fixed-size set of "friends" (its approximate k
most preferred points under its own ranking) by repeatedly replacing friends
with better candidates drawn from friends of friends, co-friends and friends
of co-friends.

References:
- J. D. Baron, R. W. R. Darling. K-nearest neighbor approximation via the
  friend-of-a-friend principle. arXiv:1908.07645
- W. Dong, M. Charikar, K. Li. Efficient k-nearest neighbor graph
  construction for generic similarity measures. WWW 2011, 577-586
"""

from __future__ import annotations

from bisect import insort
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    FrozenSet,
    Generic,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)
import heapq
import logging
import math
import time

import numpy as np

from prank.config import ConfigurationError
from prank.parallel import chunked, run_parallel
from prank.ranking import RankingSystem

V = TypeVar("V", bound=Hashable)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryStatistics:
    """Count, min, max and mean of a collection of numbers."""
    count: int
    min: float
    max: float
    mean: float

    @classmethod
    def of(cls, values: Iterable[float]) -> SummaryStatistics:
        arr = np.fromiter(values, dtype=float)
        if arr.size == 0:
            return cls(count=0, min=math.nan, max=math.nan, mean=math.nan)
        return cls(
            count=int(arr.size),
            min=float(arr.min()),
            max=float(arr.max()),
            mean=float(arr.mean()),
        )

    def __str__(self) -> str:
        return f"{self.min:g} to {self.max:g}, mean {self.mean:.3f}"


@dataclass(frozen=True)
class FriendSnapshot(Generic[V]):
    """
    One published state of the friend graph.

    Never mutated: a refresh round reads one snapshot and publishes a new one.
    """
    friends: Mapping[V, Tuple[V, ...]]
    members: Mapping[V, FrozenSet[V]]
    co_friends: Mapping[V, FrozenSet[V]]

    @classmethod
    def from_friends(cls, friends: Dict[V, Tuple[V, ...]]) -> FriendSnapshot[V]:
        """Freeze a friend map and derive membership sets and co-friends."""
        co_friends: Dict[V, set] = {x: set() for x in friends}
        for x, friend_set in friends.items():
            for y in friend_set:
                co_friends[y].add(x)
        return cls(
            friends=friends,
            members={x: frozenset(fs) for x, fs in friends.items()},
            co_friends={y: frozenset(xs) for y, xs in co_friends.items()},
        )


@dataclass
class RoundReport:
    """Diagnostics for one refresh round."""
    round: int
    seconds: float
    clustering_rate: Optional[float]
    friend_stats: SummaryStatistics
    co_friend_stats: SummaryStatistics


@dataclass
class DescentReport:
    """Outcome of a complete KNN descent run."""
    rounds: int
    max_rounds: int
    plateau: bool                         # Stopped because the clustering rate stopped rising
    initial_clustering_rate: Optional[float]
    initialization_seconds: float
    total_seconds: float
    round_reports: List[RoundReport] = field(default_factory=list)
    quality: Optional[SummaryStatistics] = None

    @property
    def clustering_rates(self) -> List[Optional[float]]:
        """Clustering rate after initialization, then after each round."""
        return [self.initial_clustering_rate] + [r.clustering_rate for r in self.round_reports]

    def summary(self) -> Dict[str, Any]:
        return {
            "rounds": self.rounds,
            "max_rounds": self.max_rounds,
            "plateau": self.plateau,
            "clustering_rates": self.clustering_rates,
            "total_seconds": self.total_seconds,
            "quality_mean": self.quality.mean if self.quality else None,
        }


class FriendGraph(Generic[V]):
    """
    Approximate k-nearest-neighbor graph under a concordant ranking system.

    Every round computes each point's new friend set from the previous
    round's snapshot only, then publishes all of them at once, so no point
    ever sees another point's partial update.

    Example:
        >>> graph = FriendGraph(points, ranking, k=8, seed=7)
        >>> report = graph.run()
        >>> graph.friends[points[0]]   # sorted by points[0]'s ranking
    """

    def __init__(
        self,
        points: Sequence[V],
        ranking: RankingSystem[V],
        k: int,
        seed: Optional[int] = None,
        max_workers: Optional[int] = None,
        force_serial: bool = False,
        chunk_size: int = 256,
    ):
        """
        Initialize the friend graph.

        Args:
            points: Points to connect (duplicates are dropped)
            ranking: Ranking system giving each point its preference order
            k: Number of friends per point
            seed: Seed for reproducible sampling
            max_workers: Cap on worker threads
            force_serial: If True, never use the thread pool
            chunk_size: Points per task and per random substream

        Raises:
            ConfigurationError: If k < 1 or there are fewer than k + 1 distinct points
        """
        if k < 1:
            raise ConfigurationError(f"k must be at least 1, got {k}")
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be at least 1, got {chunk_size}")

        unique = list(dict.fromkeys(points))
        if len(unique) < len(points):
            logger.warning(f"Dropped {len(points) - len(unique)} duplicate points")
        if len(unique) < k + 1:
            raise ConfigurationError(
                f"Need at least k + 1 = {k + 1} distinct points, got {len(unique)}"
            )

        self.points: List[V] = unique
        self.n = len(unique)
        self.k = k
        self.ranking = ranking
        self.max_workers = max_workers
        self.force_serial = force_serial
        self.chunk_size = chunk_size

        self._seed_sequence = np.random.SeedSequence(seed)
        self._rng = np.random.default_rng(self._seed_sequence.spawn(1)[0])
        self._snapshot: Optional[FriendSnapshot[V]] = None

    @property
    def expander_round_count(self) -> int:
        """ceil(log_k(n)): rounds needed for information to cross an expander."""
        base = max(self.k, 2)
        return max(1, math.ceil(math.log(self.n) / math.log(base)))

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> FriendSnapshot[V]:
        if self._snapshot is None:
            raise RuntimeError("Friend graph is not initialized; call initialize() first")
        return self._snapshot

    @property
    def friends(self) -> Mapping[V, Tuple[V, ...]]:
        """Point -> friends sorted by that point's ranking (read-only)."""
        return MappingProxyType(self.snapshot.friends)

    @property
    def co_friends(self) -> Mapping[V, FrozenSet[V]]:
        """Point -> points that have it as a friend (read-only)."""
        return MappingProxyType(self.snapshot.co_friends)

    def _map_chunks(self, fn, items: Sequence) -> List:
        return run_parallel(
            fn,
            list(chunked(items, self.chunk_size)),
            max_workers=self.max_workers,
            force_serial=self.force_serial,
        )

    def _publish(self, chunk_results: List[Dict[V, Tuple[V, ...]]]) -> None:
        friends: Dict[V, Tuple[V, ...]] = {}
        for partial in chunk_results:
            friends.update(partial)
        self._snapshot = FriendSnapshot.from_friends(friends)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _random_friends(self, index: int, rng: np.random.Generator) -> Tuple[V, ...]:
        """k distinct random points other than points[index], sorted by its ranking."""
        chosen = set()
        while len(chosen) < self.k:
            j = int(rng.integers(self.n))
            if j != index:
                chosen.add(j)
        x = self.points[index]
        return tuple(sorted((self.points[j] for j in chosen), key=self.ranking.key_for(x)))

    def initialize(self) -> None:
        """Give every point k random friends, then compute co-friends."""
        index_chunks = list(chunked(range(self.n), self.chunk_size))
        seeds = self._seed_sequence.spawn(len(index_chunks))

        def init_chunk(task) -> Dict[V, Tuple[V, ...]]:
            indices, seed = task
            rng = np.random.default_rng(seed)
            return {self.points[i]: self._random_friends(i, rng) for i in indices}

        self._publish(run_parallel(
            init_chunk,
            list(zip(index_chunks, seeds)),
            max_workers=self.max_workers,
            force_serial=self.force_serial,
        ))

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def propose_friends(self, x: V, snapshot: Optional[FriendSnapshot[V]] = None) -> Tuple[V, ...]:
        """
        Best k candidates for x among its friends, co-friends, friends of
        friends and friends of co-friends, read from one snapshot.
        """
        if snapshot is None:
            snapshot = self.snapshot
        friends = snapshot.friends

        pool = set()
        for y in friends[x]:
            pool.update(friends[y])
        for z in snapshot.co_friends[x]:
            pool.add(z)
            pool.update(friends[z])

        key = self.ranking.key_for(x)
        running = list(friends[x])
        selected = set(running)
        for p in pool:
            if p in selected or p == x:
                continue
            if self.ranking.compare(x, p, running[-1]) < 0:
                selected.discard(running.pop())
                insort(running, p, key=key)
                selected.add(p)
        return tuple(running)

    def refresh(self) -> None:
        """One round of KNN descent over all points, published atomically."""
        snapshot = self.snapshot

        def refresh_chunk(chunk: Sequence[V]) -> Dict[V, Tuple[V, ...]]:
            return {x: self.propose_friends(x, snapshot) for x in chunk}

        self._publish(self._map_chunks(refresh_chunk, self.points))

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def estimate_friend_clustering(self, sample_rate: float) -> Optional[float]:
        """
        Estimate the friend clustering rate.

        Samples points x and two distinct friends y, z of x; the rate is the
        fraction of samples where y and z are friends or co-friends of each
        other. It starts near zero and rises as descent progresses.

        Args:
            sample_rate: Fraction of points to sample, in (0, 1]

        Returns:
            Estimated rate, or None when k < 2 (no pair of friends exists)
        """
        if not 0.0 < sample_rate <= 1.0:
            raise ConfigurationError(f"sample_rate must be in (0, 1], got {sample_rate}")
        if self.k < 2:
            return None

        snapshot = self.snapshot
        sample_size = min(self.n, math.ceil(sample_rate * self.n))
        sample = self._rng.choice(self.n, size=sample_size, replace=False)

        hits = 0
        for i in sample:
            friend_set = snapshot.friends[self.points[i]]
            a, b = self._rng.choice(len(friend_set), size=2, replace=False)
            y, z = friend_set[a], friend_set[b]
            if z in snapshot.members[y] or y in snapshot.members[z]:
                hits += 1

        logger.debug(f"In sampling {sample_size} pairs of friends, {hits} were friends or co-friends")
        return hits / sample_size

    def quality_assessment(self, sample_size: int) -> SummaryStatistics:
        """
        Fraction of the exact top-k recovered, for sampled points.

        EXPENSIVE: each sampled point is ranked against every other point.
        Meant for offline validation only.
        """
        if not 1 <= sample_size <= self.n:
            raise ConfigurationError(f"sample_size must be in [1, {self.n}], got {sample_size}")

        snapshot = self.snapshot
        sample = [self.points[i] for i in self._rng.choice(self.n, size=sample_size, replace=False)]

        def recovered(x: V) -> float:
            exact = heapq.nsmallest(
                self.k,
                (p for p in self.points if p != x),
                key=self.ranking.key_for(x),
            )
            found = snapshot.members[x]
            return sum(1 for p in exact if p in found) / self.k

        proportions = run_parallel(
            recovered, sample, max_workers=self.max_workers, force_serial=self.force_serial
        )
        return SummaryStatistics.of(proportions)

    def friend_stats(self) -> SummaryStatistics:
        return SummaryStatistics.of(len(fs) for fs in self.snapshot.friends.values())

    def co_friend_stats(self) -> SummaryStatistics:
        return SummaryStatistics.of(len(cs) for cs in self.snapshot.co_friends.values())

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(
        self,
        max_rounds: Optional[int] = None,
        sample_rate: float = 0.5,
        quality_sample_size: int = 0,
    ) -> DescentReport:
        """
        Run KNN descent until the round limit or a clustering-rate plateau.

        Args:
            max_rounds: Round limit (default 2 * expander_round_count)
            sample_rate: Fraction of points sampled for the clustering rate
            quality_sample_size: Points checked by brute force at the end (0 = skip)

        Returns:
            DescentReport with per-round diagnostics
        """
        if max_rounds is None:
            max_rounds = 2 * self.expander_round_count
        if max_rounds < 0:
            raise ConfigurationError(f"max_rounds must be non-negative, got {max_rounds}")
        if not 0.0 < sample_rate <= 1.0:
            raise ConfigurationError(f"sample_rate must be in (0, 1], got {sample_rate}")

        logger.info(
            f"Starting KNN descent on {self.n} points with k={self.k}, "
            f"maximum of {max_rounds} rounds"
        )
        start = time.perf_counter()
        self.initialize()
        init_seconds = time.perf_counter() - start
        logger.info(
            f"Initial friend sets chosen in {init_seconds:.3f} secs; "
            f"co-friend sets range in size from {self.co_friend_stats()}"
        )

        previous = self.estimate_friend_clustering(sample_rate)
        report = DescentReport(
            rounds=0,
            max_rounds=max_rounds,
            plateau=False,
            initial_clustering_rate=previous,
            initialization_seconds=init_seconds,
            total_seconds=0.0,
        )

        while report.rounds < max_rounds:
            round_start = time.perf_counter()
            self.refresh()
            report.rounds += 1
            current = self.estimate_friend_clustering(sample_rate)

            round_report = RoundReport(
                round=report.rounds,
                seconds=time.perf_counter() - round_start,
                clustering_rate=current,
                friend_stats=self.friend_stats(),
                co_friend_stats=self.co_friend_stats(),
            )
            report.round_reports.append(round_report)
            logger.info(
                f"Round {round_report.round} of KNN descent took {round_report.seconds:.3f} secs; "
                f"friend sets {round_report.friend_stats}; "
                f"co-friend sets {round_report.co_friend_stats}; "
                f"friend clustering rate = {current}"
            )

            if current is not None and previous is not None and current <= previous:
                report.plateau = True
                break
            previous = current

        if quality_sample_size > 0:
            report.quality = self.quality_assessment(min(quality_sample_size, self.n))
            logger.info(f"Fraction of true k-NN recovered: {report.quality}")

        report.total_seconds = time.perf_counter() - start
        logger.info(
            f"KNN descent terminated after {report.rounds} rounds "
            f"in {report.total_seconds:.3f} secs"
            + (" (clustering rate plateaued)" if report.plateau else "")
        )
        return report
