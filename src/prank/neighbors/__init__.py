"""
Prank Neighbors Module

Approximate k-nearest-neighbor graphs by KNN descent.

Key components:
- FriendGraph: Friend / co-friend sets refined round by round
- FriendSnapshot: Immutable state published after each round
- DescentReport: Rounds, clustering rates and timing of a run
"""

from prank.neighbors.friends import (
    DescentReport,
    FriendGraph,
    FriendSnapshot,
    RoundReport,
    SummaryStatistics,
)

__all__ = [
    "DescentReport",
    "FriendGraph",
    "FriendSnapshot",
    "RoundReport",
    "SummaryStatistics",
]
