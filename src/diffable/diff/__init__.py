"""Diff engine for incremental presentation updates.

Exports
-------
DiffPlanner
    Computes the ordered operations between two snapshots.
DiffApplier
    Replays diff operations synchronously against a presentation.
AsyncDiffApplier
    Replays diff operations asynchronously against a presentation.
lcs_match
    Longest-common-subsequence matching over identifier sequences.
"""

from .executor import AsyncDiffApplier, DiffApplier
from .lcs_matcher import lcs_match
from .planner import DiffPlanner

__all__ = [
    "AsyncDiffApplier",
    "DiffApplier",
    "DiffPlanner",
    "lcs_match",
]
