"""diffable: incremental updates for sectioned lists of stable identifiers.

Public re-exports
-----------------

* **Snapshots:** :class:`Snapshot`
* **Diff engine:** :class:`DiffPlanner`, :class:`DiffApplier`,
  :class:`AsyncDiffApplier`
* **Data sources:** :class:`DiffableDataSource`,
  :class:`AsyncDiffableDataSource`, :class:`SnapshotBinding`
* **Collaborators:** presentation protocols and :class:`ListModel`,
  :class:`Repository` / :class:`InMemoryRepository`,
  :class:`ChangeNotifier`
* **Configuration:** :class:`DiffableConfig`
* **Errors:** Every :class:`DiffableError` subclass and :class:`ErrorCode`
* **Models:** :class:`DiffOp`, :class:`DiffOpType`, :class:`IndexPath`,
  :class:`ApplyResult`

Usage::

    from diffable import DiffableDataSource, ListModel, Snapshot

    model = ListModel(cell_provider=lambda item_id: f"row {item_id}")
    source = DiffableDataSource(model)

    snapshot = Snapshot()
    snapshot.append_sections(["main"])
    snapshot.append_items([1, 2, 3], "main")
    source.apply_using_reload(snapshot)

    snapshot = source.snapshot()
    snapshot.move_item(2, after=3)
    source.apply(snapshot)
"""

from __future__ import annotations

# ── Binding ─────────────────────────────────────────────────────────────
from diffable.binding import SnapshotBinding

# ── Configuration ───────────────────────────────────────────────────────
from diffable.config import CONCURRENT_APPLY_POLICIES, DiffableConfig

# ── Data sources ────────────────────────────────────────────────────────
from diffable.datasource import AsyncDiffableDataSource, DiffableDataSource

# ── Diff engine ─────────────────────────────────────────────────────────
from diffable.diff import AsyncDiffApplier, DiffApplier, DiffPlanner

# ── Errors ──────────────────────────────────────────────────────────────
from diffable.errors import (
    ConcurrentApplyError,
    DiffableError,
    DuplicateIdentifierError,
    DuplicateItemError,
    DuplicateRecordError,
    DuplicateSectionError,
    ErrorCode,
    RecordNotFoundError,
    UnknownItemError,
    UnknownSectionError,
)

# ── Models ──────────────────────────────────────────────────────────────
from diffable.models import ApplyResult, DiffOp, DiffOpType, IndexPath

# ── Collaborators ───────────────────────────────────────────────────────
from diffable.notifications import ChangeNotifier, Subscription
from diffable.presentation import (
    AsyncListModel,
    AsyncPresentation,
    Cell,
    CellProvider,
    ListModel,
    Presentation,
)
from diffable.repository import InMemoryRepository, Repository

# ── Snapshots ───────────────────────────────────────────────────────────
from diffable.snapshot import Snapshot

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Snapshots
    "Snapshot",
    # Diff engine
    "DiffPlanner",
    "DiffApplier",
    "AsyncDiffApplier",
    # Data sources
    "DiffableDataSource",
    "AsyncDiffableDataSource",
    "SnapshotBinding",
    # Collaborators
    "Presentation",
    "AsyncPresentation",
    "ListModel",
    "AsyncListModel",
    "Cell",
    "CellProvider",
    "Repository",
    "InMemoryRepository",
    "ChangeNotifier",
    "Subscription",
    # Configuration
    "DiffableConfig",
    "CONCURRENT_APPLY_POLICIES",
    # Error base + code enum
    "DiffableError",
    "ErrorCode",
    # Snapshot errors
    "DuplicateIdentifierError",
    "DuplicateSectionError",
    "DuplicateItemError",
    "UnknownSectionError",
    "UnknownItemError",
    # Apply errors
    "ConcurrentApplyError",
    # Repository errors
    "RecordNotFoundError",
    "DuplicateRecordError",
    # Models
    "ApplyResult",
    "DiffOp",
    "DiffOpType",
    "IndexPath",
]
