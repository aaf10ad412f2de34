"""Public data models for diffable.

Operation types emitted by the diff engine, the index-path value used for
positional lookups, and the result returned by every apply.  All types
are plain dataclasses; the frozen ones can be used as dict keys.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DiffOpType(str, Enum):
    """Operation types emitted by the diff engine."""

    SECTION_DELETE = "section_delete"
    """A section (and every item still in it) is removed."""

    SECTION_INSERT = "section_insert"
    """A new, empty section is inserted at ``to_index``."""

    SECTION_MOVE = "section_move"
    """A section moves from ``from_index`` to ``to_index``."""

    ITEM_DELETE = "item_delete"
    """An item is removed from whatever section holds it."""

    ITEM_INSERT = "item_insert"
    """A new item is inserted into ``section`` at ``to_index``."""

    ITEM_MOVE = "item_move"
    """An item moves from ``from_section``/``from_index`` to
    ``section``/``to_index``.  The two sections may differ."""

    ITEM_RECONFIGURE = "item_reconfigure"
    """An item keeps its slot but its visual representation is rebuilt."""


# ---------------------------------------------------------------------------
# Diff engine types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiffOp:
    """A single operation in a diff plan.

    Indices are sequential: each one refers to the presentation state
    produced by every earlier operation of the same plan.  A move removes
    the element at ``from_index`` first and then inserts it at
    ``to_index`` of the shortened list.

    Attributes
    ----------
    op_type:
        The kind of operation.
    identifier:
        The section id (``SECTION_*``) or item id (``ITEM_*``) the
        operation is about.
    section:
        Destination section for ``ITEM_INSERT`` and ``ITEM_MOVE``.
    from_section:
        Source section for ``ITEM_MOVE``.
    from_index:
        Source position for ``SECTION_MOVE`` and ``ITEM_MOVE``.
    to_index:
        Destination position for inserts and moves.
    """

    op_type: DiffOpType
    identifier: Hashable
    section: Hashable | None = None
    from_section: Hashable | None = None
    from_index: int | None = None
    to_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dict holding only the fields that are set."""
        out: dict[str, Any] = {"op": self.op_type.value, "id": self.identifier}
        if self.from_section is not None:
            out["from_section"] = self.from_section
        if self.from_index is not None:
            out["from_index"] = self.from_index
        if self.section is not None:
            out["section"] = self.section
        if self.to_index is not None:
            out["to_index"] = self.to_index
        return out


@dataclass(frozen=True)
class IndexPath:
    """Position of an item: section ordinal and item ordinal within it."""

    section: int
    item: int


# ---------------------------------------------------------------------------
# Public result types
# ---------------------------------------------------------------------------

@dataclass
class ApplyResult:
    """Result of an apply, a reload, or a coalesced request.

    Attributes
    ----------
    strategy_used:
        ``"diff"``, ``"reload"`` or ``"coalesced"``.  A reload may be
        chosen by the data source even for ``apply`` calls when the
        configured ``reload_threshold`` is not met.  ``"coalesced"``
        means the request was handed to the apply already in progress.
    ops:
        The operations that were replayed (empty for reloads).
    sections_inserted, sections_deleted, sections_moved:
        Section-level operation counts.
    items_inserted, items_deleted, items_moved, items_reconfigured:
        Item-level operation counts.
    duration_ms:
        Wall-clock time spent planning and applying.
    """

    strategy_used: str
    ops: list[DiffOp] = field(default_factory=list)
    sections_inserted: int = 0
    sections_deleted: int = 0
    sections_moved: int = 0
    items_inserted: int = 0
    items_deleted: int = 0
    items_moved: int = 0
    items_reconfigured: int = 0
    duration_ms: float = 0.0
