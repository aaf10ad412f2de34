"""Snapshot: an ordered list of sections, each an ordered list of item ids.

A snapshot is the value the diff engine compares.  It holds identifiers
only, never record payloads: two snapshots are equal when they list the
same section ids in the same order and every section lists the same item
ids in the same order.

Invariants maintained by every mutation:

* a section id appears at most once;
* an item id appears at most once across the whole snapshot;
* every reconfigure mark refers to an item that is present.

Mutations check their whole input before touching any state, so a call
that raises leaves the snapshot exactly as it was.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from typing import Any

from diffable.errors import (
    DuplicateItemError,
    DuplicateSectionError,
    UnknownItemError,
    UnknownSectionError,
)
from diffable.models import IndexPath


class Snapshot:
    """Ordered sections of unique item identifiers.

    Build one fresh from domain state each time the presentation needs
    refreshing::

        snapshot = Snapshot()
        snapshot.append_sections(["main"])
        snapshot.append_items(recipe_ids, "main")

    Snapshots are mutable through their builder methods but must not be
    shared between threads while being mutated.  Data sources copy the
    snapshots they are given.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self) -> None:
        self._sections: list[Hashable] = []
        self._items: dict[Hashable, list[Hashable]] = {}
        self._item_section: dict[Hashable, Hashable] = {}
        # Insertion-ordered set of reconfigure marks.
        self._reconfigured: dict[Hashable, None] = {}

    @classmethod
    def from_sections(
        cls,
        sections: Mapping[Hashable, Iterable[Hashable]]
        | Iterable[tuple[Hashable, Iterable[Hashable]]],
    ) -> Snapshot:
        """Build a snapshot from ``(section_id, item_ids)`` pairs.

        A mapping is accepted as well and read in iteration order.

        Raises
        ------
        DuplicateSectionError, DuplicateItemError
            If the input repeats an identifier.
        """
        pairs = sections.items() if isinstance(sections, Mapping) else sections
        snapshot = cls()
        for section_id, item_ids in pairs:
            snapshot.append_sections([section_id])
            snapshot.append_items(item_ids, section_id)
        return snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def number_of_sections(self) -> int:
        return len(self._sections)

    @property
    def number_of_items(self) -> int:
        return len(self._item_section)

    @property
    def section_identifiers(self) -> list[Hashable]:
        return list(self._sections)

    @property
    def item_identifiers(self) -> list[Hashable]:
        """All item ids, section by section, in display order."""
        return [item for section_id in self._sections for item in self._items[section_id]]

    @property
    def reconfigured_item_ids(self) -> list[Hashable]:
        """Items marked with :meth:`reconfigure_items`, in marking order."""
        return list(self._reconfigured)

    def number_of_items_in_section(self, section_id: Hashable) -> int:
        self._require_section(section_id)
        return len(self._items[section_id])

    def items_in_section(self, section_id: Hashable) -> list[Hashable]:
        """Return the item ids of *section_id* in order.

        Raises
        ------
        UnknownSectionError
            If the section is not in the snapshot.
        """
        self._require_section(section_id)
        return list(self._items[section_id])

    def contains_section(self, section_id: Hashable) -> bool:
        return section_id in self._items

    def contains_item(self, item_id: Hashable) -> bool:
        return item_id in self._item_section

    def section_identifier_for_item(self, item_id: Hashable) -> Hashable | None:
        """Return the section holding *item_id*, or ``None`` if absent."""
        return self._item_section.get(item_id)

    def index_of_section(self, section_id: Hashable) -> int | None:
        if section_id not in self._items:
            return None
        return self._sections.index(section_id)

    def index_of_item(self, item_id: Hashable) -> int | None:
        """Return the flat position of *item_id* across all sections."""
        path = self.index_path(item_id)
        if path is None:
            return None
        preceding = sum(len(self._items[s]) for s in self._sections[: path.section])
        return preceding + path.item

    def index_path(self, item_id: Hashable) -> IndexPath | None:
        """Return where *item_id* is displayed, or ``None`` if it is absent.

        Callers use this to test presence before mutating, e.g. before
        reconfiguring an item reported as changed.
        """
        if item_id not in self._item_section:
            return None
        section_id = self._item_section[item_id]
        return IndexPath(
            section=self._sections.index(section_id),
            item=self._items[section_id].index(item_id),
        )

    def item_identifier(self, index_path: IndexPath) -> Hashable | None:
        """Reverse of :meth:`index_path`; ``None`` when out of range."""
        if not 0 <= index_path.section < len(self._sections):
            return None
        items = self._items[self._sections[index_path.section]]
        if not 0 <= index_path.item < len(items):
            return None
        return items[index_path.item]

    def as_sections(self) -> list[tuple[Hashable, tuple[Hashable, ...]]]:
        """Return ``[(section_id, (item_id, ...)), ...]`` in display order."""
        return [(s, tuple(self._items[s])) for s in self._sections]

    # ------------------------------------------------------------------
    # Section mutations
    # ------------------------------------------------------------------

    def append_sections(self, section_ids: Iterable[Hashable]) -> None:
        """Append new, empty sections at the end.

        Raises
        ------
        DuplicateSectionError
            If any id is already present or repeated in *section_ids*.
        ValueError
            If any id is ``None``; ``None`` is reserved for "not found".
        """
        new_ids = self._check_new_sections(section_ids)
        for section_id in new_ids:
            self._sections.append(section_id)
            self._items[section_id] = []

    def insert_sections(
        self,
        section_ids: Iterable[Hashable],
        *,
        before: Hashable | None = None,
        after: Hashable | None = None,
    ) -> None:
        """Insert new sections next to an existing one.

        Exactly one of *before* / *after* must be given.
        """
        anchor, offset = _anchor_args(before, after)
        self._require_section(anchor)
        new_ids = self._check_new_sections(section_ids)
        position = self._sections.index(anchor) + offset
        self._sections[position:position] = new_ids
        for section_id in new_ids:
            self._items[section_id] = []

    def delete_sections(self, section_ids: Iterable[Hashable]) -> None:
        """Remove sections together with every item they hold."""
        doomed = list(dict.fromkeys(section_ids))
        for section_id in doomed:
            self._require_section(section_id)
        for section_id in doomed:
            for item_id in self._items.pop(section_id):
                del self._item_section[item_id]
                self._reconfigured.pop(item_id, None)
            self._sections.remove(section_id)

    def move_section(
        self,
        section_id: Hashable,
        *,
        before: Hashable | None = None,
        after: Hashable | None = None,
    ) -> None:
        anchor, offset = _anchor_args(before, after)
        self._require_section(section_id)
        self._require_section(anchor)
        if anchor == section_id:
            raise ValueError(f"cannot move section {section_id!r} relative to itself")
        self._sections.remove(section_id)
        position = self._sections.index(anchor) + offset
        self._sections.insert(position, section_id)

    # ------------------------------------------------------------------
    # Item mutations
    # ------------------------------------------------------------------

    def append_items(
        self,
        item_ids: Iterable[Hashable],
        to_section: Hashable | None = None,
    ) -> None:
        """Append items at the end of *to_section* (default: last section).

        Raises
        ------
        UnknownSectionError
            If *to_section* is absent, or omitted on a snapshot with no
            sections.
        DuplicateItemError
            If any id is already present anywhere or repeated in
            *item_ids*.
        ValueError
            If any id is ``None``.
        """
        if to_section is None:
            if not self._sections:
                raise UnknownSectionError(
                    message="cannot append items to a snapshot without sections",
                    context={"identifier": None},
                )
            to_section = self._sections[-1]
        self._require_section(to_section)
        new_ids = self._check_new_items(item_ids)
        self._items[to_section].extend(new_ids)
        for item_id in new_ids:
            self._item_section[item_id] = to_section

    def insert_items(
        self,
        item_ids: Iterable[Hashable],
        *,
        before: Hashable | None = None,
        after: Hashable | None = None,
    ) -> None:
        """Insert items next to an existing item, in that item's section."""
        anchor, offset = _anchor_args(before, after)
        self._require_item(anchor)
        new_ids = self._check_new_items(item_ids)
        section_id = self._item_section[anchor]
        items = self._items[section_id]
        position = items.index(anchor) + offset
        items[position:position] = new_ids
        for item_id in new_ids:
            self._item_section[item_id] = section_id

    def delete_items(self, item_ids: Iterable[Hashable]) -> None:
        doomed = list(dict.fromkeys(item_ids))
        for item_id in doomed:
            self._require_item(item_id)
        for item_id in doomed:
            section_id = self._item_section.pop(item_id)
            self._items[section_id].remove(item_id)
            self._reconfigured.pop(item_id, None)

    def delete_all_items(self) -> None:
        """Remove every section and item."""
        self._sections.clear()
        self._items.clear()
        self._item_section.clear()
        self._reconfigured.clear()

    def move_item(
        self,
        item_id: Hashable,
        *,
        before: Hashable | None = None,
        after: Hashable | None = None,
    ) -> None:
        """Move an item next to another one, possibly into another section."""
        anchor, offset = _anchor_args(before, after)
        self._require_item(item_id)
        self._require_item(anchor)
        if anchor == item_id:
            raise ValueError(f"cannot move item {item_id!r} relative to itself")
        self._items[self._item_section[item_id]].remove(item_id)
        target_section = self._item_section[anchor]
        items = self._items[target_section]
        items.insert(items.index(anchor) + offset, item_id)
        self._item_section[item_id] = target_section

    def reconfigure_items(self, item_ids: Iterable[Hashable]) -> None:
        """Mark items as changed in place.

        Order and membership are untouched; the diff engine turns each
        mark into an ``ITEM_RECONFIGURE`` operation.

        Raises
        ------
        UnknownItemError
            If any id is not in the snapshot.
        """
        marked = list(item_ids)
        for item_id in marked:
            self._require_item(item_id)
        for item_id in marked:
            self._reconfigured[item_id] = None

    # ------------------------------------------------------------------
    # Whole-snapshot helpers
    # ------------------------------------------------------------------

    def copy(self, *, include_reconfigured: bool = True) -> Snapshot:
        """Return an independent copy.

        Pass ``include_reconfigured=False`` to drop reconfigure marks,
        which only make sense for a single apply.
        """
        clone = Snapshot()
        clone._sections = list(self._sections)
        clone._items = {s: list(items) for s, items in self._items.items()}
        clone._item_section = dict(self._item_section)
        if include_reconfigured:
            clone._reconfigured = dict(self._reconfigured)
        return clone

    def validate(self) -> None:
        """Re-check every invariant from scratch.

        Raises
        ------
        DuplicateSectionError, DuplicateItemError
            If an identifier is repeated.
        UnknownItemError
            If a reconfigure mark refers to an absent item.
        """
        seen_sections: set[Hashable] = set()
        seen_items: dict[Hashable, Hashable] = {}
        for section_id in self._sections:
            if section_id in seen_sections:
                raise DuplicateSectionError(
                    message=f"section {section_id!r} appears more than once",
                    context={"identifier": section_id},
                )
            seen_sections.add(section_id)
            for item_id in self._items.get(section_id, ()):
                if item_id in seen_items:
                    raise DuplicateItemError(
                        message=f"item {item_id!r} appears more than once",
                        context={"identifier": item_id, "section": seen_items[item_id]},
                    )
                seen_items[item_id] = section_id
        for item_id in self._reconfigured:
            if item_id not in seen_items:
                raise UnknownItemError(
                    message=f"reconfigured item {item_id!r} is not in the snapshot",
                    context={"identifier": item_id},
                )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self._sections == other._sections and all(
            self._items[s] == other._items[s] for s in self._sections
        )

    def __repr__(self) -> str:
        return f"Snapshot({self.as_sections()!r})"

    # ------------------------------------------------------------------
    # Internal checks
    # ------------------------------------------------------------------

    def _require_section(self, section_id: Hashable) -> None:
        if section_id not in self._items:
            raise UnknownSectionError(
                message=f"section {section_id!r} is not in the snapshot",
                context={"identifier": section_id},
            )

    def _require_item(self, item_id: Hashable) -> None:
        if item_id not in self._item_section:
            raise UnknownItemError(
                message=f"item {item_id!r} is not in the snapshot",
                context={"identifier": item_id},
            )

    def _check_new_sections(self, section_ids: Iterable[Hashable]) -> list[Hashable]:
        new_ids = list(section_ids)
        seen: set[Hashable] = set()
        for section_id in new_ids:
            if section_id is None:
                raise ValueError("None is not a valid section identifier")
            if section_id in self._items or section_id in seen:
                raise DuplicateSectionError(
                    message=f"section {section_id!r} is already in the snapshot",
                    context={"identifier": section_id},
                )
            seen.add(section_id)
        return new_ids

    def _check_new_items(self, item_ids: Iterable[Hashable]) -> list[Hashable]:
        new_ids = list(item_ids)
        seen: set[Hashable] = set()
        for item_id in new_ids:
            if item_id is None:
                raise ValueError("None is not a valid item identifier")
            if item_id in self._item_section or item_id in seen:
                context: dict[str, Any] = {"identifier": item_id}
                if item_id in self._item_section:
                    context["section"] = self._item_section[item_id]
                raise DuplicateItemError(
                    message=f"item {item_id!r} is already in the snapshot",
                    context=context,
                )
            seen.add(item_id)
        return new_ids


def _anchor_args(before: Hashable | None, after: Hashable | None) -> tuple[Hashable, int]:
    """Resolve the ``before=`` / ``after=`` keyword pair to ``(anchor, offset)``."""
    if (before is None) == (after is None):
        raise ValueError("exactly one of 'before' or 'after' must be given")
    if before is not None:
        return before, 0
    return after, 1
