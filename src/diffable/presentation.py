"""Presentation-layer protocols and an in-memory reference implementation.

The appliers talk to the presentation through the callbacks declared by
:class:`Presentation` (or :class:`AsyncPresentation`).  Positions passed
to the callbacks are sequential: each one is valid for the state left
behind by the previous callback.

:class:`ListModel` implements the protocol on plain lists.  It renders
cells through a cell provider, keeps per-cell state across moves and
reconfigures, checks every position it is handed, and records every call.
It backs the test suite and is a usable model for headless consumers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

CellProvider = Callable[[Hashable], Any]
"""Render collaborator: item id in, visual output out.  Must be idempotent
for the same id and the same record state."""

SectionContents = Sequence[tuple[Hashable, Sequence[Hashable]]]


@runtime_checkable
class Presentation(Protocol):
    """Callbacks the synchronous applier drives."""

    def begin_updates(self, animated: bool) -> None: ...

    def end_updates(self) -> None: ...

    def insert_section(self, section_id: Hashable, index: int) -> None: ...

    def remove_section(self, section_id: Hashable) -> None: ...

    def move_section(self, section_id: Hashable, from_index: int, to_index: int) -> None: ...

    def insert_item(self, item_id: Hashable, section_id: Hashable, index: int) -> None: ...

    def remove_item(self, item_id: Hashable) -> None: ...

    def move_item(
        self,
        item_id: Hashable,
        from_section: Hashable,
        from_index: int,
        to_section: Hashable,
        to_index: int,
    ) -> None: ...

    def reconfigure_item(self, item_id: Hashable) -> Any: ...

    def reset(self, sections: SectionContents) -> None: ...


@runtime_checkable
class AsyncPresentation(Protocol):
    """Coroutine flavour of :class:`Presentation`."""

    async def begin_updates(self, animated: bool) -> None: ...

    async def end_updates(self) -> None: ...

    async def insert_section(self, section_id: Hashable, index: int) -> None: ...

    async def remove_section(self, section_id: Hashable) -> None: ...

    async def move_section(
        self, section_id: Hashable, from_index: int, to_index: int,
    ) -> None: ...

    async def insert_item(self, item_id: Hashable, section_id: Hashable, index: int) -> None: ...

    async def remove_item(self, item_id: Hashable) -> None: ...

    async def move_item(
        self,
        item_id: Hashable,
        from_section: Hashable,
        from_index: int,
        to_section: Hashable,
        to_index: int,
    ) -> None: ...

    async def reconfigure_item(self, item_id: Hashable) -> Any: ...

    async def reset(self, sections: SectionContents) -> None: ...


@dataclass
class Cell:
    """A rendered slot.

    Attributes
    ----------
    item_id:
        The item the cell displays.
    content:
        Latest output of the cell provider.
    state:
        Transient per-slot state (selection, expansion, ...).  Survives
        moves and reconfigures; lost on remove and reset.
    renders:
        How many times the cell provider was called for this slot.
    """

    item_id: Hashable
    content: Any
    state: dict[str, Any] = field(default_factory=dict)
    renders: int = 1


class ListModel:
    """In-memory :class:`Presentation` built on lists.

    Parameters
    ----------
    cell_provider:
        Called with an item id whenever a cell is created or reconfigured.
    """

    def __init__(self, cell_provider: CellProvider) -> None:
        self._cell_provider = cell_provider
        self._sections: list[Hashable] = []
        self._items: dict[Hashable, list[Hashable]] = {}
        self._cells: dict[Hashable, Cell] = {}
        self._batch_open = False
        self.calls: list[tuple[Any, ...]] = []

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def as_sections(self) -> list[tuple[Hashable, tuple[Hashable, ...]]]:
        """Return ``[(section_id, (item_id, ...)), ...]`` as displayed."""
        return [(s, tuple(self._items[s])) for s in self._sections]

    def cell(self, item_id: Hashable) -> Cell | None:
        return self._cells.get(item_id)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def begin_updates(self, animated: bool) -> None:
        if self._batch_open:
            raise RuntimeError("begin_updates called while a batch is open")
        self._batch_open = True
        self.calls.append(("begin_updates", animated))

    def end_updates(self) -> None:
        self._batch_open = False
        self.calls.append(("end_updates",))

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def insert_section(self, section_id: Hashable, index: int) -> None:
        if section_id in self._items:
            raise ValueError(f"section {section_id!r} is already displayed")
        _check_slot(index, len(self._sections), "section insert")
        self._sections.insert(index, section_id)
        self._items[section_id] = []
        self.calls.append(("insert_section", section_id, index))

    def remove_section(self, section_id: Hashable) -> None:
        self._require_section(section_id)
        for item_id in self._items.pop(section_id):
            del self._cells[item_id]
        self._sections.remove(section_id)
        self.calls.append(("remove_section", section_id))

    def move_section(self, section_id: Hashable, from_index: int, to_index: int) -> None:
        self._require_section(section_id)
        if self._sections.index(section_id) != from_index:
            raise LookupError(
                f"stale position: section {section_id!r} is not at index {from_index}"
            )
        del self._sections[from_index]
        _check_slot(to_index, len(self._sections), "section move")
        self._sections.insert(to_index, section_id)
        self.calls.append(("move_section", section_id, from_index, to_index))

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def insert_item(self, item_id: Hashable, section_id: Hashable, index: int) -> None:
        if item_id in self._cells:
            raise ValueError(f"item {item_id!r} is already displayed")
        self._require_section(section_id)
        items = self._items[section_id]
        _check_slot(index, len(items), "item insert")
        content = self._cell_provider(item_id)
        items.insert(index, item_id)
        self._cells[item_id] = Cell(item_id=item_id, content=content)
        self.calls.append(("insert_item", item_id, section_id, index))

    def remove_item(self, item_id: Hashable) -> None:
        section_id = self._section_of(item_id)
        self._items[section_id].remove(item_id)
        del self._cells[item_id]
        self.calls.append(("remove_item", item_id))

    def move_item(
        self,
        item_id: Hashable,
        from_section: Hashable,
        from_index: int,
        to_section: Hashable,
        to_index: int,
    ) -> None:
        if self._section_of(item_id) != from_section:
            raise LookupError(f"stale position: item {item_id!r} is not in {from_section!r}")
        source = self._items[from_section]
        if source.index(item_id) != from_index:
            raise LookupError(
                f"stale position: item {item_id!r} is not at index {from_index}"
            )
        self._require_section(to_section)
        target = self._items[to_section]
        # Position is checked against the list without the moved item.
        limit = len(target) - 1 if target is source else len(target)
        _check_slot(to_index, limit, "item move")
        del source[from_index]
        target.insert(to_index, item_id)
        self.calls.append(
            ("move_item", item_id, from_section, from_index, to_section, to_index)
        )

    def reconfigure_item(self, item_id: Hashable) -> Any:
        """Re-render *item_id* in place, keeping its cell and state."""
        cell = self._cells.get(item_id)
        if cell is None:
            raise LookupError(f"item {item_id!r} is not displayed")
        cell.content = self._cell_provider(item_id)
        cell.renders += 1
        self.calls.append(("reconfigure_item", item_id))
        return cell.content

    def reset(self, sections: SectionContents) -> None:
        """Throw away every cell and display *sections* as given."""
        self._sections = []
        self._items = {}
        self._cells = {}
        for section_id, item_ids in sections:
            self._sections.append(section_id)
            self._items[section_id] = list(item_ids)
            for item_id in item_ids:
                self._cells[item_id] = Cell(item_id=item_id, content=self._cell_provider(item_id))
        self.calls.append(("reset", [(s, tuple(items)) for s, items in sections]))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_section(self, section_id: Hashable) -> None:
        if section_id not in self._items:
            raise LookupError(f"section {section_id!r} is not displayed")

    def _section_of(self, item_id: Hashable) -> Hashable:
        for section_id in self._sections:
            if item_id in self._items[section_id]:
                return section_id
        raise LookupError(f"item {item_id!r} is not displayed")


class AsyncListModel:
    """:class:`AsyncPresentation` wrapper around a :class:`ListModel`.

    Every callback yields to the event loop once before delegating, the
    way a presentation that queues visual work would.
    """

    def __init__(self, model: ListModel) -> None:
        self.model = model

    async def begin_updates(self, animated: bool) -> None:
        await asyncio.sleep(0)
        self.model.begin_updates(animated)

    async def end_updates(self) -> None:
        await asyncio.sleep(0)
        self.model.end_updates()

    async def insert_section(self, section_id: Hashable, index: int) -> None:
        await asyncio.sleep(0)
        self.model.insert_section(section_id, index)

    async def remove_section(self, section_id: Hashable) -> None:
        await asyncio.sleep(0)
        self.model.remove_section(section_id)

    async def move_section(self, section_id: Hashable, from_index: int, to_index: int) -> None:
        await asyncio.sleep(0)
        self.model.move_section(section_id, from_index, to_index)

    async def insert_item(self, item_id: Hashable, section_id: Hashable, index: int) -> None:
        await asyncio.sleep(0)
        self.model.insert_item(item_id, section_id, index)

    async def remove_item(self, item_id: Hashable) -> None:
        await asyncio.sleep(0)
        self.model.remove_item(item_id)

    async def move_item(
        self,
        item_id: Hashable,
        from_section: Hashable,
        from_index: int,
        to_section: Hashable,
        to_index: int,
    ) -> None:
        await asyncio.sleep(0)
        self.model.move_item(item_id, from_section, from_index, to_section, to_index)

    async def reconfigure_item(self, item_id: Hashable) -> Any:
        await asyncio.sleep(0)
        return self.model.reconfigure_item(item_id)

    async def reset(self, sections: SectionContents) -> None:
        await asyncio.sleep(0)
        self.model.reset(sections)


def _check_slot(index: int, length: int, what: str) -> None:
    if not 0 <= index <= length:
        raise IndexError(f"stale position: {what} at {index}, valid range is 0..{length}")
