"""Diff planner: compute the operations that turn one snapshot into another.

Given the snapshot currently on display and the desired new snapshot,
the planner produces an ordered list of :class:`DiffOp` operations in
four phases:

1. section deletes, section inserts, section moves;
2. item deletes;
3. item inserts, then item moves (including moves across sections);
4. item reconfigures.

Indices are sequential: each operation is expressed against the state
left behind by the operations before it, so a presentation layer can
replay the list one call at a time without ever holding a stale position.

Placement follows one rule in both the section and the item phase.
Identifiers that keep their relative order (the LCS of the old and new
order) never move.  Everything else is put directly after its
predecessor in the new order, processed front to back, which yields the
new order exactly once every identifier has been placed.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Hashable, Sequence

from diffable.config import DiffableConfig
from diffable.models import DiffOp, DiffOpType
from diffable.snapshot import Snapshot

from .lcs_matcher import lcs_match


class DiffPlanner:
    """Plans diff operations between two snapshots.

    Planning is pure: it reads both snapshots and returns a new list, so
    it may run on any thread as long as the result is applied on the
    thread that owns the presentation.

    Parameters
    ----------
    config:
        Library configuration (used for debug flags).
    """

    def __init__(self, config: DiffableConfig) -> None:
        self._config = config

    def plan(self, old: Snapshot, new: Snapshot) -> list[DiffOp]:
        """Compute the operations that transform *old* into *new*.

        Parameters
        ----------
        old:
            The snapshot currently on display.
        new:
            The desired snapshot.  Its reconfigure marks turn into
            ``ITEM_RECONFIGURE`` operations.

        Returns
        -------
        list[DiffOp]
            Ordered operations; empty when nothing changed.

        Raises
        ------
        DuplicateIdentifierError
            If *new* breaks the uniqueness invariant.  Checked before any
            planning starts.
        """
        new.validate()

        # Fast path: same ids in the same order, nothing to reconfigure.
        if old == new and not new.reconfigured_item_ids:
            return []

        ops: list[DiffOp] = []
        self._plan_sections(old, new, ops)
        survivors = self._plan_items(old, new, ops)

        for item_id in new.reconfigured_item_ids:
            # Inserted items are rendered fresh anyway.
            if item_id in survivors:
                ops.append(DiffOp(op_type=DiffOpType.ITEM_RECONFIGURE, identifier=item_id))

        if self._config.debug_dump_diff:
            print(
                "[diffable] Diff plan:",
                json.dumps([op.to_dict() for op in ops], indent=2, default=str),
                file=sys.stderr,
            )

        return ops

    def match_ratio(self, old: Snapshot, new: Snapshot) -> float:
        """Return the share of item ids present in both snapshots.

        Computed as ``shared / max(len(old), len(new))``; two empty
        snapshots match fully.
        """
        max_len = max(old.number_of_items, new.number_of_items)
        if max_len == 0:
            return 1.0
        shared = sum(1 for item_id in new.item_identifiers if old.contains_item(item_id))
        return shared / max_len

    def _plan_sections(self, old: Snapshot, new: Snapshot, ops: list[DiffOp]) -> None:
        """Emit section deletes, then inserts, then moves."""
        new_sections = new.section_identifiers

        working: list[Hashable] = []
        for section_id in old.section_identifiers:
            if new.contains_section(section_id):
                working.append(section_id)
            else:
                ops.append(DiffOp(op_type=DiffOpType.SECTION_DELETE, identifier=section_id))

        surviving = [s for s in new_sections if old.contains_section(s)]
        anchors = {surviving[j] for _, j in lcs_match(working, surviving)}
        inserted: set[Hashable] = set()

        for index, section_id in enumerate(new_sections):
            if old.contains_section(section_id):
                continue
            position = _glue_position(
                working, new_sections, index, lambda s: s in anchors or s in inserted,
            )
            working.insert(position, section_id)
            inserted.add(section_id)
            ops.append(
                DiffOp(
                    op_type=DiffOpType.SECTION_INSERT,
                    identifier=section_id,
                    to_index=position,
                )
            )

        for index, section_id in enumerate(new_sections):
            if section_id in anchors or section_id in inserted:
                continue
            from_index = working.index(section_id)
            del working[from_index]
            to_index = working.index(new_sections[index - 1]) + 1 if index else 0
            working.insert(to_index, section_id)
            if from_index != to_index:
                ops.append(
                    DiffOp(
                        op_type=DiffOpType.SECTION_MOVE,
                        identifier=section_id,
                        from_index=from_index,
                        to_index=to_index,
                    )
                )

    def _plan_items(
        self, old: Snapshot, new: Snapshot, ops: list[DiffOp],
    ) -> set[Hashable]:
        """Emit item deletes, inserts and moves.

        Returns the ids that stayed on display throughout (neither deleted
        nor re-inserted).
        """
        new_sections = new.section_identifiers

        # Items of deleted sections went away with their section; only
        # items of surviving sections are still on display.
        current: dict[Hashable, list[Hashable]] = {}
        location: dict[Hashable, Hashable] = {}
        for section_id in old.section_identifiers:
            if not new.contains_section(section_id):
                continue
            remaining: list[Hashable] = []
            for item_id in old.items_in_section(section_id):
                if new.contains_item(item_id):
                    remaining.append(item_id)
                    location[item_id] = section_id
                else:
                    ops.append(DiffOp(op_type=DiffOpType.ITEM_DELETE, identifier=item_id))
            current[section_id] = remaining
        for section_id in new_sections:
            current.setdefault(section_id, [])

        anchors: set[Hashable] = set()
        for section_id in new_sections:
            staying = [
                i for i in current[section_id]
                if new.section_identifier_for_item(i) == section_id
            ]
            target = [
                i for i in new.items_in_section(section_id)
                if location.get(i) == section_id
            ]
            anchors.update(target[j] for _, j in lcs_match(staying, target))

        inserted: set[Hashable] = set()
        for section_id in new_sections:
            target = new.items_in_section(section_id)
            items = current[section_id]
            for index, item_id in enumerate(target):
                if item_id in location:
                    continue
                position = _glue_position(
                    items, target, index, lambda i: i in anchors or i in inserted,
                )
                items.insert(position, item_id)
                inserted.add(item_id)
                ops.append(
                    DiffOp(
                        op_type=DiffOpType.ITEM_INSERT,
                        identifier=item_id,
                        section=section_id,
                        to_index=position,
                    )
                )

        for section_id in new_sections:
            target = new.items_in_section(section_id)
            items = current[section_id]
            for index, item_id in enumerate(target):
                if item_id in anchors or item_id in inserted:
                    continue
                from_section = location[item_id]
                source = current[from_section]
                from_index = source.index(item_id)
                del source[from_index]
                to_index = items.index(target[index - 1]) + 1 if index else 0
                items.insert(to_index, item_id)
                location[item_id] = section_id
                if from_section != section_id or from_index != to_index:
                    ops.append(
                        DiffOp(
                            op_type=DiffOpType.ITEM_MOVE,
                            identifier=item_id,
                            from_section=from_section,
                            from_index=from_index,
                            section=section_id,
                            to_index=to_index,
                        )
                    )

        return set(location)


def _glue_position(
    current: list[Hashable],
    target: Sequence[Hashable],
    index: int,
    settled: Callable[[Hashable], bool],
) -> int:
    """Return the slot right after the nearest settled predecessor of
    ``target[index]``, or ``0`` when there is none."""
    for k in range(index - 1, -1, -1):
        if settled(target[k]):
            return current.index(target[k]) + 1
    return 0
