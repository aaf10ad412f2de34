"""Diff applier: replay diff operations against a presentation layer.

Takes the operation plan produced by :class:`DiffPlanner` and invokes the
matching presentation callback for each operation, in plan order, through
a :class:`Presentation` (sync) or :class:`AsyncPresentation` (async).
The appliers never reorder operations; ordering is the planner's job.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from diffable.config import DiffableConfig
from diffable.models import ApplyResult, DiffOp, DiffOpType
from diffable.observability import NoopMetricsHook
from diffable.snapshot import Snapshot

_COUNTERS: dict[DiffOpType, str] = {
    DiffOpType.SECTION_INSERT: "sections_inserted",
    DiffOpType.SECTION_DELETE: "sections_deleted",
    DiffOpType.SECTION_MOVE: "sections_moved",
    DiffOpType.ITEM_INSERT: "items_inserted",
    DiffOpType.ITEM_DELETE: "items_deleted",
    DiffOpType.ITEM_MOVE: "items_moved",
    DiffOpType.ITEM_RECONFIGURE: "items_reconfigured",
}


class DiffApplier:
    """Synchronous diff applier.

    Parameters
    ----------
    presentation:
        A :class:`Presentation` implementation.
    config:
        Library configuration.
    """

    def __init__(self, presentation: Any, config: DiffableConfig) -> None:
        self._presentation = presentation
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def apply(self, ops: list[DiffOp], *, animated: bool = True) -> ApplyResult:
        """Replay *ops* one by one inside a single update batch.

        Exceptions raised by the presentation propagate; the batch is
        still closed with ``end_updates``.

        Parameters
        ----------
        ops:
            Ordered operations from the planner.
        animated:
            Forwarded to ``begin_updates``.

        Returns
        -------
        ApplyResult
            Summary of what was replayed.
        """
        result = ApplyResult(strategy_used="diff", ops=list(ops))
        self._presentation.begin_updates(animated)
        try:
            for op in ops:
                self._dispatch(op)
                _count(result, op)
        finally:
            self._presentation.end_updates()

        _emit_diff_metrics(self._metrics, ops)
        return result

    def reload(self, snapshot: Snapshot) -> ApplyResult:
        """Hard-reset the presentation to *snapshot* with no per-item calls."""
        self._presentation.reset(snapshot.as_sections())
        return ApplyResult(strategy_used="reload")

    def _dispatch(self, op: DiffOp) -> None:
        p = self._presentation
        if op.op_type == DiffOpType.SECTION_DELETE:
            p.remove_section(op.identifier)
        elif op.op_type == DiffOpType.SECTION_INSERT:
            p.insert_section(op.identifier, op.to_index)
        elif op.op_type == DiffOpType.SECTION_MOVE:
            p.move_section(op.identifier, op.from_index, op.to_index)
        elif op.op_type == DiffOpType.ITEM_DELETE:
            p.remove_item(op.identifier)
        elif op.op_type == DiffOpType.ITEM_INSERT:
            p.insert_item(op.identifier, op.section, op.to_index)
        elif op.op_type == DiffOpType.ITEM_MOVE:
            p.move_item(
                op.identifier, op.from_section, op.from_index, op.section, op.to_index,
            )
        elif op.op_type == DiffOpType.ITEM_RECONFIGURE:
            p.reconfigure_item(op.identifier)


class AsyncDiffApplier:
    """Asynchronous diff applier.

    Mirrors :class:`DiffApplier` but awaits every presentation callback.

    Parameters
    ----------
    presentation:
        An :class:`AsyncPresentation` implementation.
    config:
        Library configuration.
    """

    def __init__(self, presentation: Any, config: DiffableConfig) -> None:
        self._presentation = presentation
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def apply(self, ops: list[DiffOp], *, animated: bool = True) -> ApplyResult:
        """Replay *ops* one by one inside a single update batch (async).

        Parameters
        ----------
        ops:
            Ordered operations from the planner.
        animated:
            Forwarded to ``begin_updates``.

        Returns
        -------
        ApplyResult
        """
        result = ApplyResult(strategy_used="diff", ops=list(ops))
        await self._presentation.begin_updates(animated)
        try:
            for op in ops:
                await self._dispatch(op)
                _count(result, op)
        finally:
            await self._presentation.end_updates()

        _emit_diff_metrics(self._metrics, ops)
        return result

    async def reload(self, snapshot: Snapshot) -> ApplyResult:
        """Hard-reset the presentation to *snapshot* with no per-item calls."""
        await self._presentation.reset(snapshot.as_sections())
        return ApplyResult(strategy_used="reload")

    async def _dispatch(self, op: DiffOp) -> None:
        p = self._presentation
        if op.op_type == DiffOpType.SECTION_DELETE:
            await p.remove_section(op.identifier)
        elif op.op_type == DiffOpType.SECTION_INSERT:
            await p.insert_section(op.identifier, op.to_index)
        elif op.op_type == DiffOpType.SECTION_MOVE:
            await p.move_section(op.identifier, op.from_index, op.to_index)
        elif op.op_type == DiffOpType.ITEM_DELETE:
            await p.remove_item(op.identifier)
        elif op.op_type == DiffOpType.ITEM_INSERT:
            await p.insert_item(op.identifier, op.section, op.to_index)
        elif op.op_type == DiffOpType.ITEM_MOVE:
            await p.move_item(
                op.identifier, op.from_section, op.from_index, op.section, op.to_index,
            )
        elif op.op_type == DiffOpType.ITEM_RECONFIGURE:
            await p.reconfigure_item(op.identifier)


def _count(result: ApplyResult, op: DiffOp) -> None:
    attr = _COUNTERS[op.op_type]
    setattr(result, attr, getattr(result, attr) + 1)


def _emit_diff_metrics(metrics: Any, ops: list[DiffOp]) -> None:
    """Emit ``diff_ops_total`` counters grouped by operation type."""
    op_counts: Counter[str] = Counter()
    for op in ops:
        op_type = op.op_type
        op_counts[getattr(op_type, "value", str(op_type))] += 1
    for op_type_val, count in op_counts.items():
        metrics.increment(
            "diffable.diff_ops_total", count, tags={"op_type": op_type_val},
        )
