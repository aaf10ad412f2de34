"""Data sources: own the displayed snapshot and drive incremental updates.

A data source remembers exactly one "current" snapshot, initially empty.
``apply`` diffs a new snapshot against it, replays the operations on the
presentation, and only then remembers the new snapshot.  If the
presentation raises halfway, the remembered snapshot keeps its previous
value so a retry starts from a known baseline.

Only one apply runs at a time per data source.  A request that arrives
while another is running (from another thread, another task, or a
presentation callback re-entering the data source) is either coalesced or
rejected, depending on ``DiffableConfig.concurrent_apply_policy``.

Coalescing keeps only the latest pending snapshot, plus any reconfigure
marks of the requests it supersedes whose items it still contains.  The
caller that holds the slot applies pending requests after its own; a
failure there is logged and counted but not raised to that caller, whose
own apply already succeeded.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

from diffable.config import DiffableConfig
from diffable.diff.executor import AsyncDiffApplier, DiffApplier
from diffable.diff.planner import DiffPlanner
from diffable.errors import ConcurrentApplyError
from diffable.models import ApplyResult, DiffOp, IndexPath
from diffable.observability import NoopMetricsHook, get_logger
from diffable.snapshot import Snapshot

log = get_logger("diffable.datasource")


@dataclass
class _Request:
    snapshot: Snapshot
    reload: bool
    animated: bool

    @property
    def mode(self) -> str:
        return "reload" if self.reload else "diff"


class _DataSourceBase:
    """State and bookkeeping shared by the sync and async data sources."""

    def __init__(self, config: DiffableConfig | None) -> None:
        self._config = config if config is not None else DiffableConfig()
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._planner = DiffPlanner(self._config)
        self._current = Snapshot()
        self._applying = False
        self._pending: _Request | None = None
        self._running: _Request | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        """Return a copy of the displayed snapshot, without reconfigure marks."""
        return self._current.copy(include_reconfigured=False)

    def target_snapshot(self) -> Snapshot:
        """Return a copy of the snapshot the data source is converging to.

        That is the latest pending request, else the request being
        applied, else the displayed snapshot.  Build follow-up snapshots
        from this one while an apply may be running, so that they do not
        undo a change that has not reached the display yet.  Reconfigure
        marks are not included.
        """
        request = self._pending if self._pending is not None else self._running
        if request is None:
            return self.snapshot()
        return request.snapshot.copy(include_reconfigured=False)

    def index_path(self, item_id: Hashable) -> IndexPath | None:
        return self._current.index_path(item_id)

    def item_identifier(self, index_path: IndexPath) -> Hashable | None:
        return self._current.item_identifier(index_path)

    def section_identifier(self, index: int) -> Hashable | None:
        sections = self._current.section_identifiers
        if not 0 <= index < len(sections):
            return None
        return sections[index]

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _admit(self, request: _Request) -> ApplyResult | None:
        """Claim the apply slot, or coalesce/reject *request*.

        Returns ``None`` when the caller now owns the slot.
        """
        if not self._applying:
            self._applying = True
            self._running = request
            return None

        if self._config.concurrent_apply_policy == "raise":
            self._metrics.increment("diffable.concurrent_apply_rejected_total")
            log.warning(
                "Apply rejected: another apply is in progress",
                extra={"extra_fields": {"op": "apply", "mode": request.mode}},
            )
            raise ConcurrentApplyError(
                message="an apply is already in progress on this data source",
                context={"mode": request.mode},
            )

        if self._pending is not None:
            _carry_marks(self._pending, request)
        self._pending = request
        self._metrics.increment("diffable.applies_coalesced_total")
        log.debug(
            "Apply coalesced into the running one",
            extra={"extra_fields": {"op": "apply", "mode": request.mode}},
        )
        return ApplyResult(strategy_used="coalesced")

    def _prepare(self, request: _Request) -> tuple[str, list[DiffOp]]:
        """Pick the strategy for *request* and plan it against the baseline."""
        if request.reload:
            return "reload", []
        threshold = self._config.reload_threshold
        if threshold > 0 and self._planner.match_ratio(self._current, request.snapshot) < threshold:
            return "reload", []
        return "diff", self._planner.plan(self._current, request.snapshot)

    def _commit(self, request: _Request, result: ApplyResult, started: float) -> None:
        self._current = request.snapshot.copy(include_reconfigured=False)
        result.duration_ms = (time.monotonic() - started) * 1000
        tags = {"strategy": result.strategy_used}
        self._metrics.increment("diffable.applies_total", tags=tags)
        self._metrics.timing("diffable.apply_duration_ms", result.duration_ms, tags=tags)
        self._metrics.gauge("diffable.snapshot_items", float(self._current.number_of_items))
        log.debug(
            "Apply complete",
            extra={
                "extra_fields": {
                    "op": "apply",
                    "strategy": result.strategy_used,
                    "ops": len(result.ops),
                    "sections": self._current.number_of_sections,
                    "items": self._current.number_of_items,
                }
            },
        )

    def _record_failure(self, strategy: str, exc: Exception, coalesced: bool) -> None:
        self._metrics.increment("diffable.apply_failures_total", tags={"strategy": strategy})
        log.warning(
            "Apply failed; keeping the previous snapshot",
            exc_info=exc,
            extra={
                "extra_fields": {"op": "apply", "strategy": strategy, "coalesced": coalesced}
            },
        )


def _carry_marks(previous: _Request, replacement: _Request) -> None:
    """Keep reconfigure marks of a superseded request that still apply."""
    snapshot = replacement.snapshot
    snapshot.reconfigure_items(
        item_id
        for item_id in previous.snapshot.reconfigured_item_ids
        if snapshot.contains_item(item_id)
    )


class DiffableDataSource(_DataSourceBase):
    """Synchronous data source.

    Parameters
    ----------
    presentation:
        A :class:`Presentation` implementation.
    config:
        Library configuration.  ``None`` uses defaults.
    """

    def __init__(self, presentation: Any, config: DiffableConfig | None = None) -> None:
        super().__init__(config)
        self._applier = DiffApplier(presentation, self._config)
        self._guard = threading.Lock()

    def target_snapshot(self) -> Snapshot:
        with self._guard:
            return super().target_snapshot()

    def apply(self, snapshot: Snapshot, animating_differences: bool = True) -> ApplyResult:
        """Bring the presentation to *snapshot* through incremental operations.

        Parameters
        ----------
        snapshot:
            The desired state.  It is copied; later changes by the caller
            have no effect.
        animating_differences:
            Forwarded to the presentation's ``begin_updates``.

        Returns
        -------
        ApplyResult

        Raises
        ------
        DuplicateIdentifierError
            If *snapshot* is malformed.  Nothing is applied.
        ConcurrentApplyError
            If another apply is running and the policy is ``"raise"``.
        """
        snapshot.validate()
        return self._submit(_Request(snapshot.copy(), reload=False, animated=animating_differences))

    def apply_using_reload(self, snapshot: Snapshot) -> ApplyResult:
        """Replace the presentation contents with *snapshot* in one reset.

        No operations are computed and no per-item callbacks are made.
        """
        snapshot.validate()
        return self._submit(_Request(snapshot.copy(), reload=True, animated=False))

    def _submit(self, request: _Request) -> ApplyResult:
        with self._guard:
            early = self._admit(request)
        if early is not None:
            return early

        try:
            result = self._run(request)
            while True:
                with self._guard:
                    pending, self._pending = self._pending, None
                    self._running = pending
                    if pending is None:
                        self._applying = False
                        break
                self._run_coalesced(pending)
        except BaseException:
            with self._guard:
                self._applying = False
                self._pending = None
                self._running = None
            raise
        return result

    def _run_coalesced(self, request: _Request) -> None:
        try:
            self._run(request, coalesced=True)
        except Exception:
            # Logged and counted by _run; the caller's own apply went through.
            pass

    def _run(self, request: _Request, coalesced: bool = False) -> ApplyResult:
        started = time.monotonic()
        strategy = request.mode
        try:
            strategy, ops = self._prepare(request)
            if strategy == "reload":
                result = self._applier.reload(request.snapshot)
            else:
                result = self._applier.apply(ops, animated=request.animated)
        except Exception as exc:
            self._record_failure(strategy, exc, coalesced)
            raise
        self._commit(request, result, started)
        return result


class AsyncDiffableDataSource(_DataSourceBase):
    """Asynchronous data source.

    Mirrors :class:`DiffableDataSource` but drives an
    :class:`AsyncPresentation`.  Must be used from a single event loop.

    Parameters
    ----------
    presentation:
        An :class:`AsyncPresentation` implementation.
    config:
        Library configuration.  ``None`` uses defaults.
    """

    def __init__(self, presentation: Any, config: DiffableConfig | None = None) -> None:
        super().__init__(config)
        self._applier = AsyncDiffApplier(presentation, self._config)

    async def apply(self, snapshot: Snapshot, animating_differences: bool = True) -> ApplyResult:
        """Bring the presentation to *snapshot* through incremental operations (async).

        Returns
        -------
        ApplyResult
        """
        snapshot.validate()
        return await self._submit(
            _Request(snapshot.copy(), reload=False, animated=animating_differences)
        )

    async def apply_using_reload(self, snapshot: Snapshot) -> ApplyResult:
        """Replace the presentation contents with *snapshot* in one reset (async)."""
        snapshot.validate()
        return await self._submit(_Request(snapshot.copy(), reload=True, animated=False))

    async def _submit(self, request: _Request) -> ApplyResult:
        # No await between the check and the claim, so no lock is needed.
        early = self._admit(request)
        if early is not None:
            return early

        try:
            result = await self._run(request)
            while self._pending is not None:
                pending, self._pending = self._pending, None
                self._running = pending
                await self._run_coalesced(pending)
        except BaseException:
            self._pending = None
            raise
        finally:
            self._applying = False
            self._running = None
        return result

    async def _run_coalesced(self, request: _Request) -> None:
        try:
            await self._run(request, coalesced=True)
        except Exception:
            # Logged and counted by _run; the caller's own apply went through.
            pass

    async def _run(self, request: _Request, coalesced: bool = False) -> ApplyResult:
        started = time.monotonic()
        strategy = request.mode
        try:
            strategy, ops = self._prepare(request)
            if strategy == "reload":
                result = await self._applier.reload(request.snapshot)
            else:
                result = await self._applier.apply(ops, animated=request.animated)
        except Exception as exc:
            self._record_failure(strategy, exc, coalesced)
            raise
        self._commit(request, result, started)
        return result
