"""Metrics hook protocol and no-op default implementation.

diffable emits counters, timings, and gauges around every apply.  By
default a :class:`NoopMetricsHook` is used so there is zero overhead.
Supply any object satisfying :class:`MetricsHook` through
``DiffableConfig(metrics=...)`` to route them to a real backend.

Emitted metric names:

* ``diffable.diff_ops_total``                     -- counter, tag ``op_type``
* ``diffable.applies_total``                      -- counter, tag ``strategy``
* ``diffable.apply_duration_ms``                  -- timing, tag ``strategy``
* ``diffable.apply_failures_total``               -- counter, tag ``strategy``
* ``diffable.applies_coalesced_total``            -- counter
* ``diffable.concurrent_apply_rejected_total``    -- counter
* ``diffable.snapshot_items``                     -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
