"""Configuration for diffable.

:class:`DiffableConfig` is a plain dataclass that captures every tuneable
knob of the diff engine and its data sources.  Instances are passed to
:class:`DiffPlanner`, the appliers, and both data-source flavours.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Policy constants
# ---------------------------------------------------------------------------

CONCURRENT_APPLY_POLICIES: tuple[str, ...] = ("coalesce", "raise")
"""Accepted values for :attr:`DiffableConfig.concurrent_apply_policy`."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class DiffableConfig:
    """Complete configuration for a diffable data source.

    Every parameter has a default, so ``DiffableConfig()`` is a valid
    configuration.

    Parameters
    ----------
    concurrent_apply_policy:
        What to do when an apply is requested while another one is still
        running on the same data source.

        * ``"coalesce"``: remember the request; once the running apply
          finishes, only the most recent pending snapshot is applied.
        * ``"raise"``: fail the second request with
          :class:`ConcurrentApplyError`.
    reload_threshold:
        Fraction (0.0 to 1.0) of identifiers that must be shared between
        the current and the new snapshot for an incremental apply to be
        worthwhile.  Below it, ``apply`` performs a reload instead.
        ``0.0`` disables the fallback.
    metrics:
        A :class:`MetricsHook` implementation.  ``None`` uses
        :class:`NoopMetricsHook`.
    debug_dump_diff:
        Write every computed operation plan to *stderr* as JSON.
    """

    # ── Apply ───────────────────────────────────────────────────────────
    concurrent_apply_policy: Literal["coalesce", "raise"] = "coalesce"

    reload_threshold: float = 0.0

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.concurrent_apply_policy not in CONCURRENT_APPLY_POLICIES:
            raise ValueError(
                "concurrent_apply_policy must be one of "
                f"{CONCURRENT_APPLY_POLICIES}, got {self.concurrent_apply_policy!r}"
            )
        if not 0.0 <= self.reload_threshold <= 1.0:
            raise ValueError(
                f"reload_threshold must be within [0.0, 1.0], got {self.reload_threshold}"
            )
