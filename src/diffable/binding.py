"""Keep a data source in sync with change notifications.

:class:`SnapshotBinding` is the glue an application shell puts between
its record store and a list on screen:

* on start, the list is loaded with a reload (no diffing on first load);
* "collection changed" rebuilds the snapshot from domain state and
  applies it incrementally;
* "item changed" reconfigures that one item in place, if it is on
  display at all.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from types import TracebackType

from diffable.datasource import DiffableDataSource
from diffable.models import ApplyResult
from diffable.notifications import ChangeNotifier, Subscription
from diffable.observability import get_logger
from diffable.snapshot import Snapshot

log = get_logger("diffable.binding")


class SnapshotBinding:
    """Subscribe a data source to collection and item change events.

    Parameters
    ----------
    data_source:
        The data source to drive.
    notifier:
        Where change events come from.
    build_snapshot:
        Builds a fresh snapshot from current domain state.  May return
        ``None`` when there is nothing to show yet; the refresh is then
        skipped.
    animate:
        Passed as ``animating_differences`` on incremental applies.
    """

    def __init__(
        self,
        data_source: DiffableDataSource,
        notifier: ChangeNotifier,
        build_snapshot: Callable[[], Snapshot | None],
        *,
        animate: bool = True,
    ) -> None:
        self._data_source = data_source
        self._notifier = notifier
        self._build_snapshot = build_snapshot
        self._animate = animate
        self._subscriptions: list[Subscription] = []

    def start(self) -> ApplyResult | None:
        """Load the initial contents and start listening."""
        result = self.load()
        if not self._subscriptions:
            self._subscriptions = [
                self._notifier.on_collection_changed(self.refresh),
                self._notifier.on_item_changed(self.item_did_change),
            ]
        return result

    def load(self) -> ApplyResult | None:
        snapshot = self._build_snapshot()
        if snapshot is None:
            return None
        return self._data_source.apply_using_reload(snapshot)

    def refresh(self) -> ApplyResult | None:
        snapshot = self._build_snapshot()
        if snapshot is None:
            return None
        return self._data_source.apply(snapshot, animating_differences=self._animate)

    def item_did_change(self, item_id: Hashable) -> ApplyResult | None:
        """Reconfigure *item_id* in place.  Ignored if it is not displayed.

        The mark goes on the snapshot the data source is converging to,
        so an event that arrives during an apply keeps any refresh that
        is still waiting to be applied.
        """
        snapshot = self._data_source.target_snapshot()
        if not snapshot.contains_item(item_id):
            log.debug(
                "Ignoring change for an item that is not displayed",
                extra={"extra_fields": {"op": "item_did_change", "item_id": item_id}},
            )
            return None
        snapshot.reconfigure_items([item_id])
        return self._data_source.apply(snapshot, animating_differences=self._animate)

    def close(self) -> None:
        """Stop listening.  Safe to call more than once."""
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    def __enter__(self) -> SnapshotBinding:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
