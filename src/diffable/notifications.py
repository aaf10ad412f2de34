"""Change notifications: "collection changed" and "item changed" events.

:class:`ChangeNotifier` is a small callback registry standing between a
repository (or any other source of domain changes) and the code that
refreshes the display.  Subscribers get a :class:`Subscription` back and
cancel it to stop receiving events.

Delivery goes through a *dispatch* callable, the "processing context".
The default runs each callback immediately on the posting thread; pass
something like ``loop.call_soon_threadsafe`` to funnel every delivery
onto one thread.  Events are handed to *dispatch* in emission order.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable

Dispatch = Callable[[Callable[[], None]], object]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class Subscription:
    """Handle returned by the ``on_*`` registration methods.

    Cancelling is idempotent.
    """

    __slots__ = ("_cancel", "_cancelled")

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._cancel()


class ChangeNotifier:
    """Registry for collection-level and item-level change callbacks.

    Parameters
    ----------
    dispatch:
        Called with a zero-argument function for every delivery.
        Defaults to calling it immediately.
    """

    def __init__(self, dispatch: Dispatch | None = None) -> None:
        self._dispatch = dispatch or _call_now
        self._lock = threading.Lock()
        self._collection_callbacks: list[Callable[[], None]] = []
        self._item_callbacks: list[Callable[[Hashable], None]] = []

    def on_collection_changed(self, callback: Callable[[], None]) -> Subscription:
        """Call *callback* after any add, delete or reorder."""
        with self._lock:
            self._collection_callbacks.append(callback)
        return Subscription(lambda: self._remove(self._collection_callbacks, callback))

    def on_item_changed(self, callback: Callable[[Hashable], None]) -> Subscription:
        """Call *callback* with the id of a record whose contents changed."""
        with self._lock:
            self._item_callbacks.append(callback)
        return Subscription(lambda: self._remove(self._item_callbacks, callback))

    def post_collection_changed(self) -> None:
        with self._lock:
            callbacks = list(self._collection_callbacks)
        for callback in callbacks:
            self._dispatch(callback)

    def post_item_changed(self, item_id: Hashable) -> None:
        with self._lock:
            callbacks = list(self._item_callbacks)
        for callback in callbacks:
            self._dispatch(lambda cb=callback: cb(item_id))

    def _remove(self, callbacks: list, callback: Callable) -> None:
        with self._lock:
            # Same callable may be registered twice; drop one registration.
            for index, registered in enumerate(callbacks):
                if registered is callback:
                    del callbacks[index]
                    break
