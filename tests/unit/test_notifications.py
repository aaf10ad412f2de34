"""Tests for notifications.py."""

from __future__ import annotations

from diffable.notifications import ChangeNotifier


class TestChangeNotifier:
    def test_collection_changed_delivered_in_registration_order(self):
        notifier = ChangeNotifier()
        seen = []
        notifier.on_collection_changed(lambda: seen.append("first"))
        notifier.on_collection_changed(lambda: seen.append("second"))
        notifier.post_collection_changed()
        assert seen == ["first", "second"]

    def test_item_changed_carries_id(self):
        notifier = ChangeNotifier()
        seen = []
        notifier.on_item_changed(seen.append)
        notifier.on_item_changed(lambda item_id: seen.append(("again", item_id)))
        notifier.post_item_changed(7)
        assert seen == [7, ("again", 7)]

    def test_no_subscribers(self):
        notifier = ChangeNotifier()
        notifier.post_collection_changed()
        notifier.post_item_changed(1)

    def test_cancel_stops_delivery(self):
        notifier = ChangeNotifier()
        seen = []
        subscription = notifier.on_collection_changed(lambda: seen.append(1))
        subscription.cancel()
        notifier.post_collection_changed()
        assert seen == []
        assert subscription.cancelled

    def test_cancel_is_idempotent(self):
        notifier = ChangeNotifier()
        seen = []

        def callback():
            seen.append(1)

        first = notifier.on_collection_changed(callback)
        notifier.on_collection_changed(callback)
        first.cancel()
        first.cancel()
        notifier.post_collection_changed()
        assert seen == [1]

    def test_cancel_during_delivery(self):
        notifier = ChangeNotifier()
        seen = []
        subscriptions = []
        subscriptions.append(
            notifier.on_collection_changed(lambda: subscriptions[1].cancel())
        )
        subscriptions.append(notifier.on_collection_changed(lambda: seen.append("late")))
        notifier.post_collection_changed()
        # The delivery list is fixed when the event is posted.
        assert seen == ["late"]
        notifier.post_collection_changed()
        assert seen == ["late"]

    def test_custom_dispatch(self):
        queued = []
        notifier = ChangeNotifier(dispatch=queued.append)
        seen = []
        notifier.on_collection_changed(lambda: seen.append("collection"))
        notifier.on_item_changed(lambda item_id: seen.append(("item", item_id)))

        notifier.post_collection_changed()
        notifier.post_item_changed(3)
        assert seen == []

        for fn in queued:
            fn()
        assert seen == ["collection", ("item", 3)]
