"""Tests for SnapshotBinding wired to a repository and a list model.

Walks the usual shell flow: first load by reload, then incremental
refreshes on collection changes and in-place reconfigures on item
changes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from diffable.binding import SnapshotBinding
from diffable.datasource import DiffableDataSource
from diffable.notifications import ChangeNotifier
from diffable.presentation import ListModel
from diffable.repository import InMemoryRepository
from diffable.snapshot import Snapshot


@dataclass(frozen=True)
class Recipe:
    id: int
    title: str
    favorite: bool = False


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def repo(notifier) -> InMemoryRepository:
    return InMemoryRepository(
        [Recipe(1, "Soup"), Recipe(2, "Salad", favorite=True)], notifier=notifier,
    )


@pytest.fixture
def recipe_model(repo) -> ListModel:
    return ListModel(lambda recipe_id: repo.lookup(recipe_id).title)


def build_from(repo, where=None):
    def build():
        snapshot = Snapshot()
        snapshot.append_sections(["main"])
        snapshot.append_items(repo.list_ids(where), "main")
        return snapshot
    return build


class TestStart:
    def test_first_load_is_a_reload(self, repo, notifier, recipe_model):
        binding = SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo))
        result = binding.start()
        assert result.strategy_used == "reload"
        assert recipe_model.calls == [("reset", [("main", (1, 2))])]
        assert recipe_model.cell(1).content == "Soup"

    def test_nothing_to_show_yet(self, notifier, recipe_model):
        binding = SnapshotBinding(DiffableDataSource(recipe_model), notifier, lambda: None)
        assert binding.start() is None
        assert binding.refresh() is None
        assert recipe_model.calls == []

    def test_start_twice_subscribes_once(self, repo, notifier, recipe_model):
        binding = SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo))
        binding.start()
        binding.start()
        recipe_model.calls.clear()
        repo.add(Recipe(3, "Stew"))
        assert recipe_model.call_names().count("insert_item") == 1


class TestChanges:
    def test_add_inserts(self, repo, notifier, recipe_model):
        with SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo)):
            recipe_model.calls.clear()
            repo.add(Recipe(3, "Stew"))
            assert ("insert_item", 3, "main", 2) in recipe_model.calls
            assert recipe_model.as_sections() == [("main", (1, 2, 3))]

    def test_delete_removes(self, repo, notifier, recipe_model):
        with SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo)):
            recipe_model.calls.clear()
            repo.delete(1)
            assert ("remove_item", 1) in recipe_model.calls
            assert recipe_model.as_sections() == [("main", (2,))]

    def test_update_reconfigures_in_place(self, repo, notifier, recipe_model):
        with SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo)):
            recipe_model.cell(1).state["selected"] = True
            recipe_model.calls.clear()

            repo.update(replace(repo.lookup(1), title="Tomato soup"))

            assert ("reconfigure_item", 1) in recipe_model.calls
            assert "insert_item" not in recipe_model.call_names()
            assert "remove_item" not in recipe_model.call_names()
            cell = recipe_model.cell(1)
            assert cell.content == "Tomato soup"
            assert cell.renders == 2
            assert cell.state == {"selected": True}

    def test_update_that_filters_item_out(self, repo, notifier, recipe_model):
        favorites = build_from(repo, where=lambda r: r.favorite)
        with SnapshotBinding(DiffableDataSource(recipe_model), notifier, favorites):
            recipe_model.calls.clear()
            repo.update(replace(repo.lookup(2), favorite=False))
            # Removed by the collection refresh; the item event is then ignored.
            assert recipe_model.call_names() == ["begin_updates", "remove_item", "end_updates"]
            assert recipe_model.as_sections() == [("main", ())]

    def test_change_for_item_not_displayed_is_ignored(self, repo, notifier, recipe_model):
        binding = SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo))
        binding.start()
        recipe_model.calls.clear()
        assert binding.item_did_change(42) is None
        assert recipe_model.calls == []

    def test_reorder(self, notifier, recipe_model):
        order = [1, 2]
        repo = InMemoryRepository([Recipe(1, "Soup"), Recipe(2, "Salad")])
        model = ListModel(lambda recipe_id: repo.lookup(recipe_id).title)

        def build():
            return Snapshot.from_sections([("main", order)])

        with SnapshotBinding(DiffableDataSource(model), notifier, build):
            model.calls.clear()
            order.reverse()
            notifier.post_collection_changed()
            assert model.call_names() == ["begin_updates", "move_item", "end_updates"]
            assert model.as_sections() == [("main", (2, 1))]


class TestChangesDuringApply:
    """Events posted by a cell provider while an apply is running."""

    @staticmethod
    def render_once_then(repo, item_id, action):
        fired = []

        def render(recipe_id):
            if recipe_id == item_id and not fired:
                fired.append(recipe_id)
                action()
            return repo.lookup(recipe_id).title
        return render

    def test_item_filtered_out_during_apply(self, notifier):
        repo = InMemoryRepository(
            [Recipe(1, "Soup", favorite=True), Recipe(2, "Salad", favorite=True)],
            notifier=notifier,
        )
        model = ListModel(self.render_once_then(
            repo, 3, lambda: repo.update(replace(repo.lookup(1), favorite=False)),
        ))
        favorites = build_from(repo, where=lambda r: r.favorite)

        with SnapshotBinding(DiffableDataSource(model), notifier, favorites) as binding:
            repo.add(Recipe(3, "Stew", favorite=True))

            assert model.as_sections() == [("main", (2, 3))]
            assert model.as_sections() == [("main", tuple(repo.list_ids(lambda r: r.favorite)))]
            assert binding.item_did_change(1) is None

    def test_visible_item_updated_during_apply(self, notifier):
        repo = InMemoryRepository([Recipe(1, "Soup"), Recipe(2, "Salad")], notifier=notifier)

        def add_and_rename():
            repo.add(Recipe(4, "Pie"))
            repo.update(replace(repo.lookup(1), title="Tomato soup"))

        model = ListModel(self.render_once_then(repo, 3, add_and_rename))

        with SnapshotBinding(DiffableDataSource(model), notifier, build_from(repo)):
            model.calls.clear()
            repo.add(Recipe(3, "Stew"))

            # The refresh that adds 4 is kept and 1 is re-rendered in place.
            assert model.as_sections() == [("main", (1, 2, 3, 4))]
            assert ("reconfigure_item", 1) in model.calls
            assert ("remove_item", 1) not in model.calls
            assert model.cell(1).content == "Tomato soup"
            assert model.cell(1).renders == 2


class TestClose:
    def test_close_unsubscribes(self, repo, notifier, recipe_model):
        binding = SnapshotBinding(DiffableDataSource(recipe_model), notifier, build_from(repo))
        binding.start()
        binding.close()
        binding.close()
        recipe_model.calls.clear()
        repo.add(Recipe(3, "Stew"))
        repo.update(replace(repo.lookup(1), title="Changed"))
        assert recipe_model.calls == []

    def test_animate_flag(self, repo, notifier, recipe_model):
        with SnapshotBinding(
            DiffableDataSource(recipe_model), notifier, build_from(repo), animate=False,
        ):
            recipe_model.calls.clear()
            repo.add(Recipe(3, "Stew"))
            assert recipe_model.calls[0] == ("begin_updates", False)
