"""Property-based tests for diffable using Hypothesis.

These tests verify the invariants of the diff engine over randomly
generated snapshot pairs.  They complement the example-based unit tests
by exercising section reorders, cross-section moves and reconfigure
marks in combinations nobody would write by hand.
"""

from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from diffable.config import DiffableConfig
from diffable.datasource import DiffableDataSource
from diffable.diff.executor import DiffApplier
from diffable.diff.lcs_matcher import lcs_match
from diffable.diff.planner import DiffPlanner
from diffable.errors import DuplicateIdentifierError
from diffable.models import DiffOpType
from diffable.presentation import ListModel
from diffable.snapshot import Snapshot

# ---------------------------------------------------------------------------
# Reusable strategies
# ---------------------------------------------------------------------------

_SECTION_IDS = ["a", "b", "c", "d", "e"]


@st.composite
def snapshots(draw, max_items: int = 12) -> Snapshot:
    """A well-formed snapshot over a small shared id space."""
    section_ids = draw(st.lists(st.sampled_from(_SECTION_IDS), unique=True, max_size=4))
    snapshot = Snapshot()
    snapshot.append_sections(section_ids)
    if section_ids:
        items = draw(st.lists(st.integers(0, 20), unique=True, max_size=max_items))
        for item_id in items:
            snapshot.append_items([item_id], draw(st.sampled_from(section_ids)))
    return snapshot


@st.composite
def marked_snapshots(draw) -> Snapshot:
    """A snapshot with a random subset of its items marked for reconfigure."""
    snapshot = draw(snapshots())
    marks = draw(st.lists(st.sampled_from(snapshot.item_identifiers), unique=True)
                 if snapshot.item_identifiers else st.just([]))
    snapshot.reconfigure_items(marks)
    return snapshot


_SECTION_OPS = {DiffOpType.SECTION_DELETE, DiffOpType.SECTION_INSERT, DiffOpType.SECTION_MOVE}


def _planner() -> DiffPlanner:
    return DiffPlanner(DiffableConfig())


def _replay(old: Snapshot, new: Snapshot) -> ListModel:
    model = ListModel(str)
    model.reset(old.as_sections())
    DiffApplier(model, DiffableConfig()).apply(_planner().plan(old, new))
    return model


# ---------------------------------------------------------------------------
# LCS matcher
# ---------------------------------------------------------------------------


class TestLcsProperties:
    @given(
        old=st.lists(st.integers(0, 9), unique=True, max_size=10),
        new=st.lists(st.integers(0, 9), unique=True, max_size=10),
    )
    def test_pairs_form_common_subsequence(self, old, new):
        pairs = lcs_match(old, new)
        assert all(old[i] == new[j] for i, j in pairs)
        assert [i for i, _ in pairs] == sorted({i for i, _ in pairs})
        assert [j for _, j in pairs] == sorted({j for _, j in pairs})

    @given(items=st.lists(st.integers(), unique=True, max_size=15))
    def test_self_match_is_total(self, items):
        assert lcs_match(items, items) == [(i, i) for i in range(len(items))]


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


class TestPlannerProperties:
    @given(old=snapshots(), new=marked_snapshots())
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_replay_reaches_target(self, old, new):
        assert _replay(old, new).as_sections() == new.as_sections()

    @given(snapshot=snapshots())
    def test_self_diff_is_empty(self, snapshot):
        assert _planner().plan(snapshot, snapshot.copy()) == []

    @given(old=snapshots(), new=marked_snapshots())
    def test_deterministic(self, old, new):
        assert _planner().plan(old, new) == _planner().plan(old.copy(), new.copy())

    @given(old=snapshots(), new=marked_snapshots())
    def test_ordering_contract(self, old, new):
        ops = _planner().plan(old, new)
        kinds = [op.op_type for op in ops]
        section_positions = [i for i, k in enumerate(kinds) if k in _SECTION_OPS]
        other_positions = [i for i, k in enumerate(kinds) if k not in _SECTION_OPS]
        if section_positions and other_positions:
            assert max(section_positions) < min(other_positions)

        reconfigure_positions = [
            i for i, k in enumerate(kinds) if k == DiffOpType.ITEM_RECONFIGURE
        ]
        if reconfigure_positions:
            assert reconfigure_positions == list(
                range(len(kinds) - len(reconfigure_positions), len(kinds))
            )

        def first(kind):
            return next((i for i, k in enumerate(kinds) if k == kind), None)

        def last(kind):
            return max((i for i, k in enumerate(kinds) if k == kind), default=None)

        for earlier, later in [
            (DiffOpType.SECTION_DELETE, DiffOpType.SECTION_INSERT),
            (DiffOpType.SECTION_INSERT, DiffOpType.SECTION_MOVE),
            (DiffOpType.ITEM_DELETE, DiffOpType.ITEM_INSERT),
            (DiffOpType.ITEM_INSERT, DiffOpType.ITEM_MOVE),
        ]:
            if last(earlier) is not None and first(later) is not None:
                assert last(earlier) < first(later)

    @given(old=snapshots(), new=snapshots())
    def test_no_duplicate_structural_ops_per_identifier(self, old, new):
        ops = _planner().plan(old, new)
        item_ops = [op.identifier for op in ops if op.op_type != DiffOpType.ITEM_RECONFIGURE
                    and op.op_type not in _SECTION_OPS]
        section_ops = [op.identifier for op in ops if op.op_type in _SECTION_OPS]
        assert len(item_ops) == len(set(item_ops))
        assert len(section_ops) == len(set(section_ops))

    @given(data=st.data())
    def test_reconfigure_only(self, data):
        snapshot = data.draw(snapshots().filter(lambda s: s.number_of_items > 0))
        item_id = data.draw(st.sampled_from(snapshot.item_identifiers))
        marked = snapshot.copy()
        marked.reconfigure_items([item_id])
        ops = _planner().plan(snapshot, marked)
        assert [(op.op_type, op.identifier) for op in ops] == [
            (DiffOpType.ITEM_RECONFIGURE, item_id)
        ]

    @given(old=snapshots(), new=snapshots())
    def test_match_ratio_bounds(self, old, new):
        assert 0.0 <= _planner().match_ratio(old, new) <= 1.0


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class TestSnapshotProperties:
    @given(snapshot=snapshots())
    def test_index_path_round_trip(self, snapshot):
        for item_id in snapshot.item_identifiers:
            assert snapshot.item_identifier(snapshot.index_path(item_id)) == item_id

    @given(
        sections=st.lists(st.sampled_from(_SECTION_IDS), min_size=1, max_size=3, unique=True),
        items=st.lists(st.integers(0, 5), min_size=2, max_size=8),
    )
    def test_duplicates_rejected(self, sections, items):
        if len(set(items)) == len(items):
            items = items + [items[0]]
        with pytest.raises(DuplicateIdentifierError):
            Snapshot.from_sections([(sections[0], items)])


# ---------------------------------------------------------------------------
# Data source
# ---------------------------------------------------------------------------


class TestDataSourceProperties:
    @given(steps=st.lists(marked_snapshots(), min_size=1, max_size=5))
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_sequence_of_applies_tracks_last_snapshot(self, steps):
        model = ListModel(str)
        source = DiffableDataSource(model)
        for step in steps:
            source.apply(step)
            assert model.as_sections() == step.as_sections()
        assert source.snapshot() == steps[-1]
        assert source.snapshot().reconfigured_item_ids == []
