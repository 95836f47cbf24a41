"""
Tests for render sync and the presentation arena.

The arena contract is checked headless; no rendering backend is needed.
"""

import pytest

from aura.chrono import Freshness, RenderSync, ViewArena
from aura.chrono.render_sync import evaluate

T0 = 1_700_000_000_000


@pytest.fixture
def records(make_record):
    return [
        make_record("a", timestamp=T0),
        make_record("b", timestamp=T0 + 1000),
        make_record("c", timestamp=T0 + 5000),
    ]


class TestEvaluate:
    """Tests for single-record evaluation."""

    def test_unborn_view(self, make_record):
        view = evaluate(make_record(timestamp=T0), T0 - 1)
        assert not view.visible
        assert view.position is None
        assert view.highlight_intensity == 0.0
        assert view.freshness is Freshness.UNBORN

    def test_to_dict(self, make_record):
        data = evaluate(make_record("x", timestamp=T0), T0 + 100).to_dict()
        assert data["id"] == "x"
        assert data["visible"] is True
        assert data["freshness"] == "fresh"
        assert set(data["position"]) == {"x", "y", "z"}


class TestRenderSync:
    """Tests for RenderSync passes."""

    def test_views_in_insertion_order(self, records):
        sync = RenderSync()
        views = sync.sync(records, T0 + 2000)
        assert [v.id for v in views] == ["a", "b", "c"]
        assert [v.visible for v in views] == [True, True, False]

    def test_handles_keep_identity_when_population_grows(self, records):
        arena = ViewArena()
        sync = RenderSync(arena)

        sync.sync(records[:2], T0 + 2000)
        handle_a = sync.handle_for("a")
        handle_b = sync.handle_for("b")

        sync.sync(records, T0 + 6000)

        assert sync.handle_for("a") is handle_a
        assert sync.handle_for("b") is handle_b
        assert arena.created == 3
        assert arena.discarded == 0

    def test_removed_records_are_discarded(self, records):
        arena = ViewArena()
        sync = RenderSync(arena)
        sync.sync(records, T0)

        sync.sync(records[1:], T0)

        assert arena.discarded == 1
        assert sync.handle_for("a") is None
        assert sync.handle_for("b") is not None

    def test_same_size_swap_reconciles(self, records):
        arena = ViewArena()
        sync = RenderSync(arena)
        a, b, c = records
        sync.sync([a, b], T0)

        views = sync.sync([a, c], T0)

        assert [v.id for v in views] == ["a", "c"]
        assert sync.handle_for("b") is None
        assert sync.handle_for("c") is not None
        assert arena.created == 3
        assert arena.discarded == 1

    def test_sync_if_needed_sees_same_size_swap(self, records):
        sync = RenderSync()
        a, b, c = records
        sync.sync([a, b], T0)

        assert sync.sync_if_needed([a, c], T0) is not None
        assert sync.handle_for("c") is not None

    def test_handles_hold_latest_view(self, records):
        sync = RenderSync()
        sync.sync(records, T0 + 500)
        first = sync.handle_for("a")["view"]
        sync.sync(records, T0 + 900)
        second = sync.handle_for("a")["view"]

        assert first.position != second.position
        assert second == sync.frame[0]

    def test_needs_sync_only_on_change(self, records):
        sync = RenderSync()
        assert sync.needs_sync(T0, len(records))

        sync.sync(records, T0)
        assert not sync.needs_sync(T0, len(records))
        assert sync.needs_sync(T0 + 1, len(records))
        assert sync.needs_sync(T0, len(records) + 1)

    def test_sync_if_needed_skips_idle_passes(self, records):
        sync = RenderSync()
        assert sync.sync_if_needed(records, T0) is not None
        assert sync.sync_if_needed(records, T0) is None
        assert sync.passes == 1

    def test_dispose_releases_every_handle(self, records):
        arena = ViewArena()
        sync = RenderSync(arena)
        sync.sync(records, T0)

        sync.dispose()

        assert arena.discarded == 3
        assert sync.frame == []
        assert sync.needs_sync(T0, 3)
