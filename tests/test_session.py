"""End-to-end tests for the curator session facade."""

import asyncio

import pytest

from catalog_curator import events
from catalog_curator.exceptions import FetchFailedError
from catalog_curator.mock_catalog import StaticCatalogFetcher
from catalog_curator.models import DragPhase
from catalog_curator.session import CuratorSession
from catalog_curator.tokens import product_token, variant_token
from tests.conftest import make_product


@pytest.fixture
def curator(products):
    candidates = [
        make_product("P1", ["V1", "V2", "V3"]),
        make_product("Pa", ["a1", "a2"]),
        make_product("Pb", ["b1"]),
    ]
    return CuratorSession(StaticCatalogFetcher(candidates), products)


class TestSeededSession:
    def test_seed_catalog_loaded(self, session):
        catalog = session.snapshot().catalog
        assert list(catalog.product_ids) == [77, 80]
        assert catalog.get(77).variant_ids == (1, 2, 3)

    async def test_demo_fetcher_pages(self, session):
        session.open_picker(80)
        snapshot = await session.load_picker_page()
        assert [p.id for p in snapshot.picker.candidates] == [77, 80]
        assert snapshot.picker.has_more

    async def test_confirming_listed_product_skips_it(self, session):
        placeholder_id = session.add_product().catalog.products[-1].id
        session.open_picker(placeholder_id)
        await session.load_picker_page()
        await session.load_picker_page()
        session.toggle_picker_product(77)
        session.toggle_picker_product(81)
        revision = session.revision

        snapshot = session.confirm_picker()

        assert list(snapshot.catalog.product_ids) == [77, 80, 81]
        assert snapshot.revision == revision + 1
        assert not snapshot.picker.is_open
        event = session.stream.get_history()[-1]
        assert event.event_type == events.EVENT_PRODUCT_REPLACED
        assert event.data["skipped"] == [77]

    async def test_confirming_only_listed_products_removes_placeholder(self, session):
        placeholder_id = session.add_product().catalog.products[-1].id
        session.open_picker(placeholder_id)
        await session.load_picker_page()
        session.toggle_picker_product(77)

        snapshot = session.confirm_picker()

        assert list(snapshot.catalog.product_ids) == [77, 80]
        assert not snapshot.picker.is_open


class TestCatalogIntents:
    def test_add_product_appends_placeholder(self, curator):
        snapshot = curator.add_product()
        assert len(snapshot.catalog.products) == 4
        assert snapshot.catalog.products[-1].title == "New Product"
        assert snapshot.revision == 1

    def test_stale_ids_are_noops(self, curator):
        curator.remove_product("gone")
        curator.remove_variant("gone", "V1")
        curator.set_discount("gone", {"value": 3})
        curator.toggle_expanded("gone")
        assert curator.revision == 0
        assert curator.stream.get_history() == []

    def test_set_discount(self, curator):
        snapshot = curator.set_discount("P2", {"type": "percentage", "value": 10})
        assert snapshot.catalog.get("P2").discount.value == 10.0

    def test_remove_variant(self, curator):
        snapshot = curator.remove_variant("P1", "V1")
        assert snapshot.catalog.get("P1").variant_ids == ("V2", "V3")


class TestRemovalCascade:
    async def test_removal_drops_selection_and_expansion(self, curator):
        curator.open_picker("P2")
        await curator.load_picker_page()
        curator.toggle_picker_variant("P1", "V1")
        curator.toggle_expanded("P1")

        snapshot = curator.snapshot()
        assert snapshot.selection.selected_variant_ids["P1"] == {"V1"}
        assert snapshot.expansion.is_expanded("P1")

        snapshot = curator.remove_product("P1")

        assert "P1" not in snapshot.catalog.product_ids
        assert "P1" not in snapshot.selection.selected_variant_ids
        assert "P1" not in snapshot.selection.selected_product_ids
        assert "P1" not in snapshot.expansion.expanded

    def test_failed_removal_leaves_dependents_alone(self, curator):
        curator.toggle_expanded("P2")
        curator.remove_product("P9")
        assert curator.snapshot().expansion.is_expanded("P2")


class TestDragIntents:
    def test_product_drag(self, curator):
        started = curator.drag_start(product_token("P3"))
        assert started.drag.phase is DragPhase.DRAGGING
        snapshot = curator.drag_end(product_token("P3"), product_token("P1"))
        assert list(snapshot.catalog.product_ids) == ["P3", "P1", "P2"]
        assert snapshot.drag.phase is DragPhase.IDLE

    def test_cross_kind_drag_does_not_reorder(self, curator):
        before = curator.snapshot().catalog
        curator.drag_start(variant_token("V1"))
        snapshot = curator.drag_end(variant_token("V1"), product_token("P2"))
        assert snapshot.catalog == before
        assert curator.stream.get_history()[-1].data["reordered"] is False

    def test_malformed_drag_start_not_published(self, curator):
        curator.drag_start("nonsense")
        assert curator.revision == 0


class TestPickerFlow:
    async def test_replace_placeholder_with_selection(self, curator):
        snapshot = curator.add_product()
        placeholder_id = snapshot.catalog.products[-1].id

        curator.open_picker(placeholder_id)
        await curator.load_picker_page()
        curator.toggle_picker_product("Pb")
        curator.toggle_picker_product("Pa")
        curator.toggle_picker_variant("Pa", "a1")

        snapshot = curator.confirm_picker()

        assert list(snapshot.catalog.product_ids) == ["P1", "P2", "P3", "Pa", "Pb"]
        assert snapshot.catalog.get("Pa").variant_ids == ("a2",)
        assert not snapshot.picker.is_open

    async def test_replace_existing_row_in_place(self, curator):
        curator.open_picker("P2")
        await curator.load_picker_page()
        curator.toggle_picker_product("Pa")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "Pa", "P3"]

    async def test_confirm_with_nothing_selected_removes_row(self, curator):
        curator.open_picker("P2")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "P3"]

    async def test_confirm_after_row_removed_is_noop(self, curator):
        curator.open_picker("P2")
        await curator.load_picker_page()
        curator.toggle_picker_product("Pa")
        curator.remove_product("P2")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "P3"]

    async def test_row_may_be_replaced_by_itself(self, curator):
        curator.open_picker("P1")
        await curator.load_picker_page()
        curator.toggle_picker_product("P1")
        curator.toggle_picker_variant("P1", "V2")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "P2", "P3"]
        assert snapshot.catalog.get("P1").variant_ids == ("V1", "V3")

    async def test_confirm_after_cancel_does_nothing(self, curator):
        curator.open_picker("P2")
        await curator.load_picker_page()
        curator.toggle_picker_product("Pa")
        curator.close_picker()
        revision = curator.revision

        snapshot = curator.confirm_picker()

        assert list(snapshot.catalog.product_ids) == ["P1", "P2", "P3"]
        assert curator.revision == revision

    async def test_confirm_without_target_skips_listed_products(self, curator):
        curator.open_picker()
        await curator.load_picker_page()
        curator.toggle_picker_product("P1")
        curator.toggle_picker_product("Pb")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "P2", "P3", "Pb"]

    async def test_confirm_without_target_appends(self, curator):
        curator.open_picker()
        await curator.load_picker_page()
        curator.toggle_picker_product("Pb")
        snapshot = curator.confirm_picker()
        assert list(snapshot.catalog.product_ids) == ["P1", "P2", "P3", "Pb"]

    async def test_reopening_starts_with_empty_selection(self, curator):
        curator.open_picker("P1")
        await curator.load_picker_page()
        curator.toggle_picker_product("Pa")
        curator.close_picker()
        snapshot = curator.open_picker("P1")
        assert snapshot.selection.selected_product_ids == frozenset()

    async def test_fetch_failure_surfaces_in_snapshot(self, products):
        class Broken:
            async def fetch_page(self, search_text, page):
                raise FetchFailedError("offline")

        curator = CuratorSession(Broken(), products)
        curator.open_picker("P1")
        snapshot = await curator.load_picker_page()
        assert snapshot.picker.error == "offline"
        assert not snapshot.picker.has_more
        assert snapshot.catalog == curator.hierarchy.catalog


class TestSnapshots:
    def test_snapshot_is_independent_of_later_mutations(self, curator):
        curator.toggle_expanded("P1")
        first = curator.snapshot()
        first.expansion.expanded["P1"] = False
        assert curator.snapshot().expansion.is_expanded("P1")

        curator.remove_product("P1")
        assert "P1" in first.catalog.product_ids

    async def test_live_picker_selection_is_a_copy(self, curator):
        curator.open_picker()
        await curator.load_picker_page()
        curator.toggle_picker_product("Pa")
        curator.picker.selection.selected_variant_ids.clear()
        curator.expansion.state.expanded["P1"] = True

        snapshot = curator.snapshot()
        assert snapshot.selection.selected_variant_ids == {"Pa": {"a1", "a2"}}
        assert not snapshot.expansion.is_expanded("P1")

    def test_every_commit_published_in_order(self, curator):
        curator.add_product()
        curator.toggle_expanded("P2")
        curator.drag_start(product_token("P2"))
        curator.drag_end(product_token("P2"), product_token("P1"))

        history = curator.stream.get_history()
        assert [e.event_type for e in history] == [
            events.EVENT_PRODUCT_ADDED,
            events.EVENT_EXPANSION_TOGGLED,
            events.EVENT_DRAG_STARTED,
            events.EVENT_DRAG_ENDED,
        ]
        assert [e.revision for e in history] == [1, 2, 3, 4]

    async def test_subscriber_replays_history_then_stops_on_close(self, curator):
        curator.add_product()
        received = []

        async def consume():
            async for event in curator.stream.subscribe():
                received.append(event.event_type)

        task = asyncio.create_task(consume())
        await asyncio.sleep(0)
        curator.toggle_expanded("P1")
        curator.stream.close()
        await asyncio.wait_for(task, timeout=1)

        assert received == [events.EVENT_PRODUCT_ADDED, events.EVENT_EXPANSION_TOGGLED]
