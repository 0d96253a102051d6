"""Tests for the expansion flags store."""

from catalog_curator import expansion
from catalog_curator.expansion import ExpansionStore
from catalog_curator.models import ExpansionState


class TestExpansionStore:
    def test_toggle_flips_flag(self):
        store = ExpansionStore()
        assert store.toggle("P1").is_expanded("P1")
        assert not store.toggle("P1").is_expanded("P1")

    def test_drop_forgets_product(self):
        store = ExpansionStore()
        store.toggle("P1")
        store.toggle("P2")
        assert store.drop("P1").expanded == {"P2": True}

    def test_drop_unknown_returns_same_state(self):
        state = ExpansionState(expanded={"P1": True})
        assert expansion.drop(state, "P9") is state

    def test_returned_state_cannot_edit_the_store(self):
        store = ExpansionStore()
        store.toggle("P1")
        store.state.expanded["P1"] = False
        assert store.is_expanded("P1")
