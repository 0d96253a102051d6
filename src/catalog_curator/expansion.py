"""Per-product "show variants" flags."""

from __future__ import annotations

import structlog

from catalog_curator.models import EntityId, ExpansionState

logger = structlog.get_logger(__name__)


def toggle(state: ExpansionState, product_id: EntityId) -> ExpansionState:
    expanded = dict(state.expanded)
    expanded[product_id] = not state.is_expanded(product_id)
    return ExpansionState(expanded=expanded)


def drop(state: ExpansionState, product_id: EntityId) -> ExpansionState:
    if product_id not in state.expanded:
        return state
    expanded = dict(state.expanded)
    del expanded[product_id]
    return ExpansionState(expanded=expanded)


class ExpansionStore:
    """Owns the expansion flags of the product rows. Returned states are copies."""

    def __init__(self) -> None:
        self._state = ExpansionState()

    @property
    def state(self) -> ExpansionState:
        return self._state.model_copy(deep=True)

    def is_expanded(self, product_id: EntityId) -> bool:
        return self._state.is_expanded(product_id)

    def toggle(self, product_id: EntityId) -> ExpansionState:
        self._state = toggle(self._state, product_id)
        logger.debug("expansion_toggled", product_id=product_id, expanded=self.is_expanded(product_id))
        return self.state

    def drop(self, product_id: EntityId) -> ExpansionState:
        self._state = drop(self._state, product_id)
        return self.state
