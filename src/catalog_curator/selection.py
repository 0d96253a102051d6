"""Selection synchronizer for the product picker.

A product counts as selected exactly when at least one of its variants is
selected. Variant selection is keyed by ``(product_id, variant_id)``, so
variant ids only need to be unique within their product.

Every pure function below builds the next :class:`SelectionState` in a
single constructor call. ``SelectionState`` validates the product/variant
cascade on construction, so no intermediate state can ever be observed.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from catalog_curator.models import EntityId, Product, SelectionState

logger = structlog.get_logger(__name__)


def _with_entry(
    state: SelectionState,
    product_id: EntityId,
    variant_ids: frozenset[EntityId],
) -> SelectionState:
    """Return *state* with *product_id*'s entry set to *variant_ids*.

    An empty *variant_ids* removes the entry and demotes the product; a
    non-empty one promotes it.
    """
    entries = dict(state.selected_variant_ids)
    products = set(state.selected_product_ids)
    if variant_ids:
        entries[product_id] = variant_ids
        products.add(product_id)
    else:
        entries.pop(product_id, None)
        products.discard(product_id)
    return SelectionState(
        selected_product_ids=frozenset(products),
        selected_variant_ids=entries,
    )


def toggle_product(state: SelectionState, product: Product) -> SelectionState:
    """Select *product* with all of its variants, or clear it if selected.

    Re-selecting a product always selects every variant, including ones the
    user deselected individually before.
    """
    if state.is_product_selected(product.id):
        return _with_entry(state, product.id, frozenset())
    return _with_entry(state, product.id, frozenset(product.variant_ids))


def toggle_variant(
    state: SelectionState,
    product_id: EntityId,
    variant_id: EntityId,
) -> SelectionState:
    current = state.selected_variant_ids.get(product_id, frozenset())
    if variant_id in current:
        return _with_entry(state, product_id, current - {variant_id})
    return _with_entry(state, product_id, current | {variant_id})


def drop(state: SelectionState, product_id: EntityId) -> SelectionState:
    return _with_entry(state, product_id, frozenset())


def materialize_selection(
    state: SelectionState,
    candidates: Iterable[Product],
) -> tuple[Product, ...]:
    """Project the selection onto *candidates*.

    Returns the selected products in candidate order, each trimmed to its
    selected variants in candidate order. Selection order plays no part.
    """
    chosen: list[Product] = []
    for product in candidates:
        selected = state.selected_variant_ids.get(product.id)
        if not selected:
            continue
        variants = tuple(v for v in product.variants if v.id in selected)
        chosen.append(product.model_copy(update={"variants": variants}))
    return tuple(chosen)


class SelectionSynchronizer:
    """Owns the picker's selection state.

    Callers only ever receive copies, so editing a returned state in place
    cannot bypass the cascade check.
    """

    def __init__(self) -> None:
        self._state = SelectionState()

    @property
    def state(self) -> SelectionState:
        return self._state.model_copy(deep=True)

    def toggle_product(self, product: Product) -> SelectionState:
        if not product.variants:
            logger.debug("product_toggle_without_variants", product_id=product.id)
            return self.state
        self._state = toggle_product(self._state, product)
        logger.debug(
            "product_toggled",
            product_id=product.id,
            selected=self._state.is_product_selected(product.id),
        )
        return self.state

    def toggle_variant(self, product_id: EntityId, variant_id: EntityId) -> SelectionState:
        self._state = toggle_variant(self._state, product_id, variant_id)
        logger.debug(
            "variant_toggled",
            product_id=product_id,
            variant_id=variant_id,
            selected=self._state.is_variant_selected(product_id, variant_id),
        )
        return self.state

    def drop(self, product_id: EntityId) -> SelectionState:
        self._state = drop(self._state, product_id)
        return self.state

    def reset(self) -> SelectionState:
        self._state = SelectionState()
        return self.state

    def materialize_selection(self, candidates: Iterable[Product]) -> tuple[Product, ...]:
        return materialize_selection(self._state, candidates)
