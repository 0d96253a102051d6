"""Drag session controller.

Interprets a drag-start / drag-end pair against the current catalog and
decides which reorder to run, if any. Both the source and the target row
are resolved by id when the drag ends, never from indices captured when it
started, because the catalog may have changed in between.
"""

from __future__ import annotations

import structlog

from catalog_curator import tokens
from catalog_curator.exceptions import MalformedTokenError
from catalog_curator.hierarchy import HierarchyStore
from catalog_curator.models import Catalog, DragPhase, DragState, Product
from catalog_curator.tokens import DragKind, DragToken

logger = structlog.get_logger(__name__)

_IDLE = DragState()


def _index_of_token(rows: tuple, token: DragToken) -> int | None:
    for index, row in enumerate(rows):
        if token.refers_to(row.id):
            return index
    return None


def _owner_of_variant(catalog: Catalog, token: DragToken) -> Product | None:
    for product in catalog.products:
        if _index_of_token(product.variants, token) is not None:
            return product
    return None


class DragSessionController:
    """State machine ``Idle -> Dragging(active_token) -> Idle``."""

    def __init__(self, hierarchy: HierarchyStore) -> None:
        self._hierarchy = hierarchy
        self._state = _IDLE

    @property
    def state(self) -> DragState:
        return self._state

    def on_drag_start(self, token: str) -> DragState:
        """Record *token* as the row being dragged.

        An undecodable token leaves the controller idle.
        """
        try:
            tokens.decode(token)
        except MalformedTokenError as exc:
            logger.warning("drag_start_ignored", reason=exc.reason)
            self._state = _IDLE
            return self._state
        self._state = DragState(phase=DragPhase.DRAGGING, active_token=token)
        return self._state

    def on_drag_end(self, active_token: str, over_token: str | None) -> Catalog:
        """Finish the drag of *active_token* dropped over *over_token*.

        Returns the resulting catalog snapshot, which is the prior snapshot
        whenever the drop does not resolve to a reorder. The controller is
        idle afterwards in every case.
        """
        try:
            return self._resolve_drop(active_token, over_token)
        finally:
            self._state = _IDLE

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve_drop(self, active_token: str, over_token: str | None) -> Catalog:
        catalog = self._hierarchy.catalog
        if over_token is None or over_token == active_token:
            return catalog

        try:
            active = tokens.decode(active_token)
            over = tokens.decode(over_token)
        except MalformedTokenError as exc:
            logger.warning("drag_end_ignored", reason=exc.reason)
            return catalog

        if active.kind != over.kind:
            logger.debug(
                "drag_cross_kind_ignored",
                active_kind=active.kind.value,
                over_kind=over.kind.value,
            )
            return catalog

        if active.kind is DragKind.PRODUCT:
            return self._drop_product(catalog, active, over)
        return self._drop_variant(catalog, active, over)

    def _drop_product(self, catalog: Catalog, active: DragToken, over: DragToken) -> Catalog:
        old_index = _index_of_token(catalog.products, active)
        new_index = _index_of_token(catalog.products, over)
        if old_index is None or new_index is None:
            logger.debug("drag_product_unresolved", active=active.raw_id, over=over.raw_id)
            return catalog
        product_id = catalog.products[old_index].id
        return self._hierarchy.reorder_product(product_id, new_index)

    def _drop_variant(self, catalog: Catalog, active: DragToken, over: DragToken) -> Catalog:
        owner = _owner_of_variant(catalog, active)
        if owner is None:
            logger.debug("drag_variant_unresolved", active=active.raw_id)
            return catalog

        old_index = _index_of_token(owner.variants, active)
        new_index = _index_of_token(owner.variants, over)
        if old_index is None or new_index is None:
            logger.debug(
                "drag_cross_product_ignored",
                product_id=owner.id,
                active=active.raw_id,
                over=over.raw_id,
            )
            return catalog
        variant_id = owner.variants[old_index].id
        return self._hierarchy.reorder_variant(owner.id, variant_id, new_index)
