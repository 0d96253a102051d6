"""Curator session: the single entry point for the presentation layer.

Routes intents to the store that owns the affected state, sequences the
cross-store effects, and publishes a new snapshot after every mutation that
changed something.

Cross-store rule: the catalog mutation commits first. Dependent stores
(expansion, picker selection) are told to drop entries for a product only
after its removal has actually been committed.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from catalog_curator import events
from catalog_curator.client import CatalogFetcher
from catalog_curator.drag import DragSessionController
from catalog_curator.events import SnapshotStream
from catalog_curator.expansion import ExpansionStore
from catalog_curator.hierarchy import PLACEHOLDER_TITLE, HierarchyStore, split_new_products
from catalog_curator.models import (
    Catalog,
    Discount,
    EntityId,
    Product,
    SessionSnapshot,
)
from catalog_curator.picker import PickerSession

logger = structlog.get_logger(__name__)


class CuratorSession:
    """In-memory model of one product-curation session."""

    def __init__(
        self,
        fetcher: CatalogFetcher,
        products: Iterable[Product] = (),
        *,
        placeholder_title: str = PLACEHOLDER_TITLE,
        page_size: int = 10,
        first_page: int = 0,
        stream: SnapshotStream | None = None,
    ) -> None:
        self.hierarchy = HierarchyStore(products, placeholder_title=placeholder_title)
        self.expansion = ExpansionStore()
        self.drag = DragSessionController(self.hierarchy)
        self.picker = PickerSession(fetcher, page_size=page_size, first_page=first_page)
        self.stream = stream or SnapshotStream()
        self._revision = 0

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @property
    def revision(self) -> int:
        return self._revision

    def snapshot(self) -> SessionSnapshot:
        """Return a deep, read-only copy of the whole session state."""
        return SessionSnapshot(
            revision=self._revision,
            catalog=self.hierarchy.catalog,
            selection=self.picker.selection,
            expansion=self.expansion.state,
            drag=self.drag.state,
            picker=self.picker.state,
        )

    def _commit(self, event_type: str, **data: Any) -> SessionSnapshot:
        self._revision += 1
        snapshot = self.snapshot()
        self.stream.emit(event_type, snapshot, data)
        return snapshot

    def _commit_if_changed(
        self,
        before: Catalog,
        after: Catalog,
        event_type: str,
        **data: Any,
    ) -> SessionSnapshot:
        if after == before:
            return self.snapshot()
        return self._commit(event_type, **data)

    # ------------------------------------------------------------------
    # Catalog intents
    # ------------------------------------------------------------------

    def add_product(self) -> SessionSnapshot:
        """Append a placeholder row awaiting a picker replacement."""
        catalog = self.hierarchy.add_product()
        return self._commit(events.EVENT_PRODUCT_ADDED, product_id=catalog.products[-1].id)

    def remove_product(self, product_id: EntityId) -> SessionSnapshot:
        before = self.hierarchy.catalog
        after = self.hierarchy.remove_product(product_id)
        if after == before:
            return self.snapshot()

        self.expansion.drop(product_id)
        self.picker.drop_selection(product_id)
        logger.info("product_removed", product_id=product_id, remaining=len(after.products))
        return self._commit(events.EVENT_PRODUCT_REMOVED, product_id=product_id)

    def remove_variant(self, product_id: EntityId, variant_id: EntityId) -> SessionSnapshot:
        before = self.hierarchy.catalog
        after = self.hierarchy.remove_variant(product_id, variant_id)
        return self._commit_if_changed(
            before,
            after,
            events.EVENT_VARIANT_REMOVED,
            product_id=product_id,
            variant_id=variant_id,
        )

    def set_discount(
        self,
        product_id: EntityId,
        discount: Discount | dict[str, Any] | None,
    ) -> SessionSnapshot:
        before = self.hierarchy.catalog
        after = self.hierarchy.set_discount(product_id, discount)
        return self._commit_if_changed(
            before, after, events.EVENT_DISCOUNT_SET, product_id=product_id
        )

    def toggle_expanded(self, product_id: EntityId) -> SessionSnapshot:
        if self.hierarchy.catalog.get(product_id) is None:
            logger.warning("expansion_toggle_skipped", product_id=product_id)
            return self.snapshot()
        self.expansion.toggle(product_id)
        return self._commit(
            events.EVENT_EXPANSION_TOGGLED,
            product_id=product_id,
            expanded=self.expansion.is_expanded(product_id),
        )

    # ------------------------------------------------------------------
    # Drag intents
    # ------------------------------------------------------------------

    def drag_start(self, token: str) -> SessionSnapshot:
        state = self.drag.on_drag_start(token)
        if state.active_token is None:
            return self.snapshot()
        return self._commit(events.EVENT_DRAG_STARTED, token=token)

    def drag_end(self, active_token: str, over_token: str | None) -> SessionSnapshot:
        before = self.hierarchy.catalog
        after = self.drag.on_drag_end(active_token, over_token)
        return self._commit(
            events.EVENT_DRAG_ENDED,
            active=active_token,
            over=over_token,
            reordered=after != before,
        )

    # ------------------------------------------------------------------
    # Picker intents
    # ------------------------------------------------------------------

    def open_picker(self, editing_product_id: EntityId | None = None) -> SessionSnapshot:
        """Open the picker to replace *editing_product_id* (or to append)."""
        self.picker.open(editing_product_id)
        return self._commit(events.EVENT_PICKER_OPENED, editing_product_id=editing_product_id)

    def close_picker(self) -> SessionSnapshot:
        self.picker.close()
        return self._commit(events.EVENT_PICKER_CLOSED, confirmed=False)

    def search_picker(self, text: str) -> SessionSnapshot:
        before = self.picker.state
        after = self.picker.set_search(text)
        if after is before:
            return self.snapshot()
        return self._commit(events.EVENT_PICKER_SEARCHED, search=text)

    async def load_picker_page(self) -> SessionSnapshot:
        before = self.picker.state
        after = await self.picker.load_next_page()
        if after is before:
            return self.snapshot()
        return self._commit(
            events.EVENT_PICKER_PAGE_LOADED,
            candidates=len(after.candidates),
            has_more=after.has_more,
            error=after.error,
        )

    def toggle_picker_product(self, product_id: EntityId) -> SessionSnapshot:
        before = self.picker.selection
        after = self.picker.toggle_product(product_id)
        if after == before:
            return self.snapshot()
        return self._commit(events.EVENT_SELECTION_CHANGED, product_id=product_id)

    def toggle_picker_variant(self, product_id: EntityId, variant_id: EntityId) -> SessionSnapshot:
        self.picker.toggle_variant(product_id, variant_id)
        return self._commit(
            events.EVENT_SELECTION_CHANGED,
            product_id=product_id,
            variant_id=variant_id,
        )

    def confirm_picker(self) -> SessionSnapshot:
        """Splice the picker's selection into the catalog and close the picker.

        The chosen products replace the row being edited. Without an edited
        row they are appended. If the edited row disappeared meanwhile, the
        catalog is left untouched. Chosen products that already have a row
        elsewhere in the catalog are skipped. Confirming a closed picker
        does nothing.
        """
        state = self.picker.state
        if not state.is_open:
            logger.warning("picker_confirm_skipped", reason="picker is not open")
            return self.snapshot()

        editing_product_id = state.editing_product_id
        chosen, skipped = split_new_products(
            self.hierarchy.catalog,
            self.picker.confirm(),
            replacing=editing_product_id,
        )
        if skipped:
            logger.info(
                "picker_products_already_listed",
                editing_product_id=editing_product_id,
                skipped=[p.id for p in skipped],
            )

        if editing_product_id is None:
            catalog = self.hierarchy.append_products(chosen)
        else:
            catalog = self.hierarchy.replace_product(editing_product_id, chosen)
            if catalog.get(editing_product_id) is None:
                self.expansion.drop(editing_product_id)

        return self._commit(
            events.EVENT_PRODUCT_REPLACED,
            editing_product_id=editing_product_id,
            products=[p.id for p in chosen],
            skipped=[p.id for p in skipped],
            catalog_size=len(catalog.products),
        )
