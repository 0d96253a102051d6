"""Multi-select product picker session.

Holds the candidate products fetched page by page for the current search
text, and the hierarchical selection made over them. Fetched pages are
plain data: appending one never touches the catalog or the selection.
"""

from __future__ import annotations

import structlog

from catalog_curator import ordered
from catalog_curator.client import CatalogFetcher
from catalog_curator.exceptions import FetchFailedError
from catalog_curator.models import EntityId, PickerState, Product, SelectionState
from catalog_curator.selection import SelectionSynchronizer

logger = structlog.get_logger(__name__)


class PickerSession:
    """Candidate pagination plus selection for one picker dialog."""

    def __init__(
        self,
        fetcher: CatalogFetcher,
        *,
        page_size: int = 10,
        first_page: int = 0,
    ) -> None:
        self._fetcher = fetcher
        self._page_size = page_size
        self._first_page = first_page
        self._selection = SelectionSynchronizer()
        self._state = PickerState(next_page=first_page)
        # Bumped whenever the candidate list is restarted; pages fetched
        # under an older generation are discarded on arrival.
        self._generation = 0

    @property
    def state(self) -> PickerState:
        return self._state

    @property
    def selection(self) -> SelectionState:
        return self._selection.state

    def _update(self, **changes: object) -> PickerState:
        self._state = self._state.model_copy(update=changes)
        return self._state

    def _restart_candidates(self, **changes: object) -> PickerState:
        self._generation += 1
        return self._update(
            candidates=(),
            next_page=self._first_page,
            has_more=True,
            loading=False,
            error=None,
            **changes,
        )

    # ------------------------------------------------------------------
    # Dialog lifecycle
    # ------------------------------------------------------------------

    def open(self, editing_product_id: EntityId | None = None) -> PickerState:
        """Open the picker for *editing_product_id* with an empty selection."""
        self._selection.reset()
        logger.info("picker_opened", editing_product_id=editing_product_id)
        return self._restart_candidates(
            is_open=True,
            editing_product_id=editing_product_id,
            search_text="",
        )

    def close(self) -> PickerState:
        self._generation += 1
        return self._update(is_open=False, loading=False)

    def set_search(self, text: str) -> PickerState:
        """Restart pagination for *text*; the selection is kept."""
        if text == self._state.search_text:
            return self._state
        return self._restart_candidates(search_text=text)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    async def load_next_page(self) -> PickerState:
        """Fetch and append the next page of candidates.

        A page shorter than ``page_size`` ends pagination. A failed fetch
        also ends it and records the error; it is not retried.
        """
        state = self._state
        if not state.is_open or state.loading or not state.has_more:
            return state

        generation = self._generation
        search_text = state.search_text
        page = state.next_page
        self._update(loading=True, error=None)

        try:
            products = await self._fetcher.fetch_page(search_text, page)
        except FetchFailedError as exc:
            if generation != self._generation:
                return self._state
            logger.warning("picker_page_failed", search=search_text, page=page, error=str(exc))
            return self._update(loading=False, has_more=False, error=str(exc))
        except BaseException:
            if generation == self._generation:
                self._update(loading=False)
            raise

        if generation != self._generation:
            logger.debug("picker_stale_page_discarded", search=search_text, page=page)
            return self._state

        candidates = self._state.candidates
        for product in products:
            candidates = ordered.upsert_by_id(candidates, product)

        logger.debug(
            "picker_page_appended",
            search=search_text,
            page=page,
            results=len(products),
            candidates=len(candidates),
        )
        return self._update(
            candidates=candidates,
            next_page=page + 1,
            has_more=len(products) >= self._page_size,
            loading=False,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def toggle_product(self, product_id: EntityId) -> SelectionState:
        product = next((p for p in self._state.candidates if p.id == product_id), None)
        if product is None:
            logger.warning("picker_toggle_unknown_product", product_id=product_id)
            return self._selection.state
        return self._selection.toggle_product(product)

    def toggle_variant(self, product_id: EntityId, variant_id: EntityId) -> SelectionState:
        return self._selection.toggle_variant(product_id, variant_id)

    def drop_selection(self, product_id: EntityId) -> SelectionState:
        return self._selection.drop(product_id)

    def confirm(self) -> tuple[Product, ...]:
        """Return the selected products, trimmed to their selected variants, and close.

        A picker that is not open has nothing to confirm.
        """
        if not self._state.is_open:
            return ()
        chosen = self._selection.materialize_selection(self._state.candidates)
        logger.info(
            "picker_confirmed",
            editing_product_id=self._state.editing_product_id,
            products=len(chosen),
        )
        self.close()
        return chosen
