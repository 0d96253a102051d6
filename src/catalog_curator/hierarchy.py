"""Hierarchy store: the ordered catalog of products and their variants.

The module-level functions are pure: they take a :class:`Catalog`, return a
new one, and raise :class:`NotFoundError` for stale ids. :class:`HierarchyStore`
owns the current snapshot, is the only writer of it, and turns stale ids into
logged no-ops that hand back the prior snapshot.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog

from catalog_curator import ordered
from catalog_curator.exceptions import NotFoundError
from catalog_curator.models import Catalog, Discount, EntityId, Product

logger = structlog.get_logger(__name__)

PLACEHOLDER_TITLE = "New Product"


def new_placeholder(title: str = PLACEHOLDER_TITLE) -> Product:
    """Synthesize an empty product row awaiting a picker replacement."""
    return Product(id=str(uuid.uuid4()), title=title)


# ---------------------------------------------------------------------------
# Pure catalog operations
# ---------------------------------------------------------------------------


def _require_product(catalog: Catalog, product_id: EntityId) -> Product:
    product = catalog.get(product_id)
    if product is None:
        raise NotFoundError(product_id, "catalog")
    return product


def _update_product(
    catalog: Catalog,
    product_id: EntityId,
    update: Callable[[Product], Product],
) -> Catalog:
    product = _require_product(catalog, product_id)
    return Catalog(products=ordered.upsert_by_id(catalog.products, update(product)))


def append_products(catalog: Catalog, items: Iterable[Product]) -> Catalog:
    return Catalog(products=(*catalog.products, *items))


def split_new_products(
    catalog: Catalog,
    items: Iterable[Product],
    replacing: EntityId | None = None,
) -> tuple[tuple[Product, ...], tuple[Product, ...]]:
    """Split *items* into those absent from *catalog* and those already in it.

    The row being replaced does not count as present, so a product may take
    its own place again.
    """
    taken = {str(pid) for pid in catalog.product_ids}
    if replacing is not None:
        taken.discard(str(replacing))
    fresh: list[Product] = []
    present: list[Product] = []
    for item in items:
        (present if str(item.id) in taken else fresh).append(item)
    return tuple(fresh), tuple(present)


def remove_product(catalog: Catalog, product_id: EntityId) -> Catalog:
    return Catalog(products=ordered.remove_by_id(catalog.products, product_id))


def replace_product(
    catalog: Catalog,
    product_id: EntityId,
    items: Iterable[Product],
) -> Catalog:
    """Splice *items* into the catalog where *product_id* currently sits."""
    return Catalog(products=ordered.insert_replacing(catalog.products, product_id, items))


def remove_variant(catalog: Catalog, product_id: EntityId, variant_id: EntityId) -> Catalog:
    def _drop(product: Product) -> Product:
        try:
            variants = ordered.remove_by_id(product.variants, variant_id)
        except NotFoundError as exc:
            raise NotFoundError(variant_id, f"variants of product {product_id!r}") from exc
        return product.model_copy(update={"variants": variants})

    return _update_product(catalog, product_id, _drop)


def set_discount(
    catalog: Catalog,
    product_id: EntityId,
    discount: Discount | dict[str, Any] | None,
) -> Catalog:
    """Replace the discount of *product_id*; ``value`` is clamped, never rejected.

    A mapping is read as discount fields. Any other non-``None`` value is
    taken as a flat ``value``.
    """
    if isinstance(discount, Mapping):
        discount = Discount.model_validate(dict(discount))
    elif discount is not None and not isinstance(discount, Discount):
        discount = Discount(value=discount)
    return _update_product(
        catalog,
        product_id,
        lambda product: product.model_copy(update={"discount": discount}),
    )


def reorder_product(catalog: Catalog, product_id: EntityId, to_index: int) -> Catalog:
    return Catalog(products=ordered.move_by_id(catalog.products, product_id, to_index))


def reorder_variant(
    catalog: Catalog,
    product_id: EntityId,
    variant_id: EntityId,
    to_index: int,
) -> Catalog:
    def _move(product: Product) -> Product:
        try:
            variants = ordered.move_by_id(product.variants, variant_id, to_index)
        except NotFoundError as exc:
            raise NotFoundError(variant_id, f"variants of product {product_id!r}") from exc
        return product.model_copy(update={"variants": variants})

    return _update_product(catalog, product_id, _move)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class HierarchyStore:
    """Owns the catalog snapshot and applies mutations to it atomically."""

    def __init__(
        self,
        products: Iterable[Product] = (),
        *,
        placeholder_title: str = PLACEHOLDER_TITLE,
    ) -> None:
        self._catalog = Catalog(products=tuple(products))
        self._placeholder_title = placeholder_title

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def _apply(self, operation: str, mutate: Callable[[Catalog], Catalog], **context: Any) -> Catalog:
        try:
            self._catalog = mutate(self._catalog)
        except NotFoundError as exc:
            logger.warning(f"{operation}_skipped", reason=str(exc), **context)
            return self._catalog
        logger.debug(operation, products=len(self._catalog.products), **context)
        return self._catalog

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_product(self) -> Catalog:
        """Append a placeholder product row."""
        placeholder = new_placeholder(self._placeholder_title)
        return self._apply(
            "product_added",
            lambda c: append_products(c, (placeholder,)),
            product_id=placeholder.id,
        )

    def append_products(self, items: Iterable[Product]) -> Catalog:
        additions = tuple(items)
        return self._apply(
            "products_appended",
            lambda c: append_products(c, additions),
            added=len(additions),
        )

    def remove_product(self, product_id: EntityId) -> Catalog:
        return self._apply(
            "product_removed",
            lambda c: remove_product(c, product_id),
            product_id=product_id,
        )

    def replace_product(self, product_id: EntityId, items: Iterable[Product]) -> Catalog:
        replacements = tuple(items)
        return self._apply(
            "product_replaced",
            lambda c: replace_product(c, product_id, replacements),
            product_id=product_id,
            replacements=len(replacements),
        )

    def remove_variant(self, product_id: EntityId, variant_id: EntityId) -> Catalog:
        return self._apply(
            "variant_removed",
            lambda c: remove_variant(c, product_id, variant_id),
            product_id=product_id,
            variant_id=variant_id,
        )

    def set_discount(
        self,
        product_id: EntityId,
        discount: Discount | dict[str, Any] | None,
    ) -> Catalog:
        return self._apply(
            "discount_set",
            lambda c: set_discount(c, product_id, discount),
            product_id=product_id,
        )

    def reorder_product(self, product_id: EntityId, to_index: int) -> Catalog:
        return self._apply(
            "product_reordered",
            lambda c: reorder_product(c, product_id, to_index),
            product_id=product_id,
            to_index=to_index,
        )

    def reorder_variant(
        self,
        product_id: EntityId,
        variant_id: EntityId,
        to_index: int,
    ) -> Catalog:
        return self._apply(
            "variant_reordered",
            lambda c: reorder_variant(c, product_id, variant_id, to_index),
            product_id=product_id,
            variant_id=variant_id,
            to_index=to_index,
        )
