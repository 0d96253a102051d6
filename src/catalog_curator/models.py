"""Pydantic models for the catalog curator.

Covers the catalog entities (products, variants, discounts, images), the
selection and expansion states, drag and picker session states, and the
snapshot handed to the presentation layer. Every model is frozen and stores
sequences as tuples so that a snapshot can be shared without copying.
"""

from __future__ import annotations

import enum
import math
from collections import Counter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EntityId = int | str


def _duplicates(ids: list[EntityId]) -> list[str]:
    # Ids are compared by text form: drag tokens carry only the text, so 1
    # and "1" would name the same row.
    return [item_id for item_id, count in Counter(map(str, ids)).items() if count > 1]


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------


class Variant(BaseModel):
    """A purchasable variant of a product. Price is an opaque decimal string."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    product_id: EntityId
    title: str
    price: str = "0"

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ProductImage(BaseModel):
    """Image reference attached to fetched products."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    product_id: EntityId
    src: str


class DiscountType(str, enum.Enum):
    """How a discount value is applied."""

    FLAT = "flat"
    PERCENTAGE = "percentage"


class Discount(BaseModel):
    """A discount attached to a product row.

    Neither field fails validation: an unknown ``type`` falls back to flat,
    and a ``value`` that is not a finite, non-negative number becomes ``0``.
    """

    model_config = ConfigDict(frozen=True)

    type: DiscountType = DiscountType.FLAT
    value: float = 0.0

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> DiscountType:
        try:
            return DiscountType(value)
        except (TypeError, ValueError):
            return DiscountType.FLAT

    @field_validator("value", mode="before")
    @classmethod
    def _clamp_value(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0.0
        if not math.isfinite(number) or number < 0:
            return 0.0
        return number


class Product(BaseModel):
    """A product row owning an ordered tuple of variants."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    title: str
    variants: tuple[Variant, ...] = ()
    discount: Discount | None = None
    image: ProductImage | None = None

    @model_validator(mode="after")
    def _unique_variant_ids(self) -> Product:
        dupes = _duplicates([v.id for v in self.variants])
        if dupes:
            raise ValueError(f"Product {self.id!r} has duplicate variant ids: {dupes}")
        return self

    @property
    def variant_ids(self) -> tuple[EntityId, ...]:
        return tuple(v.id for v in self.variants)


class Catalog(BaseModel):
    """Ordered, id-unique sequence of products."""

    model_config = ConfigDict(frozen=True)

    products: tuple[Product, ...] = ()

    @model_validator(mode="after")
    def _unique_product_ids(self) -> Catalog:
        dupes = _duplicates([p.id for p in self.products])
        if dupes:
            raise ValueError(f"Catalog has duplicate product ids: {dupes}")
        return self

    @property
    def product_ids(self) -> tuple[EntityId, ...]:
        return tuple(p.id for p in self.products)

    def get(self, product_id: EntityId) -> Product | None:
        """Return the product with *product_id*, or ``None``."""
        for product in self.products:
            if product.id == product_id:
                return product
        return None


# ---------------------------------------------------------------------------
# Selection and expansion
# ---------------------------------------------------------------------------


class SelectionState(BaseModel):
    """Hierarchical selection of products and their variants.

    A product id is in ``selected_product_ids`` iff its entry in
    ``selected_variant_ids`` exists and is non-empty. Construction fails
    otherwise.
    """

    model_config = ConfigDict(frozen=True)

    selected_product_ids: frozenset[EntityId] = frozenset()
    selected_variant_ids: dict[EntityId, frozenset[EntityId]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _cascade_consistent(self) -> SelectionState:
        populated = {pid for pid, vids in self.selected_variant_ids.items() if vids}
        if len(populated) != len(self.selected_variant_ids):
            raise ValueError("Selection holds an empty variant entry")
        if populated != set(self.selected_product_ids):
            raise ValueError(
                "Selected products do not match variant entries: "
                f"{sorted(map(str, set(self.selected_product_ids) ^ populated))}"
            )
        return self

    def is_product_selected(self, product_id: EntityId) -> bool:
        return product_id in self.selected_product_ids

    def is_variant_selected(self, product_id: EntityId, variant_id: EntityId) -> bool:
        return variant_id in self.selected_variant_ids.get(product_id, frozenset())


class ExpansionState(BaseModel):
    """Which product rows currently show their variants."""

    model_config = ConfigDict(frozen=True)

    expanded: dict[EntityId, bool] = Field(default_factory=dict)

    def is_expanded(self, product_id: EntityId) -> bool:
        return self.expanded.get(product_id, False)


# ---------------------------------------------------------------------------
# Drag session
# ---------------------------------------------------------------------------


class DragPhase(str, enum.Enum):
    """Lifecycle of a drag gesture."""

    IDLE = "idle"
    DRAGGING = "dragging"


class DragState(BaseModel):
    """Current drag gesture, if any."""

    model_config = ConfigDict(frozen=True)

    phase: DragPhase = DragPhase.IDLE
    active_token: str | None = None


# ---------------------------------------------------------------------------
# Picker session
# ---------------------------------------------------------------------------


class PickerState(BaseModel):
    """State of the multi-select product picker."""

    model_config = ConfigDict(frozen=True)

    is_open: bool = False
    editing_product_id: EntityId | None = None
    search_text: str = ""
    next_page: int = 0
    candidates: tuple[Product, ...] = ()
    has_more: bool = True
    loading: bool = False
    error: str | None = None


# ---------------------------------------------------------------------------
# Render snapshot
# ---------------------------------------------------------------------------


class SessionSnapshot(BaseModel):
    """Read-only view of the whole session after a mutation."""

    model_config = ConfigDict(frozen=True)

    revision: int = 0
    catalog: Catalog = Field(default_factory=Catalog)
    selection: SelectionState = Field(default_factory=SelectionState)
    expansion: ExpansionState = Field(default_factory=ExpansionState)
    drag: DragState = Field(default_factory=DragState)
    picker: PickerState = Field(default_factory=PickerState)
