"""Session model for curating products and variants.

Two-level drag reorder and hierarchical multi-select over an ordered
catalog, exposed to a presentation layer as immutable snapshots.
"""

from catalog_curator.models import (
    Catalog,
    Discount,
    DiscountType,
    Product,
    SelectionState,
    SessionSnapshot,
    Variant,
)
from catalog_curator.session import CuratorSession

__all__ = [
    "Catalog",
    "CuratorSession",
    "Discount",
    "DiscountType",
    "Product",
    "SelectionState",
    "SessionSnapshot",
    "Variant",
]
