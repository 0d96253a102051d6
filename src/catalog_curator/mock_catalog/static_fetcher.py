"""Offline catalog fetcher backed by the bundled JSON catalogs.

Serves the same paging contract as :class:`~catalog_curator.client.CatalogClient`
so sessions can run without network access (demos, tests).
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

import structlog

from catalog_curator.models import Product

logger = structlog.get_logger(__name__)

_CATALOG_DIR = Path(__file__).parent / "catalogs"


def load_catalog(catalog_file: str = "products.json") -> list[Product]:
    """Load a bundled JSON catalog from the ``catalogs/`` directory."""
    catalog_path = _CATALOG_DIR / catalog_file
    if not catalog_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {catalog_path}")

    with open(catalog_path, encoding="utf-8") as f:
        data = json.load(f)

    return [Product.model_validate(item) for item in data]


class StaticCatalogFetcher:
    """Pages through an in-memory product list.

    Search matches when every whitespace-separated keyword appears in the
    product title, case-insensitively.
    """

    def __init__(
        self,
        products: Iterable[Product] | None = None,
        *,
        page_size: int = 10,
        first_page: int = 0,
    ) -> None:
        self._products = list(products) if products is not None else load_catalog()
        self._page_size = page_size
        self._first_page = first_page
        self.requests: list[tuple[str, int]] = []

    async def fetch_page(self, search_text: str, page: int) -> list[Product]:
        self.requests.append((search_text, page))

        keywords = search_text.lower().split()
        matching = [
            p for p in self._products
            if all(kw in p.title.lower() for kw in keywords)
        ]

        start = (page - self._first_page) * self._page_size
        if start < 0:
            return []
        results = matching[start : start + self._page_size]
        logger.debug("static_page_served", search=search_text, page=page, results=len(results))
        return results
