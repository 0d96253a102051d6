"""Bundled demo catalog and an offline fetcher serving it."""

from catalog_curator.mock_catalog.static_fetcher import StaticCatalogFetcher, load_catalog

__all__ = ["StaticCatalogFetcher", "load_catalog"]
