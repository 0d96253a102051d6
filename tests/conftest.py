"""Shared test fixtures for the catalog curator."""

import pytest

from catalog_curator.config import Settings
from catalog_curator.main import build_session
from catalog_curator.mock_catalog import StaticCatalogFetcher
from catalog_curator.models import Product, Variant


def make_product(product_id, variant_ids=(), title=None):
    """Build a product whose variants are titled after their ids."""
    return Product(
        id=product_id,
        title=title or f"Product {product_id}",
        variants=[
            Variant(id=vid, product_id=product_id, title=f"Variant {vid}", price="10")
            for vid in variant_ids
        ],
    )


@pytest.fixture
def settings():
    """Create test settings."""
    return Settings(
        environment="testing",
        api_base_url="http://catalog.test",
        api_key="test-key",
        page_size=2,
    )


@pytest.fixture
def products():
    """Three products; P1 and P2 have several variants, P3 has one."""
    return [
        make_product("P1", ["V1", "V2", "V3"]),
        make_product("P2", ["V4", "V5"]),
        make_product("P3", ["V6"]),
    ]


@pytest.fixture
def fetcher(settings):
    """Offline fetcher over the bundled demo catalog."""
    return StaticCatalogFetcher(page_size=settings.page_size, first_page=settings.first_page)


@pytest.fixture
def session(settings, fetcher):
    """Session seeded with the bundled seed catalog and an offline fetcher."""
    return build_session(settings, fetcher=fetcher)
