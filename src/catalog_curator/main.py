"""Composition root for the catalog curator.

Configures logging, picks the catalog-fetch collaborator and seeds the
catalog. The presentation layer calls :func:`build_session` once and then
talks only to the returned :class:`CuratorSession`.
"""

from __future__ import annotations

import structlog

from common import setup_logging

from catalog_curator.client import CatalogClient, CatalogFetcher
from catalog_curator.config import Settings, get_settings
from catalog_curator.mock_catalog import load_catalog
from catalog_curator.session import CuratorSession

logger = structlog.get_logger(__name__)


def build_session(
    settings: Settings | None = None,
    *,
    fetcher: CatalogFetcher | None = None,
    seed: bool = True,
) -> CuratorSession:
    """Construct a fully-configured curator session.

    Uses a :class:`CatalogClient` built from *settings* unless a *fetcher*
    is injected, and seeds the catalog from ``settings.seed_catalog_file``
    when *seed* is true.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, json=settings.log_json)

    if fetcher is None:
        fetcher = CatalogClient.from_settings(settings)

    products = load_catalog(settings.seed_catalog_file) if seed else []

    session = CuratorSession(
        fetcher,
        products,
        placeholder_title=settings.placeholder_title,
        page_size=settings.page_size,
        first_page=settings.first_page,
    )

    logger.info(
        "session_ready",
        service=settings.service_name,
        version=settings.service_version,
        environment=settings.environment,
        products=len(session.hierarchy.catalog.products),
        fetcher=type(fetcher).__name__,
    )
    return session
