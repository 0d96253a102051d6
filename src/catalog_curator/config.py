"""Configuration management for the catalog curator."""

from __future__ import annotations

from common.config import Settings as BaseSettings


class Settings(BaseSettings):
    """Catalog curator configuration.

    Inherits logging and environment settings from ``common.config.Settings``
    and adds catalog-fetch and session options.
    """

    # Service identity
    service_name: str = "catalog-curator"
    service_version: str = "0.1.0"

    # Catalog-fetch collaborator
    api_base_url: str = "https://stageapi.monkcommerce.app"
    api_key: str = ""
    search_path: str = "/task/products/search"
    fetch_timeout: float = 15.0

    # Picker pagination
    page_size: int = 10
    first_page: int = 0

    # Session
    placeholder_title: str = "New Product"
    seed_catalog_file: str = "seed.json"


def get_settings() -> Settings:
    """Return a fresh settings instance."""
    return Settings()
