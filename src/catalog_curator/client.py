"""Catalog-fetch client for the product search API.

Fetches one page of products (with nested variants and an image reference)
for a search text. Failures are reported as :class:`FetchFailedError` and
are never retried here; the picker decides what a failure means.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from catalog_curator.config import Settings
from catalog_curator.exceptions import FetchFailedError
from catalog_curator.models import Product

logger = structlog.get_logger(__name__)

_DEFAULT_TIMEOUT = 15.0


class CatalogFetcher(Protocol):
    """Anything that can return a page of candidate products."""

    async def fetch_page(self, search_text: str, page: int) -> list[Product]:
        ...


class CatalogClient:
    """Async HTTP client for the product search endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        search_path: str = "/task/products/search",
        page_size: int = 10,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._search_path = search_path
        self._page_size = page_size
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> CatalogClient:
        return cls(
            settings.api_base_url,
            settings.api_key,
            search_path=settings.search_path,
            page_size=settings.page_size,
            timeout=settings.fetch_timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-initialise the shared ``httpx.AsyncClient``."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"x-api-key": self._api_key},
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Shut down the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def fetch_page(self, search_text: str, page: int) -> list[Product]:
        """Fetch one page of products matching *search_text*.

        Parameters
        ----------
        search_text:
            Free-text search; empty matches everything.
        page:
            Page number as understood by the search API.

        Returns
        -------
        list[Product]
            Up to ``page_size`` products. A shorter list means there are no
            further pages.

        Raises
        ------
        FetchFailedError
            On timeouts, transport errors, non-2xx responses, or a body that
            is not a list of products.
        """
        client = await self._get_client()
        params: dict[str, Any] = {
            "search": search_text,
            "page": page,
            "limit": self._page_size,
        }

        try:
            response = await client.get(self._search_path, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("catalog_fetch_timeout", search=search_text, page=page)
            raise FetchFailedError(f"Catalog search timed out (page {page})") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "catalog_fetch_http_error",
                search=search_text,
                page=page,
                status=exc.response.status_code,
            )
            raise FetchFailedError(
                f"Catalog search failed ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("catalog_fetch_error", search=search_text, page=page, error=str(exc))
            raise FetchFailedError(f"Catalog search request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchFailedError("Catalog search returned invalid JSON") from exc

        products = self._parse_products(data)
        logger.debug("catalog_page_fetched", search=search_text, page=page, results=len(products))
        return products

    @staticmethod
    def _parse_products(data: Any) -> list[Product]:
        """Turn the search response body into products.

        The API answers ``null`` rather than ``[]`` past the last page.
        """
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchFailedError(f"Expected a list of products, got {type(data).__name__}")
        try:
            return [Product.model_validate(item) for item in data]
        except ValidationError as exc:
            raise FetchFailedError(f"Malformed product in search response: {exc}") from exc
