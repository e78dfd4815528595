"""
Local Food Works API Client
===========================

Fetches catalog pages, product details and the supplier roster of one
store, and downloads files. JSON responses are cached on disk so that
an interrupted harvest can be rerun without hammering the API.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from lfw_harvester.core.schema import CatalogPage, SupplierSummary

if TYPE_CHECKING:
    from lfw_harvester.config import ApiConfig

logger = logging.getLogger(__name__)


class LfwApiError(RuntimeError):
    """Raised when the LFW API cannot be reached or answers with an error."""


@dataclass
class DownloadedFile:
    """Raw bytes of a download with the Content-Type it was served with."""

    content: bytes
    content_type: str | None = None


class JsonPageCache:
    """
    Disk cache for JSON documents.

    Entries older than ``max_age`` seconds are considered missing; with
    ``max_age`` None entries never expire.
    """

    def __init__(self, cache_dir: str | Path, max_age: int | None = None) -> None:
        self.cache_dir = Path(cache_dir).expanduser()
        self.max_age = max_age

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """Return the cached document, or None when missing or stale."""
        path = self._path(key)
        if not path.exists():
            return None
        if self.max_age is not None and time.time() - path.stat().st_mtime > self.max_age:
            logger.debug(f"Cache entry {path} expired")
            return None
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache entry {path}: {e}")
            return None

    def put(self, key: str, document: Any) -> None:
        """Store a document."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with open(self._path(key), "w") as f:
            json.dump(document, f)

    def clear(self) -> int:
        """Remove all cached documents, returning how many were removed."""
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            path.unlink()
            removed += 1
        return removed


class LfwClient:
    """
    Client for the public store API of Local Food Works.

    Features:
    - Visible product listing, paginated and sorted by name
    - Product detail pages with structured supplier, ingredients, allergens
    - Supplier roster of the store
    - Raw file downloads (product pictures)
    """

    def __init__(
        self,
        base_url: str = "https://api.localfoodworks.eu",
        store_id: int = 2927,
        pickup_point_id: int = 563,
        page_size: int = 36,
        user_agent: str = "LfwHarvester/0.1",
        timeout: float = 30.0,
        cache: JsonPageCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.store_id = store_id
        self.pickup_point_id = pickup_point_id
        self.page_size = page_size
        self.user_agent = user_agent
        self.timeout = timeout
        self.cache = cache
        self._client = client

    @classmethod
    def from_config(cls, config: ApiConfig) -> LfwClient:
        """Create a client from configuration."""
        cache = (
            JsonPageCache(config.cache_dir, config.cache_max_age)
            if config.cache_dir
            else None
        )
        return cls(
            base_url=config.base_url,
            store_id=config.store_id,
            pickup_point_id=config.pickup_point_id,
            page_size=config.page_size,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
            cache=cache,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        return self._client

    def visible_products_url(self, page: int) -> str:
        return (
            f"{self.base_url}/api/store/{self.store_id}/visible-products"
            f"?size={self.page_size}&sort=name,asc"
            f"&pickUpPointId={self.pickup_point_id}&page={page}"
        )

    def product_url(self, product_id: int | str) -> str:
        return f"{self.base_url}/api/store/{self.store_id}/products/{product_id}"

    def suppliers_url(self) -> str:
        return f"{self.base_url}/api/store/{self.store_id}/suppliers"

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._get_client().get(url)
        except httpx.TimeoutException as e:
            raise LfwApiError(f"Timeout after {self.timeout}s fetching {url}") from e
        except httpx.HTTPError as e:
            raise LfwApiError(f"HTTP error fetching {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise LfwApiError(f"{url} answered {response.status_code}")
        return response

    async def _cached_json(self, url: str, key: str) -> Any:
        """Fetch a JSON document, going through the cache when configured."""
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            logger.info(f"No cached document {key!r} for {url}, fetching")

        response = await self._get(url)
        try:
            document = response.json()
        except ValueError as e:
            raise LfwApiError(f"{url} returned invalid JSON: {e}") from e

        if self.cache is not None:
            self.cache.put(key, document)
        return document

    async def fetch_page(self, page: int) -> CatalogPage:
        """
        Fetch one page of visible products.

        Args:
            page: Zero based page index

        Returns:
            CatalogPage with raw product listings and the last page flag
        """
        document = await self._cached_json(self.visible_products_url(page), f"page-{page}")
        return CatalogPage.model_validate(document)

    async def fetch_product_detail(self, product_id: int | str) -> dict[str, Any]:
        """Fetch the detail payload of a product."""
        return await self._cached_json(self.product_url(product_id), f"product-{product_id}")

    async def fetch_suppliers(self) -> list[SupplierSummary]:
        """Fetch the supplier roster of the store."""
        document = await self._cached_json(
            self.suppliers_url(), f"shop-{self.store_id}-suppliers"
        )
        return [SupplierSummary.model_validate(entry) for entry in document]

    async def download_file(self, url: str) -> DownloadedFile:
        """Download a file."""
        response = await self._get(url)
        return DownloadedFile(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
