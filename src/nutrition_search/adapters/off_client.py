"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

SEARCH_FIELDS = ("code", "product_name", "brands", "image_url")


class OffClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def search_products(
        self, query: str, page_size: int = 10, page: int = 1
    ) -> dict[str, object]:
        """Run a text search and return raw API data."""

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Fetch a product by barcode, returning None for unknown products."""


@dataclass
class HttpxOffClient(OffClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout: float = 15
    ) -> "HttpxOffClient":
        """Create an OFF client with a managed httpx session."""
        return cls(
            base_url=base_url,
            user_agent=user_agent,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def search_products(
        self, query: str, page_size: int = 10, page: int = 1
    ) -> dict[str, object]:
        """Search products by free text."""
        url = f"{self.base_url}/search"
        params = {
            "search_terms": query,
            "page_size": str(page_size),
            "page": str(page),
            "fields": ",".join(SEARCH_FIELDS),
        }
        response = await self.http_client.get(
            url, headers=self._headers(), params=params, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Fetch a product by barcode."""
        url = f"{self.base_url}/product/{quote(barcode)}"
        response = await self.http_client.get(
            url, headers=self._headers(), timeout=self.timeout
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent}
