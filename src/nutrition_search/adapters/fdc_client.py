"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FdcClient(Protocol):
    """Interface for FoodData Central API interactions."""

    async def search_foods(
        self,
        query: str,
        page_size: int = 25,
        page_number: int = 1,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        """Search foods by query and return raw API data."""

    async def get_food(
        self,
        fdc_id: int,
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> dict[str, object] | None:
        """Fetch a food by FDC id, returning None when it does not exist."""

    async def get_foods(
        self,
        fdc_ids: list[int],
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> list[dict[str, object]]:
        """Fetch several foods by FDC id."""


@dataclass
class HttpxFdcClient(FdcClient):
    """HTTPX-backed FDC client.

    The API key travels in the ``X-Api-Key`` header so it never shows up in
    request URLs or in ``httpx`` error messages.
    """

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout: float = 15
    ) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def search_foods(
        self,
        query: str,
        page_size: int = 25,
        page_number: int = 1,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        """Search foods by query."""
        url = f"{self.base_url}/foods/search"
        payload: dict[str, object] = {
            "query": query,
            "pageSize": page_size,
            "pageNumber": page_number,
            "sortBy": "score",
            "sortOrder": "desc",
        }
        if data_types:
            payload["dataType"] = data_types
        response = await self.http_client.post(
            url, headers=self._headers(), json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def get_food(
        self,
        fdc_id: int,
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> dict[str, object] | None:
        """Fetch a food by FDC id."""
        url = f"{self.base_url}/food/{fdc_id}"
        params: dict[str, str] = {"format": food_format}
        if nutrients:
            params["nutrients"] = ",".join(str(n) for n in nutrients)
        response = await self.http_client.get(
            url, headers=self._headers(), params=params, timeout=self.timeout
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()

    async def get_foods(
        self,
        fdc_ids: list[int],
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> list[dict[str, object]]:
        """Fetch up to 20 foods in a single request."""
        url = f"{self.base_url}/foods"
        payload: dict[str, object] = {"fdcIds": fdc_ids, "format": food_format}
        if nutrients:
            payload["nutrients"] = nutrients
        response = await self.http_client.post(
            url, headers=self._headers(), json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"X-Api-Key": self.api_key}
