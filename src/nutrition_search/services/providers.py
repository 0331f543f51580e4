"""Shared contract and helpers for food data providers."""

import logging
import math
from collections.abc import Awaitable, Callable, Mapping
from typing import Protocol, TypeVar

import httpx

from nutrition_search.domain.errors import ProviderError
from nutrition_search.domain.foods import FoodDetails, FoodPage, FoodSource

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class FoodProvider(Protocol):
    """Search and detail contract implemented by every provider."""

    source: FoodSource

    def is_configured(self) -> bool:
        """Return True when the provider can be called."""

    async def search(
        self, query: str, page_size: int, page_number: int = 1
    ) -> FoodPage:
        """Return one page of canonical food records."""

    async def get_details(self, food_id: str) -> FoodDetails | None:
        """Return canonical food details, or None when the id is unknown."""


def clamp_page_size(page_size: int | None, default: int, maximum: int) -> int:
    """Clamp a requested page size into ``[1, maximum]``."""
    if page_size is None:
        return default
    return min(max(page_size, 1), maximum)


def clamp_page_number(page_number: int | None) -> int:
    """Clamp a requested page number to at least 1."""
    if page_number is None:
        return 1
    return max(page_number, 1)


def total_pages(total_hits: int, page_size: int) -> int:
    """Number of pages needed for ``total_hits`` results."""
    if page_size <= 0:
        return 0
    return math.ceil(total_hits / page_size)


async def call_provider(
    source: FoodSource, func: Callable[[], Awaitable[T]], *, action: str
) -> T:
    """Await a provider call, translating transport failures to ProviderError.

    Error messages are generic so no request detail (URLs, credentials)
    reaches a caller.
    """
    try:
        return await func()
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        _logger.warning("%s %s failed (status=%s)", source, action, status_code)
        raise ProviderError(
            source,
            f"Failed to fetch data from {source} database",
            upstream_status=status_code,
        ) from exc
    except httpx.HTTPError as exc:
        _logger.warning(
            "%s %s failed (status=n/a): %s", source, action, type(exc).__name__
        )
        raise ProviderError(
            source, f"Failed to reach {source} database"
        ) from exc
    except ValueError as exc:
        _logger.warning("%s %s returned malformed data", source, action)
        raise ProviderError(
            source, f"Malformed response from {source} database"
        ) from exc


def require_mapping(source: FoodSource, payload: object, *, action: str) -> Mapping:
    """Return ``payload`` when it is a JSON object, else raise ProviderError."""
    if isinstance(payload, Mapping):
        return payload
    _logger.warning(
        "%s %s returned %s instead of an object",
        source,
        action,
        type(payload).__name__,
    )
    raise ProviderError(source, f"Malformed response from {source} database")


def require_list(source: FoodSource, payload: object, *, action: str) -> list:
    """Return ``payload`` when it is a JSON array, else raise ProviderError."""
    if isinstance(payload, list):
        return payload
    _logger.warning(
        "%s %s returned %s instead of an array",
        source,
        action,
        type(payload).__name__,
    )
    raise ProviderError(source, f"Malformed response from {source} database")
