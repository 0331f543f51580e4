"""Combined search across USDA, CNF and Open Food Facts."""

import asyncio
import logging
import math
from dataclasses import dataclass

from nutrition_search.domain.errors import InvalidInputError
from nutrition_search.domain.foods import (
    CombinedSearchResult,
    FoodDetails,
    FoodPage,
    FoodSource,
    SearchResultItem,
    is_barcode,
)
from nutrition_search.services.off import OffProvider
from nutrition_search.services.providers import (
    FoodProvider,
    clamp_page_number,
    clamp_page_size,
)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

_logger = logging.getLogger(__name__)


def split_page_size(page_size: int) -> tuple[int, int, int]:
    """Split a page size across USDA, CNF and OFF.

    USDA gets ``ceil(n/3)``, CNF ``ceil(rest/2)`` and OFF the remainder with
    a floor of one. A zero share falls back to the USDA share.
    """
    usda = math.ceil(page_size / 3)
    cnf = math.ceil((page_size - usda) / 2)
    off = max(page_size - usda - cnf, 1)
    return usda, cnf or usda, off


def score_item(item: SearchResultItem, query: str) -> int:
    """Rank key: 0 barcode exact, 1 branded name match, 2 name match, 3 other."""
    if item.barcode and is_barcode(query) and item.barcode == query:
        return 0
    contains = query.lower() in item.name.lower()
    if item.brand and contains:
        return 1
    if contains:
        return 2
    return 3


def rank_items(items: list[SearchResultItem], query: str) -> list[SearchResultItem]:
    """Stable ascending sort by ``score_item``."""
    return sorted(items, key=lambda item: score_item(item, query))


@dataclass
class CombinedSearchService:
    """Fans a query out to every provider and merges the ranked results.

    Provider failures, timeouts and missing configuration each degrade to an
    empty page for that provider only.
    """

    usda: FoodProvider
    cnf: FoodProvider
    off: OffProvider
    timeout_seconds: float = 5.0

    async def search(
        self,
        query: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_number: int = 1,
    ) -> CombinedSearchResult:
        """Search all providers and return ranked results with hit counts."""
        normalized = (query or "").strip()
        if not normalized:
            raise InvalidInputError("query is required")
        size = clamp_page_size(
            page_size, default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE
        )
        page = clamp_page_number(page_number)
        usda_size, cnf_size, off_size = split_page_size(size)

        usda_page, cnf_page, off_page, exact = await asyncio.gather(
            self._search_source(self.usda, normalized, usda_size, page),
            self._search_source(self.cnf, normalized, cnf_size, page),
            self._search_source(self.off, normalized, off_size, page),
            self._exact_barcode(normalized),
        )

        merged: list[SearchResultItem] = []
        if exact is not None:
            merged.append(SearchResultItem.from_record(exact.record))
        for result_page in (usda_page, cnf_page, off_page):
            merged.extend(
                SearchResultItem.from_record(item) for item in result_page.items
            )

        return CombinedSearchResult(
            results=rank_items(_unique(merged), normalized),
            sources={
                FoodSource.USDA: usda_page.total_hits,
                FoodSource.CNF: cnf_page.total_hits,
                FoodSource.OFF: off_page.total_hits,
            },
        )

    async def _search_source(
        self,
        provider: FoodProvider,
        query: str,
        page_size: int,
        page_number: int,
    ) -> FoodPage:
        if not provider.is_configured():
            return FoodPage.empty(page_number)
        try:
            return await asyncio.wait_for(
                provider.search(query, page_size, page_number),
                timeout=self.timeout_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            _logger.warning(
                "Combined search: %s failed (%s)",
                provider.source,
                type(exc).__name__,
            )
            return FoodPage.empty(page_number)

    async def _exact_barcode(self, query: str) -> FoodDetails | None:
        if not is_barcode(query):
            return None
        try:
            return await asyncio.wait_for(
                self.off.fetch_by_barcode(query), timeout=self.timeout_seconds
            )
        except Exception as exc:  # noqa: BLE001
            _logger.debug("Barcode lookup skipped (%s)", type(exc).__name__)
            return None


def _unique(items: list[SearchResultItem]) -> list[SearchResultItem]:
    # The exact barcode product also comes back from OFF text search.
    seen: set[tuple[FoodSource, str]] = set()
    unique: list[SearchResultItem] = []
    for item in items:
        key = (item.source, item.id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique
