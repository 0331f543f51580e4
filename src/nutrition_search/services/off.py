"""Open Food Facts barcode product provider."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import ClassVar

from nutrition_search.adapters.off_client import OffClient
from nutrition_search.domain.errors import InvalidInputError
from nutrition_search.domain.foods import (
    FoodDetails,
    FoodPage,
    FoodRecord,
    FoodSource,
    is_barcode,
)
from nutrition_search.services.nutrient_mapper import map_off_nutriments, to_number
from nutrition_search.services.providers import (
    call_provider,
    clamp_page_number,
    clamp_page_size,
    require_mapping,
    total_pages,
)

ID_PREFIX = "off:"
DATA_TYPE = "OFF"
MAX_PAGE_SIZE = 100


def off_food_id(code: str) -> str:
    """Return the canonical id for an OFF product code."""
    return f"{ID_PREFIX}{code}"


@dataclass
class OffProvider:
    """Provider backed by the OFF search and product endpoints."""

    source: ClassVar[FoodSource] = FoodSource.OFF

    client: OffClient

    def is_configured(self) -> bool:
        """OFF is a public API."""
        return True

    async def search(
        self, query: str, page_size: int = 10, page_number: int = 1
    ) -> FoodPage:
        """Search products by free text."""
        size = clamp_page_size(page_size, default=10, maximum=MAX_PAGE_SIZE)
        page = clamp_page_number(page_number)
        terms = query.strip()
        if not terms:
            return FoodPage.empty(page)
        payload = await call_provider(
            self.source,
            lambda: self.client.search_products(terms, page_size=size, page=page),
            action="search",
        )
        payload = require_mapping(self.source, payload, action="search")
        products = payload.get("products")
        items: list[FoodRecord] = []
        for product in products if isinstance(products, list) else []:
            if not isinstance(product, Mapping):
                continue
            code = str(product.get("code") or "").strip()
            name = str(product.get("product_name") or "").strip()
            if not code or not name:
                continue
            items.append(_food_record(code, name, product.get("brands")))
        hits = int(to_number(payload.get("count")) or 0)
        # OFF's page_count is the number of products on the page, not a page total.
        return FoodPage(
            items=items,
            total_hits=hits,
            current_page=int(to_number(payload.get("page")) or page),
            total_pages=total_pages(hits, size),
        )

    async def get_details(self, food_id: str) -> FoodDetails | None:
        """Fetch a product by canonical id (``off:<code>``) or bare code."""
        return await self.fetch_by_barcode(str(food_id).removeprefix(ID_PREFIX))

    async def fetch_by_barcode(self, barcode: str) -> FoodDetails | None:
        """Fetch a product by barcode; unknown products return None."""
        code = barcode.strip()
        if not is_barcode(code):
            raise InvalidInputError("invalid barcode")
        payload = await call_provider(
            self.source,
            lambda: self.client.get_product(code),
            action=f"get_product:{code}",
        )
        if payload is None:
            return None
        payload = require_mapping(self.source, payload, action=f"get_product:{code}")
        if payload.get("status") == 0:
            return None
        product = payload.get("product")
        if not isinstance(product, Mapping):
            return None
        entries, label = map_off_nutriments(_as_mapping(product.get("nutriments")))
        serving_size = to_number(product.get("serving_quantity"))
        serving_unit = product.get("serving_quantity_unit") or "g"
        return FoodDetails(
            record=_food_record(
                code,
                str(product.get("product_name") or "Unknown product"),
                product.get("brands"),
            ),
            food_nutrients=entries,
            label_nutrients=label,
            serving_size=serving_size,
            serving_size_unit=str(serving_unit) if serving_size is not None else None,
        )


def _food_record(code: str, name: str, brands: object) -> FoodRecord:
    return FoodRecord(
        id=off_food_id(code),
        description=name,
        source=FoodSource.OFF,
        brand=str(brands) if brands else None,
        barcode=code,
        data_type=DATA_TYPE,
    )


def _as_mapping(value: object) -> Mapping[str, object] | None:
    return value if isinstance(value, Mapping) else None
