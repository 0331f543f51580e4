"""USDA FoodData Central provider."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import ClassVar

from nutrition_search.adapters.fdc_client import FdcClient
from nutrition_search.domain.errors import (
    InvalidInputError,
    ProviderNotConfiguredError,
)
from nutrition_search.domain.foods import (
    FoodDetails,
    FoodPage,
    FoodRecord,
    FoodSource,
    NutrientBasis,
)
from nutrition_search.services.nutrient_mapper import (
    label_from_entries,
    label_from_fdc,
    map_keyed_nutrients,
    to_number,
)
from nutrition_search.services.providers import (
    call_provider,
    clamp_page_number,
    clamp_page_size,
    require_list,
    require_mapping,
    total_pages,
)

DEFAULT_DATA_TYPES = ("Branded", "Foundation", "SR Legacy")
FOOD_FORMATS = frozenset({"abridged", "full"})
MAX_PAGE_SIZE = 200
MAX_BATCH_SIZE = 20


@dataclass
class FdcProvider:
    """Provider backed by the FDC search and food endpoints.

    ``client`` is None when no API key is configured; every call then raises
    ``ProviderNotConfiguredError`` instead of attempting a request.
    """

    source: ClassVar[FoodSource] = FoodSource.USDA

    client: FdcClient | None
    data_types: list[str] = field(default_factory=lambda: list(DEFAULT_DATA_TYPES))

    def is_configured(self) -> bool:
        """Return True when an API client is available."""
        return self.client is not None

    async def search(
        self,
        query: str,
        page_size: int = 25,
        page_number: int = 1,
        data_types: list[str] | None = None,
    ) -> FoodPage:
        """Search FDC foods."""
        client = self._require_client()
        size = clamp_page_size(page_size, default=25, maximum=MAX_PAGE_SIZE)
        page = clamp_page_number(page_number)
        payload = await call_provider(
            self.source,
            lambda: client.search_foods(
                query,
                page_size=size,
                page_number=page,
                data_types=data_types or self.data_types,
            ),
            action="search",
        )
        payload = require_mapping(self.source, payload, action="search")
        foods = payload.get("foods")
        if not isinstance(foods, list):
            foods = []
        items = [
            _food_record(food)
            for food in foods
            if isinstance(food, Mapping) and food.get("fdcId") is not None
        ]
        hits = int(to_number(payload.get("totalHits")) or 0)
        return FoodPage(
            items=items,
            total_hits=hits,
            current_page=int(to_number(payload.get("currentPage")) or page),
            total_pages=int(
                to_number(payload.get("totalPages")) or total_pages(hits, size)
            ),
        )

    async def get_details(
        self,
        food_id: str,
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> FoodDetails | None:
        """Fetch one food, returning None when FDC does not know the id."""
        client = self._require_client()
        fdc_id = parse_fdc_id(food_id)
        if fdc_id is None:
            raise InvalidInputError("fdcId must be a valid number")
        _validate_format(food_format)
        payload = await call_provider(
            self.source,
            lambda: client.get_food(
                fdc_id, food_format=food_format, nutrients=nutrients
            ),
            action=f"get_food:{fdc_id}",
        )
        if payload is None:
            return None
        payload = require_mapping(self.source, payload, action=f"get_food:{fdc_id}")
        return food_details_from_payload(payload)

    async def get_details_batch(
        self,
        food_ids: list[object],
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> list[FoodDetails]:
        """Fetch up to 20 foods in one upstream request."""
        client = self._require_client()
        if not food_ids:
            raise InvalidInputError(
                "fdcIds array is required and must not be empty"
            )
        fdc_ids: list[int] = []
        for food_id in food_ids:
            fdc_id = parse_fdc_id(food_id)
            if fdc_id is None:
                raise InvalidInputError(f"Invalid fdcId: {food_id}")
            fdc_ids.append(fdc_id)
        if len(fdc_ids) > MAX_BATCH_SIZE:
            raise InvalidInputError(
                f"Maximum {MAX_BATCH_SIZE} fdcIds allowed per request"
            )
        _validate_format(food_format)
        payload = await call_provider(
            self.source,
            lambda: client.get_foods(
                fdc_ids, food_format=food_format, nutrients=nutrients
            ),
            action="get_foods",
        )
        foods = require_list(self.source, payload, action="get_foods")
        return [
            food_details_from_payload(food)
            for food in foods
            if isinstance(food, Mapping)
        ]

    def _require_client(self) -> FdcClient:
        if self.client is None:
            raise ProviderNotConfiguredError(self.source)
        return self.client


def parse_fdc_id(raw: object) -> int | None:
    """Parse an FDC id, returning None unless it is a non-negative integer."""
    text = str(raw).strip()
    return int(text) if text.isascii() and text.isdigit() else None


def food_details_from_payload(payload: Mapping[str, object]) -> FoodDetails:
    """Map an FDC food payload (abridged or full) to canonical details."""
    entries = map_keyed_nutrients(payload.get("foodNutrients") or [])
    label = label_from_fdc(payload.get("labelNutrients"))
    label_basis = NutrientBasis.PER_SERVING
    if label is None:
        label = label_from_entries(entries)
        label_basis = NutrientBasis.PER_100G
    unit = payload.get("servingSizeUnit")
    return FoodDetails(
        record=_food_record(payload),
        food_nutrients=entries,
        label_nutrients=label,
        label_basis=label_basis,
        serving_size=to_number(payload.get("servingSize")),
        serving_size_unit=str(unit) if unit else None,
        food_group=_food_category(payload.get("foodCategory")),
    )


def _food_record(food: Mapping[str, object]) -> FoodRecord:
    brand = food.get("brandName") or food.get("brandOwner")
    barcode = food.get("gtinUpc")
    data_type = food.get("dataType")
    return FoodRecord(
        id=str(food.get("fdcId")),
        description=str(food.get("description") or ""),
        source=FoodSource.USDA,
        brand=str(brand) if brand else None,
        barcode=str(barcode) if barcode else None,
        data_type=str(data_type) if data_type else None,
    )


def _food_category(raw: object) -> str | None:
    # Search hits carry a plain string, full details a {"description": ...} dict.
    if isinstance(raw, Mapping):
        raw = raw.get("description")
    return str(raw) if raw else None


def _validate_format(food_format: str) -> None:
    if food_format not in FOOD_FORMATS:
        raise InvalidInputError("format must be 'abridged' or 'full'")
