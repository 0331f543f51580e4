"""Canadian Nutrient File provider backed by the local flat-file store."""

from dataclasses import dataclass
from typing import ClassVar

from nutrition_search.adapters.cnf_store import CnfDataStore
from nutrition_search.domain.errors import InvalidInputError
from nutrition_search.domain.foods import FoodDetails, FoodPage, FoodRecord, FoodSource
from nutrition_search.services.nutrient_mapper import (
    label_from_entries,
    map_cnf_nutrients,
)
from nutrition_search.services.providers import (
    clamp_page_number,
    clamp_page_size,
    total_pages,
)

DATA_TYPE = "CNF"
MAX_PAGE_SIZE = 200


@dataclass
class CnfProvider:
    """Pass-through from the CNF store to canonical records.

    Results come back in index order; there is no relevance ranking for this
    source.
    """

    source: ClassVar[FoodSource] = FoodSource.CNF

    store: CnfDataStore

    def is_configured(self) -> bool:
        """The local dataset needs no credentials."""
        return True

    async def search(
        self, query: str, page_size: int = 25, page_number: int = 1
    ) -> FoodPage:
        """Search CNF food descriptions."""
        size = clamp_page_size(page_size, default=25, maximum=MAX_PAGE_SIZE)
        page = clamp_page_number(page_number)
        result = await self.store.search_foods(query, size, page)
        items = [
            FoodRecord(
                id=str(match.food_id),
                description=match.description,
                source=FoodSource.CNF,
                data_type=DATA_TYPE,
            )
            for match in result.matches
        ]
        return FoodPage(
            items=items,
            total_hits=result.total_hits,
            current_page=page,
            total_pages=total_pages(result.total_hits, size),
        )

    async def get_details(self, food_id: str) -> FoodDetails | None:
        """Return a CNF food with all of its recorded nutrients."""
        text = str(food_id).strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidInputError("id must be a number")
        food = await self.store.get_food_details(int(text))
        if food is None:
            return None
        entries = map_cnf_nutrients(food.nutrients)
        return FoodDetails(
            record=FoodRecord(
                id=str(food.food_id),
                description=food.description,
                source=FoodSource.CNF,
                data_type=DATA_TYPE,
            ),
            food_nutrients=entries,
            label_nutrients=label_from_entries(entries),
            food_group=food.food_group_id,
        )
