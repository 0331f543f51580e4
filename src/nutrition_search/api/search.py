"""Combined search and serving nutrition endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request

from nutrition_search.api.payloads import format_combined, format_serving
from nutrition_search.domain.errors import FoodNotFoundError, InvalidInputError
from nutrition_search.domain.foods import FoodSource
from nutrition_search.services.search import DEFAULT_PAGE_SIZE
from nutrition_search.services.serving import (
    DEFAULT_SERVING_GRAMS,
    calculate_serving_breakdown,
    calculate_serving_nutrition,
)

if TYPE_CHECKING:
    from nutrition_search.containers import AppContainer
    from nutrition_search.services.providers import FoodProvider

router = APIRouter(tags=["search"])


@router.get("/search")
async def combined_search(
    request: Request,
    query: str | None = None,
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize"),
    page_number: int = Query(default=1, alias="pageNumber"),
) -> dict[str, object]:
    """Search every provider and return one ranked list."""
    container: AppContainer = request.app.state.container
    result = await container.search_service.search(
        query or "", page_size=page_size, page_number=page_number
    )
    return format_combined(result)


@router.get("/nutrition/serving")
async def serving_nutrition(
    request: Request,
    source: str | None = None,
    food_id: str | None = Query(default=None, alias="id"),
    serving_grams: float = Query(
        default=DEFAULT_SERVING_GRAMS, alias="servingGrams"
    ),
) -> dict[str, object]:
    """Scale a food's per-100g nutrients to a serving size in grams."""
    container: AppContainer = request.app.state.container
    if not food_id or not food_id.strip():
        raise InvalidInputError("id is required")
    provider = _provider_for(container, source)
    details = await provider.get_details(food_id.strip())
    if details is None:
        raise FoodNotFoundError
    return format_serving(
        calculate_serving_nutrition(details, serving_grams),
        calculate_serving_breakdown(details, serving_grams),
    )


def _provider_for(container: AppContainer, source: str | None) -> FoodProvider:
    providers: dict[str, FoodProvider] = {
        FoodSource.USDA: container.fdc_provider,
        FoodSource.CNF: container.cnf_provider,
        FoodSource.OFF: container.off_provider,
    }
    provider = providers.get((source or "").strip().upper())
    if provider is None:
        raise InvalidInputError("source must be one of usda, cnf, off")
    return provider
