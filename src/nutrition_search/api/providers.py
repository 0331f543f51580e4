"""Single-provider endpoints for USDA, CNF and Open Food Facts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from nutrition_search.api.payloads import (
    format_details,
    format_off_product,
    format_page,
)
from nutrition_search.config import parse_data_types
from nutrition_search.domain.errors import (
    FoodNotFoundError,
    InvalidInputError,
    ProviderNotConfiguredError,
)
from nutrition_search.services.fdc import DEFAULT_DATA_TYPES

if TYPE_CHECKING:
    from nutrition_search.containers import AppContainer
    from nutrition_search.services.fdc import FdcProvider

usda_router = APIRouter(prefix="/usda", tags=["usda"])
cnf_router = APIRouter(prefix="/cnf", tags=["cnf"])
off_router = APIRouter(prefix="/off", tags=["off"])


class UsdaSearchRequest(BaseModel):
    """Body of a USDA search request."""

    query: str | None = None
    page_size: int = Field(default=25, alias="pageSize")
    page_number: int = Field(default=1, alias="pageNumber")
    data_type: list[str] | str = Field(
        default_factory=lambda: list(DEFAULT_DATA_TYPES), alias="dataType"
    )


class UsdaFoodsRequest(BaseModel):
    """Body of a USDA batch food request."""

    fdc_ids: list[int | str] = Field(default_factory=list, alias="fdcIds")
    format: str = "abridged"
    nutrients: list[int] | None = None


def _fdc(request: Request) -> FdcProvider:
    container: AppContainer = request.app.state.container
    provider = container.fdc_provider
    if not provider.is_configured():
        raise ProviderNotConfiguredError(provider.source)
    return provider


def _require_text(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(message)
    return text


def _parse_nutrient_ids(raw: str | None) -> list[int] | None:
    if not raw:
        return None
    ids: list[int] = []
    for part in raw.split(","):
        text = part.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidInputError("nutrients must be a comma-separated id list")
        ids.append(int(text))
    return ids


@usda_router.get("/search")
async def usda_search(
    request: Request,
    query: str | None = None,
    page_size: int = Query(default=25, alias="pageSize"),
    page_number: int = Query(default=1, alias="pageNumber"),
    data_type: str | None = Query(default=None, alias="dataType"),
) -> dict[str, object]:
    """Search USDA FoodData Central."""
    provider = _fdc(request)
    text = _require_text(query, "Query parameter is required")
    page = await provider.search(
        text,
        page_size=page_size,
        page_number=page_number,
        data_types=parse_data_types(data_type) if data_type else None,
    )
    return format_page(page)


@usda_router.post("/search")
async def usda_search_body(
    body: UsdaSearchRequest, request: Request
) -> dict[str, object]:
    """Search USDA FoodData Central with a JSON body."""
    provider = _fdc(request)
    text = _require_text(body.query, "Query is required")
    data_types = (
        body.data_type if isinstance(body.data_type, list) else [body.data_type]
    )
    page = await provider.search(
        text,
        page_size=body.page_size,
        page_number=body.page_number,
        data_types=data_types,
    )
    return format_page(page)


@usda_router.get("/food")
async def usda_food(
    request: Request,
    fdc_id: str | None = Query(default=None, alias="fdcId"),
    food_format: str = Query(default="abridged", alias="format"),
    nutrients: str | None = None,
) -> dict[str, object]:
    """Return details for one USDA food."""
    provider = _fdc(request)
    text = _require_text(fdc_id, "fdcId parameter is required")
    details = await provider.get_details(
        text, food_format=food_format, nutrients=_parse_nutrient_ids(nutrients)
    )
    if details is None:
        raise FoodNotFoundError("Food not found")
    return format_details(details)


@usda_router.post("/food")
async def usda_foods(
    body: UsdaFoodsRequest, request: Request
) -> list[dict[str, object]]:
    """Return details for up to 20 USDA foods."""
    provider = _fdc(request)
    foods = await provider.get_details_batch(
        list(body.fdc_ids), food_format=body.format, nutrients=body.nutrients
    )
    return [format_details(details) for details in foods]


@cnf_router.get("/search")
async def cnf_search(
    request: Request,
    query: str | None = None,
    page_size: int = Query(default=25, alias="pageSize"),
    page_number: int = Query(default=1, alias="pageNumber"),
) -> dict[str, object]:
    """Search the Canadian Nutrient File."""
    container: AppContainer = request.app.state.container
    text = _require_text(query, "Query parameter is required")
    page = await container.cnf_provider.search(
        text, page_size=page_size, page_number=page_number
    )
    return format_page(page)


@cnf_router.get("/food")
async def cnf_food(
    request: Request, food_id: str | None = Query(default=None, alias="id")
) -> dict[str, object]:
    """Return one CNF food with all recorded nutrients."""
    container: AppContainer = request.app.state.container
    text = _require_text(food_id, "id parameter is required")
    details = await container.cnf_provider.get_details(text)
    if details is None:
        raise FoodNotFoundError("Food not found")
    return format_details(details)


@off_router.get("/search")
async def off_search(
    request: Request,
    q: str | None = None,
    page_size: int = Query(default=10, alias="pageSize"),
    page_number: int = Query(default=1, alias="pageNumber"),
) -> dict[str, object]:
    """Search Open Food Facts products."""
    container: AppContainer = request.app.state.container
    text = _require_text(q, "q is required")
    page = await container.off_provider.search(
        text, page_size=page_size, page_number=page_number
    )
    return format_page(page, items_key="results")


@off_router.get("/product")
async def off_product(
    request: Request, barcode: str | None = None
) -> dict[str, object]:
    """Return one Open Food Facts product by barcode."""
    container: AppContainer = request.app.state.container
    text = _require_text(barcode, "barcode is required")
    details = await container.off_provider.fetch_by_barcode(text)
    if details is None:
        raise FoodNotFoundError
    return format_off_product(details)
