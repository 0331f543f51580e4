"""Shared test fixtures."""

import csv
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from nutrition_search.adapters.cnf_store import CnfDataStore
from nutrition_search.adapters.cnf_tables import (
    FOOD_NAME_FILE,
    NUTRIENT_AMOUNT_FILE,
    NUTRIENT_NAME_FILE,
)
from nutrition_search.adapters.fdc_client import FdcClient
from nutrition_search.adapters.off_client import OffClient
from nutrition_search.config import Settings
from nutrition_search.containers import AppContainer
from nutrition_search.services.cnf import CnfProvider
from nutrition_search.services.fdc import FdcProvider
from nutrition_search.services.off import OffProvider
from nutrition_search.services.search import CombinedSearchService

FOOD_ROWS = [
    ["FoodID", "FoodCode", "FoodGroupID", "FoodSourceID", "FoodDescription",
     "FoodDescriptionF"],
    ["2", "2", "1", "0", "Cheese, blue", "Fromage bleu"],
    ["4", "4", "1", "0", "Milk, fluid, 2% M.F.", "Lait, 2 % M.G."],
    ["5", "5", "1", "0", "Milk, chocolate, 1%", "Lait au chocolat"],
    ["7", "7", "1", "0", "Yogurt, plain", "Yogourt nature"],
    ["9", "9", "1", "0", "Milk, evaporated", "Crème évaporée"],
    ["x", "10", "1", "0", "Broken row", "Rangée brisée"],
]

NUTRIENT_ROWS = [
    ["NutrientID", "NutrientCode", "NutrientSymbol", "NutrientUnit",
     "NutrientName", "NutrientNameF", "Tagname", "NutrientDecimals"],
    ["203", "203", "PROT", "g", "PROTEIN", "PROTÉINES", "PROCNT", "2"],
    ["204", "204", "FAT", "g", "FAT (TOTAL LIPIDS)", "LIPIDES", "FAT", "2"],
    ["205", "205", "CARB", "g", "CARBOHYDRATE, TOTAL (BY DIFFERENCE)",
     "GLUCIDES", "CHOCDF", "2"],
    ["208", "208", "KCAL", "kCal", "ENERGY (KILOCALORIES)", "ÉNERGIE", "ENERC_KCAL",
     "0"],
    ["268", "268", "KJ", "kJ", "ENERGY (KILOJOULES)", "ÉNERGIE", "ENERC_KJ", "0"],
    ["291", "291", "TDF", "g", "FIBRE, TOTAL DIETARY", "FIBRES", "FIBTG", "1"],
]

AMOUNT_ROWS = [
    ["FoodID", "NutrientID", "NutrientValue", "StandardError",
     "NumberofObservations", "NutrientSourceID", "NutrientDateOfEntry"],
    ["4", "203", "3.3", "", "", "1", "1997-01-01"],
    ["4", "204", "2.0", "", "", "1", "1997-01-01"],
    ["4", "205", "4.9", "", "", "1", "1997-01-01"],
    ["4", "268", "209", "", "", "1", "1997-01-01"],
    ["4", "208", "50", "", "", "1", "1997-01-01"],
    ["4", "999", "1.0", "", "", "1", "1997-01-01"],
    ["5", "208", "n/a", "", "", "1", "1997-01-01"],
    ["2", "204", "28.7", "", "", "1", "1997-01-01"],
]


def write_cnf_dataset(directory: Path, encoding: str = "latin-1") -> Path:
    """Write a small CNF export (quoted commas, CRLF line endings)."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, rows in (
        (FOOD_NAME_FILE, FOOD_ROWS),
        (NUTRIENT_NAME_FILE, NUTRIENT_ROWS),
        (NUTRIENT_AMOUNT_FILE, AMOUNT_ROWS),
    ):
        with (directory / name).open("w", encoding=encoding, newline="") as handle:
            csv.writer(handle).writerows(rows)
    return directory


def off_product_payload(
    code: str = "7622210410337", name: str = "Milk chocolate bar"
) -> dict[str, object]:
    return {
        "status": 1,
        "code": code,
        "product": {
            "code": code,
            "product_name": name,
            "brands": "Milka",
            "serving_quantity": 25,
            "nutriments": {
                "energy-kcal_100g": 250,
                "proteins_100g": 10,
                "carbohydrates_100g": 30,
                "fat_100g": 8,
                "sugars_100g": 12,
                "fiber_100g": 5,
                "saturated-fat_100g": 2,
                "trans-fat_100g": 0.2,
            },
        },
    }


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client returning canned payloads."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 1097512,
                    "description": "Milk, whole",
                    "dataType": "SR Legacy",
                },
                {
                    "fdcId": 2345678,
                    "description": "Organic whole milk",
                    "dataType": "Branded",
                    "brandOwner": "Dairy Farms",
                    "gtinUpc": "012345678905",
                },
            ],
            "totalHits": 2,
            "currentPage": 1,
            "totalPages": 1,
        }
    )
    foods: dict[int, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    searches: list[dict[str, object]] = field(default_factory=list)

    async def search_foods(
        self,
        query: str,
        page_size: int = 25,
        page_number: int = 1,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        self.searches.append(
            {
                "query": query,
                "page_size": page_size,
                "page_number": page_number,
                "data_types": data_types,
            }
        )
        if self.error is not None:
            raise self.error
        return self.search_payload

    async def get_food(
        self,
        fdc_id: int,
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> dict[str, object] | None:
        if self.error is not None:
            raise self.error
        return self.foods.get(fdc_id)

    async def get_foods(
        self,
        fdc_ids: list[int],
        food_format: str = "abridged",
        nutrients: list[int] | None = None,
    ) -> list[dict[str, object]]:
        if self.error is not None:
            raise self.error
        return [self.foods[fdc_id] for fdc_id in fdc_ids if fdc_id in self.foods]


@dataclass
class FakeOffClient(OffClient):
    """Fake Open Food Facts client returning canned payloads."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "count": 1,
            "page": 1,
            "page_count": 1,
            "products": [
                {
                    "code": "3017620422003",
                    "product_name": "Chocolate milk drink",
                    "brands": "Choco",
                },
                {"code": "", "product_name": "No code"},
            ],
        }
    )
    products: dict[str, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    lookups: list[str] = field(default_factory=list)

    async def search_products(
        self, query: str, page_size: int = 10, page: int = 1
    ) -> dict[str, object]:
        if self.error is not None:
            raise self.error
        return self.search_payload

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        self.lookups.append(barcode)
        if self.error is not None:
            raise self.error
        return self.products.get(barcode)


def upstream_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://upstream.test/resource")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(
        f"status {status_code}", request=request, response=response
    )


@pytest.fixture
def cnf_dir(tmp_path: Path) -> Path:
    return write_cnf_dataset(tmp_path / "cnf")


@pytest.fixture
def settings(cnf_dir: Path) -> Settings:
    return Settings(
        fdc_api_key="fdc-key",
        cnf_data_dir=str(cnf_dir),
        provider_timeout_seconds=1.0,
    )


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def off_client() -> FakeOffClient:
    return FakeOffClient()


@pytest.fixture
def cnf_store(cnf_dir: Path) -> CnfDataStore:
    return CnfDataStore(data_dir=cnf_dir)


@pytest.fixture
def container(
    settings: Settings,
    fdc_client: FakeFdcClient,
    off_client: FakeOffClient,
    cnf_store: CnfDataStore,
) -> AppContainer:
    fdc_provider = FdcProvider(client=fdc_client)
    cnf_provider = CnfProvider(store=cnf_store)
    off_provider = OffProvider(client=off_client)
    search_service = CombinedSearchService(
        usda=fdc_provider,
        cnf=cnf_provider,
        off=off_provider,
        timeout_seconds=settings.provider_timeout_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        fdc_provider=fdc_provider,
        cnf_provider=cnf_provider,
        off_provider=off_provider,
        search_service=search_service,
        close_resources=close_resources,
    )
