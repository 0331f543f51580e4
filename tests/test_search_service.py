"""Tests for combined search orchestration and ranking."""

import asyncio
import time
from pathlib import Path

import pytest

from nutrition_search.adapters.cnf_store import CnfDataStore
from nutrition_search.adapters.cnf_tables import CnfIndex, load_cnf_index
from nutrition_search.domain.errors import InvalidInputError
from nutrition_search.domain.foods import FoodPage, FoodSource, SearchResultItem
from nutrition_search.services.cnf import CnfProvider
from nutrition_search.services.fdc import FdcProvider
from nutrition_search.services.off import OffProvider
from nutrition_search.services.search import (
    CombinedSearchService,
    rank_items,
    score_item,
    split_page_size,
)
from tests.conftest import (
    FakeFdcClient,
    FakeOffClient,
    off_product_payload,
    upstream_error,
)


def _service(
    fdc_client: FakeFdcClient | None,
    off_client: FakeOffClient,
    cnf_store: CnfDataStore,
    timeout_seconds: float = 1.0,
) -> CombinedSearchService:
    return CombinedSearchService(
        usda=FdcProvider(client=fdc_client),
        cnf=CnfProvider(store=cnf_store),
        off=OffProvider(client=off_client),
        timeout_seconds=timeout_seconds,
    )


@pytest.mark.parametrize(
    ("page_size", "expected"),
    [
        (10, (4, 3, 3)),
        (1, (1, 1, 1)),
        (2, (1, 1, 1)),
        (3, (1, 1, 1)),
        (50, (17, 17, 16)),
    ],
)
def test_split_page_size(page_size: int, expected: tuple[int, int, int]) -> None:
    assert split_page_size(page_size) == expected


def test_ranking_prefers_branded_then_unbranded_matches() -> None:
    items = [
        SearchResultItem(id="1", name="Cheddar", source=FoodSource.CNF),
        SearchResultItem(id="2", name="Milk, 2%", source=FoodSource.CNF),
        SearchResultItem(
            id="3", name="Oat Milk", source=FoodSource.USDA, brand="Oatly"
        ),
        SearchResultItem(id="4", name="Skim milk", source=FoodSource.USDA),
    ]

    ranked = rank_items(items, "milk")

    assert [item.id for item in ranked] == ["3", "2", "4", "1"]


def test_barcode_exact_match_ranks_first() -> None:
    query = "7622210410337"
    barcode_item = SearchResultItem(
        id="off:7622210410337",
        name="Chocolate",
        source=FoodSource.OFF,
        barcode=query,
    )
    branded = SearchResultItem(
        id="9", name="Bar 7622210410337", source=FoodSource.USDA, brand="Acme"
    )

    assert score_item(barcode_item, query) == 0
    assert score_item(branded, query) == 1
    assert rank_items([branded, barcode_item], query)[0] is barcode_item


def test_barcode_field_ignored_for_text_queries() -> None:
    item = SearchResultItem(
        id="1", name="Milk", source=FoodSource.OFF, barcode="milk"
    )

    assert score_item(item, "milk") == 2


def test_search_merges_all_sources(
    fdc_client: FakeFdcClient, off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    service = _service(fdc_client, off_client, cnf_store)

    result = asyncio.run(service.search("milk", page_size=10))

    sources = {item.source for item in result.results}
    assert sources == {FoodSource.USDA, FoodSource.CNF, FoodSource.OFF}
    assert result.sources == {
        FoodSource.USDA: 2,
        FoodSource.CNF: 3,
        FoodSource.OFF: 1,
    }
    assert result.results[0].brand is not None
    assert off_client.lookups == []


def test_search_rejects_blank_query(
    fdc_client: FakeFdcClient, off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    service = _service(fdc_client, off_client, cnf_store)

    with pytest.raises(InvalidInputError):
        asyncio.run(service.search("   "))
    assert fdc_client.searches == []


def test_failing_provider_degrades_to_empty(
    fdc_client: FakeFdcClient, off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    fdc_client.error = upstream_error(500)
    service = _service(fdc_client, off_client, cnf_store)

    result = asyncio.run(service.search("milk"))

    assert result.sources[FoodSource.USDA] == 0
    assert result.sources[FoodSource.CNF] == 3
    assert {item.source for item in result.results} == {
        FoodSource.CNF,
        FoodSource.OFF,
    }


def test_unconfigured_provider_is_not_called(
    off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    service = _service(None, off_client, cnf_store)

    result = asyncio.run(service.search("milk"))

    assert result.sources[FoodSource.USDA] == 0
    assert result.results


def test_slow_provider_times_out(
    off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    class SlowProvider:
        source = FoodSource.USDA

        def is_configured(self) -> bool:
            return True

        async def search(
            self, query: str, page_size: int, page_number: int = 1
        ) -> FoodPage:
            await asyncio.sleep(5)
            return FoodPage.empty(page_number)

        async def get_details(self, food_id: str) -> None:
            return None

    service = CombinedSearchService(
        usda=SlowProvider(),
        cnf=CnfProvider(store=cnf_store),
        off=OffProvider(client=off_client),
        timeout_seconds=0.05,
    )

    result = asyncio.run(service.search("milk"))

    assert result.sources[FoodSource.USDA] == 0
    assert result.sources[FoodSource.CNF] == 3


def test_barcode_query_prepends_exact_product(
    fdc_client: FakeFdcClient, off_client: FakeOffClient, cnf_store: CnfDataStore
) -> None:
    barcode = "7622210410337"
    off_client.products[barcode] = off_product_payload(barcode)
    off_client.search_payload = {
        "count": 1,
        "products": [{"code": barcode, "product_name": "Milk chocolate bar"}],
    }
    fdc_client.search_payload = {
        "foods": [
            {"fdcId": 1, "description": "Chocolate", "gtinUpc": barcode},
            {"fdcId": 2, "description": "Unrelated"},
        ],
        "totalHits": 2,
    }
    service = _service(fdc_client, off_client, cnf_store)

    result = asyncio.run(service.search(barcode))

    assert off_client.lookups == [barcode]
    assert result.results[0].id == f"off:{barcode}"
    assert result.results[0].brand == "Milka"
    assert result.results[1].id == "1"
    assert [item.id for item in result.results].count(f"off:{barcode}") == 1


def test_barcode_lookup_failure_is_ignored(
    fdc_client: FakeFdcClient, cnf_store: CnfDataStore
) -> None:
    off_client = FakeOffClient(error=upstream_error(503))
    service = _service(fdc_client, off_client, cnf_store)

    result = asyncio.run(service.search("12345678"))

    assert result.sources[FoodSource.OFF] == 0
    assert result.sources[FoodSource.USDA] == 2


def test_slow_cnf_load_survives_search_timeouts(
    fdc_client: FakeFdcClient, off_client: FakeOffClient, cnf_dir: Path
) -> None:
    calls: list[int] = []

    def slow_loader(data_dir: Path, encoding: str) -> CnfIndex:
        calls.append(1)
        time.sleep(0.3)
        return load_cnf_index(data_dir, encoding)

    store = CnfDataStore(data_dir=cnf_dir, loader=slow_loader)
    service = _service(fdc_client, off_client, store, timeout_seconds=0.1)

    async def run() -> list[int]:
        hits: list[int] = []
        for _ in range(3):
            result = await service.search("milk")
            hits.append(result.sources[FoodSource.CNF])
        await store.ensure_loaded()
        result = await service.search("milk")
        hits.append(result.sources[FoodSource.CNF])
        return hits

    hits = asyncio.run(run())

    assert len(calls) == 1
    assert store.is_loaded
    assert hits[-1] == 3
