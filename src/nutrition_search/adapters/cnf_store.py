"""Lazily loaded, process-wide store over the CNF flat files."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from nutrition_search.adapters.cnf_tables import (
    CnfIndex,
    CnfNutrientMeta,
    load_cnf_index,
)
from nutrition_search.domain.errors import DataLoadError

IndexLoader = Callable[[Path, str], CnfIndex]


@dataclass(frozen=True)
class CnfFoodMatch:
    """Food row matched by a description search."""

    food_id: int
    description: str


@dataclass(frozen=True)
class CnfSearchPage:
    """Page slice of CNF matches plus the total match count."""

    matches: list[CnfFoodMatch]
    total_hits: int


@dataclass(frozen=True)
class CnfNutrientAmount:
    """Nutrient amount joined with its definition."""

    nutrient: CnfNutrientMeta
    amount: float


@dataclass(frozen=True)
class CnfFood:
    """Food description with every recorded nutrient amount."""

    food_id: int
    description: str
    food_group_id: str | None
    nutrients: list[CnfNutrientAmount]


@dataclass
class CnfDataStore:
    """Read-only CNF index built once on first use.

    Every reader awaits ``ensure_loaded``. The first call starts one load task
    that parses the files in a worker thread; every caller awaits that task
    through ``asyncio.shield``, so a caller that times out or is cancelled
    leaves the parse running for the others. A failed load is remembered and
    re-raised on later calls.
    """

    data_dir: Path
    encoding: str = "latin-1"
    loader: IndexLoader = load_cnf_index
    _index: CnfIndex | None = field(default=None, init=False, repr=False)
    _load_error: DataLoadError | None = field(default=None, init=False, repr=False)
    _load_task: asyncio.Task[CnfIndex] | None = field(
        default=None, init=False, repr=False
    )
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def is_loaded(self) -> bool:
        """Return True once the index has been built."""
        return self._index is not None

    async def ensure_loaded(self) -> CnfIndex:
        """Build the index on first call and return it."""
        if self._index is not None:
            return self._index
        if self._load_error is not None:
            raise self._load_error
        async with self._lock:
            if self._load_task is None:
                self._load_task = asyncio.create_task(self._load())
            task = self._load_task
        return await asyncio.shield(task)

    async def _load(self) -> CnfIndex:
        try:
            index = await asyncio.to_thread(self.loader, self.data_dir, self.encoding)
        except DataLoadError as exc:
            self._load_error = exc
            raise
        except Exception:
            # Unexpected failures are not sticky; the next caller retries.
            self._load_task = None
            raise
        self._index = index
        return index

    async def search_foods(
        self, query: str, page_size: int, page_number: int
    ) -> CnfSearchPage:
        """Return a page of foods whose description contains the query."""
        index = await self.ensure_loaded()
        matching = index.matching_food_ids(query)
        start = (page_number - 1) * page_size
        matches = [
            CnfFoodMatch(food_id=food_id, description=index.food_names[food_id])
            for food_id in matching[start : start + page_size]
        ]
        return CnfSearchPage(matches=matches, total_hits=len(matching))

    async def get_food_details(self, food_id: int) -> CnfFood | None:
        """Return a food with its nutrient amounts, or None when unknown."""
        index = await self.ensure_loaded()
        description = index.food_names.get(food_id)
        if description is None:
            return None
        nutrients = [
            CnfNutrientAmount(nutrient=index.nutrients[nutrient_id], amount=amount)
            for nutrient_id, amount in index.amounts.get(food_id, {}).items()
            if nutrient_id in index.nutrients
        ]
        return CnfFood(
            food_id=food_id,
            description=description,
            food_group_id=index.food_groups.get(food_id) or None,
            nutrients=nutrients,
        )
