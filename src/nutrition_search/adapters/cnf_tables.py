"""Parsing and indexing of the Canadian Nutrient File CSV export.

The CNF export ships as a set of related tables. Three of them are needed to
answer searches and nutrient lookups:

* ``FOOD NAME.csv`` - one row per food (``FoodID``, ``FoodGroupID``,
  ``FoodDescription``).
* ``NUTRIENT NAME.csv`` - nutrient definitions (``NutrientID``,
  ``NutrientName``, ``NutrientUnit``).
* ``NUTRIENT AMOUNT.csv`` - per-100g amounts joining the two
  (``FoodID``, ``NutrientID``, ``NutrientValue``).

Rows whose identifiers or values do not parse are skipped. Anything that
prevents a table from being read at all raises ``DataLoadError`` so the index
is never half built.
"""

import csv
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from nutrition_search.domain.errors import DataLoadError

FOOD_NAME_FILE = "FOOD NAME.csv"
NUTRIENT_NAME_FILE = "NUTRIENT NAME.csv"
NUTRIENT_AMOUNT_FILE = "NUTRIENT AMOUNT.csv"

_FOOD_COLUMNS = ("FoodID", "FoodGroupID", "FoodDescription")
_NUTRIENT_COLUMNS = ("NutrientID", "NutrientName", "NutrientUnit")
_AMOUNT_COLUMNS = ("FoodID", "NutrientID", "NutrientValue")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CnfNutrientMeta:
    """Nutrient definition row."""

    nutrient_id: int
    name: str
    unit: str
    code: str | None = None
    symbol: str | None = None


@dataclass
class CnfIndex:
    """In-memory join of the three CNF tables."""

    food_names: dict[int, str] = field(default_factory=dict)
    food_groups: dict[int, str] = field(default_factory=dict)
    nutrients: dict[int, CnfNutrientMeta] = field(default_factory=dict)
    amounts: dict[int, dict[int, float]] = field(default_factory=dict)

    def matching_food_ids(self, query: str) -> list[int]:
        """Return ids whose description contains the query, in index order."""
        normalized = query.strip().lower()
        if not normalized:
            return []
        return [
            food_id
            for food_id, name in self.food_names.items()
            if normalized in name.lower()
        ]


def read_table(
    path: Path, required: tuple[str, ...], encoding: str
) -> Iterator[dict[str, str]]:
    """Yield rows of a CSV table as dicts, validating the header first."""
    try:
        with path.open("r", encoding=encoding, newline="") as handle:
            reader = csv.DictReader(handle)
            header = [_clean_header(name) for name in reader.fieldnames or []]
            reader.fieldnames = header
            missing = [column for column in required if column not in header]
            if missing:
                raise DataLoadError(
                    f"{path.name} is missing columns: {', '.join(missing)}"
                )
            yield from reader
    except OSError as exc:
        raise DataLoadError(f"Unable to read {path.name}") from exc
    except (csv.Error, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Malformed CSV in {path.name}") from exc


def load_cnf_index(data_dir: Path, encoding: str = "latin-1") -> CnfIndex:
    """Parse the CNF tables under ``data_dir`` into a fresh index."""
    index = CnfIndex()

    for row in read_table(data_dir / FOOD_NAME_FILE, _FOOD_COLUMNS, encoding):
        food_id = _parse_int(row.get("FoodID"))
        if food_id is None:
            continue
        index.food_names[food_id] = row.get("FoodDescription") or ""
        index.food_groups[food_id] = (row.get("FoodGroupID") or "").strip()

    for row in read_table(
        data_dir / NUTRIENT_NAME_FILE, _NUTRIENT_COLUMNS, encoding
    ):
        nutrient_id = _parse_int(row.get("NutrientID"))
        if nutrient_id is None:
            continue
        index.nutrients[nutrient_id] = CnfNutrientMeta(
            nutrient_id=nutrient_id,
            name=row.get("NutrientName") or "",
            unit=row.get("NutrientUnit") or "",
            code=row.get("NutrientCode") or None,
            symbol=row.get("NutrientSymbol") or None,
        )

    for row in read_table(
        data_dir / NUTRIENT_AMOUNT_FILE, _AMOUNT_COLUMNS, encoding
    ):
        food_id = _parse_int(row.get("FoodID"))
        nutrient_id = _parse_int(row.get("NutrientID"))
        value = _parse_float(row.get("NutrientValue"))
        if food_id is None or nutrient_id is None or value is None:
            continue
        index.amounts.setdefault(food_id, {})[nutrient_id] = value

    _logger.info(
        "Loaded CNF index: foods=%s nutrients=%s foods_with_amounts=%s",
        len(index.food_names),
        len(index.nutrients),
        len(index.amounts),
    )
    return index


def _clean_header(name: str) -> str:
    # Byte order mark, decoded as UTF-8 or as Latin-1.
    return name.removeprefix("\ufeff").removeprefix("\xef\xbb\xbf").strip()


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None
