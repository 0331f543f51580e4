"""Canonical food and nutrient models shared by all providers."""

import re
from dataclasses import dataclass, field
from enum import StrEnum

BARCODE_PATTERN = re.compile(r"^\d{8,14}$")

LABEL_SLOTS = (
    "calories",
    "protein",
    "carbohydrates",
    "fat",
    "fiber",
    "saturated_fat",
    "trans_fat",
    "sugars",
)


class FoodSource(StrEnum):
    """Food data provider identifiers."""

    USDA = "USDA"
    CNF = "CNF"
    OFF = "OFF"


class NutrientBasis(StrEnum):
    """Quantity that a nutrient amount refers to."""

    PER_100G = "per_100g"
    PER_SERVING = "per_serving"


def is_barcode(value: str) -> bool:
    """Return True when the value looks like an EAN/UPC barcode."""
    return bool(BARCODE_PATTERN.fullmatch(value))


@dataclass(frozen=True)
class FoodRecord:
    """Food identity as returned by a provider search."""

    id: str
    description: str
    source: FoodSource
    brand: str | None = None
    barcode: str | None = None
    data_type: str | None = None


@dataclass(frozen=True)
class NutrientEntry:
    """Single canonical nutrient amount."""

    id: int
    name: str
    unit_name: str
    amount: float


@dataclass(frozen=True)
class LabelNutrients:
    """Fixed subset of nutrients used for quick display."""

    calories: float | None = None
    protein: float | None = None
    carbohydrates: float | None = None
    fat: float | None = None
    fiber: float | None = None
    saturated_fat: float | None = None
    trans_fat: float | None = None
    sugars: float | None = None

    def is_empty(self) -> bool:
        """Return True when no slot carries a value."""
        return all(getattr(self, slot) is None for slot in LABEL_SLOTS)


@dataclass(frozen=True)
class FoodDetails:
    """Food record with its nutrient list and optional label view."""

    record: FoodRecord
    food_nutrients: list[NutrientEntry] = field(default_factory=list)
    label_nutrients: LabelNutrients | None = None
    nutrient_basis: NutrientBasis = NutrientBasis.PER_100G
    label_basis: NutrientBasis = NutrientBasis.PER_100G
    serving_size: float | None = None
    serving_size_unit: str | None = None
    food_group: str | None = None


@dataclass(frozen=True)
class FoodPage:
    """One page of provider search results."""

    items: list[FoodRecord]
    total_hits: int
    current_page: int
    total_pages: int

    @classmethod
    def empty(cls, page_number: int = 1) -> "FoodPage":
        """Return a page with no results."""
        return cls(items=[], total_hits=0, current_page=page_number, total_pages=0)


@dataclass(frozen=True)
class SearchResultItem:
    """Merged search hit returned by combined search."""

    id: str
    name: str
    source: FoodSource
    brand: str | None = None
    barcode: str | None = None

    @classmethod
    def from_record(cls, record: FoodRecord) -> "SearchResultItem":
        """Build a result item from a provider food record."""
        return cls(
            id=record.id,
            name=record.description,
            source=record.source,
            brand=record.brand,
            barcode=record.barcode,
        )


@dataclass(frozen=True)
class CombinedSearchResult:
    """Ranked combined results with per-source hit counts."""

    results: list[SearchResultItem]
    sources: dict[FoodSource, int]


@dataclass(frozen=True)
class ServingNutrition:
    """Headline nutrition for a serving, in the UI's four-field shape."""

    calories: int
    carbs: float
    protein: float
    fat: float


@dataclass(frozen=True)
class ServingBreakdown:
    """Nutrient subclasses for a serving."""

    fiber: float
    fats_saturated: float
    fats_trans: float
    fats_unsaturated: float
    carbs_simple: float
    carbs_complex: float
    protein_complete: float
    protein_incomplete: float
