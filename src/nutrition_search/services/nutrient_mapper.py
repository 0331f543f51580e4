"""Translation of provider nutrient shapes into canonical nutrients.

Each provider reports nutrients differently:

* USDA FDC returns lists keyed by nutrient name, in one of three shapes
  depending on the endpoint (full details, abridged details, search hits).
* The CNF store joins amounts with nutrient definitions.
* Open Food Facts returns a flat ``nutriments`` dict with fixed keys.

All functions here are pure. Name based lookups go through
``find_nutrient_amount``, a substring heuristic over per-slot aliases. The
``fat`` alias also matches ``Fatty acids, ...`` entries, so alias order and
entry order both matter.
"""

import math
from collections.abc import Iterable, Mapping, Sequence

from nutrition_search.adapters.cnf_store import CnfNutrientAmount
from nutrition_search.domain.foods import LABEL_SLOTS, LabelNutrients, NutrientEntry

NUTRIENT_ALIASES: dict[str, tuple[str, ...]] = {
    "calories": ("energy", "calories", "kcal"),
    "carbohydrates": ("carbohydrate", "carbs", "total carbohydrate"),
    "protein": ("protein",),
    "fat": ("total lipid", "total fat", "fat", "lipid"),
    "fiber": ("fiber", "dietary fiber", "fibre"),
    "saturated_fat": ("total saturated", "saturated, total", "saturated fat"),
    "trans_fat": ("total trans", "trans, total", "trans fat"),
    "sugars": ("sugars", "sugar"),
}

# Energy is also reported in kilojoules under the same name.
_EXCLUDED_UNITS: dict[str, frozenset[str]] = {
    "calories": frozenset({"kj"}),
}

_FDC_LABEL_KEYS: dict[str, str] = {
    "calories": "calories",
    "protein": "protein",
    "carbohydrates": "carbohydrates",
    "fat": "fat",
    "fiber": "fiber",
    "saturated_fat": "saturatedFat",
    "trans_fat": "transFat",
    "sugars": "sugars",
}

# (nutriments key, canonical name, unit, label slot)
_OFF_NUTRIMENTS: tuple[tuple[str, str, str, str], ...] = (
    ("energy-kcal_100g", "Energy (Atwater General Factors)", "kcal", "calories"),
    ("proteins_100g", "Protein", "g", "protein"),
    ("carbohydrates_100g", "Carbohydrate, by difference", "g", "carbohydrates"),
    ("fat_100g", "Total lipid (fat)", "g", "fat"),
    ("sugars_100g", "Sugars, total including NLEA", "g", "sugars"),
    ("fiber_100g", "Fiber, total dietary", "g", "fiber"),
    ("saturated-fat_100g", "Fatty acids, total saturated", "g", "saturated_fat"),
    ("trans-fat_100g", "Fatty acids, total trans", "g", "trans_fat"),
)


def to_number(value: object) -> float | None:
    """Return a finite float for numeric values and numeric strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def map_keyed_nutrients(raw: Iterable[object]) -> list[NutrientEntry]:
    """Map USDA nutrient lists (full, abridged or search shape)."""
    entries: list[NutrientEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        nutrient = item.get("nutrient")
        info: Mapping[str, object] = (
            nutrient if isinstance(nutrient, Mapping) else {}
        )
        amount = to_number(item.get("amount", item.get("value")))
        if amount is None:
            continue
        name = info.get("name") or item.get("name") or item.get("nutrientName")
        unit_name = info.get("unitName") or item.get("unitName")
        entries.append(
            NutrientEntry(
                id=_nutrient_id(info, item),
                name=str(name or ""),
                unit_name=str(unit_name or ""),
                amount=amount,
            )
        )
    return entries


def map_cnf_nutrients(
    amounts: Iterable[CnfNutrientAmount],
) -> list[NutrientEntry]:
    """Map joined CNF amounts."""
    return [
        NutrientEntry(
            id=entry.nutrient.nutrient_id,
            name=entry.nutrient.name,
            unit_name=entry.nutrient.unit,
            amount=entry.amount,
        )
        for entry in amounts
    ]


def find_nutrient_amount(
    entries: Sequence[NutrientEntry], slot: str
) -> float | None:
    """Resolve a slot by alias substring match; first nonzero value wins."""
    excluded = _EXCLUDED_UNITS.get(slot, frozenset())
    candidates = [
        entry for entry in entries if entry.unit_name.lower() not in excluded
    ]
    for alias in NUTRIENT_ALIASES[slot]:
        match = next(
            (entry for entry in candidates if alias in entry.name.lower()),
            None,
        )
        if match is not None and match.amount:
            return match.amount
    return None


def label_from_entries(
    entries: Sequence[NutrientEntry],
) -> LabelNutrients | None:
    """Build a label view from a nutrient list, or None when nothing matched."""
    label = LabelNutrients(
        **{slot: find_nutrient_amount(entries, slot) for slot in LABEL_SLOTS}
    )
    return None if label.is_empty() else label


def label_from_fdc(raw: object) -> LabelNutrients | None:
    """Map a USDA branded ``labelNutrients`` block."""
    if not isinstance(raw, Mapping):
        return None
    values: dict[str, float | None] = {}
    for slot, key in _FDC_LABEL_KEYS.items():
        block = raw.get(key)
        if isinstance(block, Mapping):
            values[slot] = to_number(block.get("value"))
        else:
            values[slot] = None
    label = LabelNutrients(**values)
    return None if label.is_empty() else label


def map_off_nutriments(
    nutriments: Mapping[str, object] | None,
) -> tuple[list[NutrientEntry], LabelNutrients]:
    """Map an OFF ``nutriments`` dict by direct key lookup."""
    source = nutriments or {}
    entries: list[NutrientEntry] = []
    label_values: dict[str, float] = {}
    for key, name, unit, slot in _OFF_NUTRIMENTS:
        amount = to_number(source.get(key))
        if amount is None:
            continue
        entries.append(
            NutrientEntry(
                id=len(entries) + 1, name=name, unit_name=unit, amount=amount
            )
        )
        label_values[slot] = amount
    return entries, LabelNutrients(**label_values)


def _nutrient_id(info: Mapping[str, object], item: Mapping[str, object]) -> int:
    candidates = (
        info.get("id"),
        item.get("nutrientId"),
        info.get("number"),
        item.get("number"),
    )
    for candidate in candidates:
        number = to_number(candidate)
        if number is not None:
            return int(number)
    return 0
