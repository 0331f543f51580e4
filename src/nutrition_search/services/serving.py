"""Serving-size scaling of per-100g nutrient values."""

import math

from nutrition_search.domain.errors import InvalidInputError
from nutrition_search.domain.foods import (
    FoodDetails,
    NutrientBasis,
    ServingBreakdown,
    ServingNutrition,
)
from nutrition_search.services.nutrient_mapper import find_nutrient_amount

DEFAULT_SERVING_GRAMS = 100
MAX_SERVING_GRAMS = 1_000_000


def calculate_serving_nutrition(
    details: FoodDetails, serving_grams: float | None = DEFAULT_SERVING_GRAMS
) -> ServingNutrition:
    """Scale calories, carbs, protein and fat to ``serving_grams``.

    Non-positive or missing serving sizes produce an all-zero result;
    infinite, NaN or absurdly large sizes raise ``InvalidInputError``.
    """
    _validate_grams(serving_grams)
    if not serving_grams or serving_grams <= 0:
        return ServingNutrition(calories=0, carbs=0.0, protein=0.0, fat=0.0)
    factor = serving_grams / 100
    return ServingNutrition(
        calories=int(_round_half_up(_scaled(details, "calories", factor), 0)),
        carbs=_round_half_up(_scaled(details, "carbohydrates", factor), 1),
        protein=_round_half_up(_scaled(details, "protein", factor), 1),
        fat=_round_half_up(_scaled(details, "fat", factor), 1),
    )


def calculate_serving_breakdown(
    details: FoodDetails, serving_grams: float | None = DEFAULT_SERVING_GRAMS
) -> ServingBreakdown:
    """Scale fat, carbohydrate and protein subclasses to ``serving_grams``."""
    _validate_grams(serving_grams)
    if not serving_grams or serving_grams <= 0:
        return ServingBreakdown(
            fiber=0.0,
            fats_saturated=0.0,
            fats_trans=0.0,
            fats_unsaturated=0.0,
            carbs_simple=0.0,
            carbs_complex=0.0,
            protein_complete=0.0,
            protein_incomplete=0.0,
        )
    factor = serving_grams / 100
    fat = per_100g_value(details, "fat")
    carbs = per_100g_value(details, "carbohydrates")
    fiber = per_100g_value(details, "fiber")
    saturated = per_100g_value(details, "saturated_fat")
    trans = per_100g_value(details, "trans_fat")
    sugars = per_100g_value(details, "sugars")
    protein = per_100g_value(details, "protein")
    return ServingBreakdown(
        fiber=_round_half_up(max(0.0, fiber * factor), 1),
        fats_saturated=_round_half_up(max(0.0, saturated * factor), 1),
        fats_trans=_round_half_up(max(0.0, trans * factor), 1),
        fats_unsaturated=_round_half_up(
            max(0.0, (fat - saturated - trans) * factor), 1
        ),
        carbs_simple=_round_half_up(max(0.0, sugars * factor), 1),
        carbs_complex=_round_half_up(max(0.0, (carbs - sugars - fiber) * factor), 1),
        # Amino acid completeness is not tracked; all protein counts as incomplete.
        protein_complete=0.0,
        protein_incomplete=_round_half_up(max(0.0, protein * factor), 1),
    )


def per_100g_value(details: FoodDetails, slot: str) -> float:
    """Resolve a label slot to a per-100g amount, defaulting to zero.

    The label view wins when it can be expressed per 100 g; otherwise the
    nutrient list is searched by alias.
    """
    label_value = _label_per_100g(details, slot)
    if label_value is not None:
        return label_value
    return find_nutrient_amount(details.food_nutrients, slot) or 0.0


def _label_per_100g(details: FoodDetails, slot: str) -> float | None:
    if details.label_nutrients is None:
        return None
    value = getattr(details.label_nutrients, slot)
    if value is None:
        return None
    if details.label_basis is NutrientBasis.PER_100G:
        return value
    serving = details.serving_size
    unit = (details.serving_size_unit or "").lower()
    if serving is not None and serving > 0 and unit in {"g", "grm"}:
        return value * 100 / serving
    return None


def _validate_grams(serving_grams: float | None) -> None:
    if serving_grams is None:
        return
    if not math.isfinite(serving_grams):
        raise InvalidInputError("servingGrams must be a finite number")
    if serving_grams > MAX_SERVING_GRAMS:
        raise InvalidInputError(
            f"servingGrams must not exceed {MAX_SERVING_GRAMS}"
        )


def _scaled(details: FoodDetails, slot: str, factor: float) -> float:
    return max(0.0, per_100g_value(details, slot) * factor)


def _round_half_up(value: float, digits: int) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale
