"""JSON payload formatting for API responses."""

from nutrition_search.domain.foods import (
    LABEL_SLOTS,
    CombinedSearchResult,
    FoodDetails,
    FoodPage,
    FoodRecord,
    LabelNutrients,
    SearchResultItem,
    ServingBreakdown,
    ServingNutrition,
)

_LABEL_KEYS = {
    "calories": "calories",
    "protein": "protein",
    "carbohydrates": "carbohydrates",
    "fat": "fat",
    "fiber": "fiber",
    "saturated_fat": "saturatedFat",
    "trans_fat": "transFat",
    "sugars": "sugars",
}


def format_record(record: FoodRecord) -> dict[str, object]:
    """Format a food record for search listings."""
    return {
        "id": record.id,
        "description": record.description,
        "source": str(record.source),
        "brand": record.brand,
        "barcode": record.barcode,
        "dataType": record.data_type,
    }


def format_page(page: FoodPage, items_key: str = "foods") -> dict[str, object]:
    """Format one provider search page."""
    return {
        items_key: [format_record(item) for item in page.items],
        "totalHits": page.total_hits,
        "currentPage": page.current_page,
        "totalPages": page.total_pages,
    }


def format_label(label: LabelNutrients | None) -> dict[str, dict[str, float]] | None:
    """Format label nutrients, leaving out absent slots."""
    if label is None:
        return None
    formatted: dict[str, dict[str, float]] = {}
    for slot in LABEL_SLOTS:
        value = getattr(label, slot)
        if value is not None:
            formatted[_LABEL_KEYS[slot]] = {"value": value}
    return formatted


def format_details(details: FoodDetails) -> dict[str, object]:
    """Format canonical food details."""
    payload = format_record(details.record)
    payload.update(
        {
            "foodCategory": details.food_group,
            "nutrientBasis": str(details.nutrient_basis),
            "labelBasis": str(details.label_basis),
            "servingSize": details.serving_size,
            "servingSizeUnit": details.serving_size_unit,
            "foodNutrients": [
                {
                    "id": entry.id,
                    "name": entry.name,
                    "unitName": entry.unit_name,
                    "amount": entry.amount,
                }
                for entry in details.food_nutrients
            ],
            "labelNutrients": format_label(details.label_nutrients),
        }
    )
    return payload


def format_off_product(details: FoodDetails) -> dict[str, object]:
    """Format an OFF product with its per-100g macro summary."""
    label = details.label_nutrients or LabelNutrients()
    payload = format_details(details)
    payload["macrosPer100g"] = {
        "kcal": label.calories or 0,
        "protein": label.protein or 0,
        "carbs": label.carbohydrates or 0,
        "fat": label.fat or 0,
    }
    payload["details"] = {
        key: value
        for key, value in (
            ("sugars", label.sugars),
            ("fiber", label.fiber),
            ("saturated_fat", label.saturated_fat),
            ("trans_fat", label.trans_fat),
        )
        if value is not None
    }
    return payload


def format_result_item(item: SearchResultItem) -> dict[str, object]:
    """Format one merged search hit."""
    return {
        "id": item.id,
        "name": item.name,
        "source": str(item.source),
        "brand": item.brand,
        "barcode": item.barcode,
    }


def format_combined(result: CombinedSearchResult) -> dict[str, object]:
    """Format combined search results with per-source hit counts."""
    return {
        "results": [format_result_item(item) for item in result.results],
        "sources": {
            str(source).lower(): {"totalHits": hits}
            for source, hits in result.sources.items()
        },
    }


def format_serving(
    serving: ServingNutrition, breakdown: ServingBreakdown
) -> dict[str, object]:
    """Format serving nutrition and its subclass breakdown."""
    return {
        "serving": {
            "calories": serving.calories,
            "carbs": serving.carbs,
            "protein": serving.protein,
            "fat": serving.fat,
        },
        "breakdown": {
            "fiber": breakdown.fiber,
            "fatsSaturated": breakdown.fats_saturated,
            "fatsTrans": breakdown.fats_trans,
            "fatsUnsaturated": breakdown.fats_unsaturated,
            "carbsSimple": breakdown.carbs_simple,
            "carbsComplex": breakdown.carbs_complex,
            "proteinComplete": breakdown.protein_complete,
            "proteinIncomplete": breakdown.protein_incomplete,
        },
    }
