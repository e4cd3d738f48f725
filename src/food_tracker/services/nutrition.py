"""Nutrition extraction from catalog records and meal aggregation."""

import math
from collections.abc import Iterable

from food_tracker.domain.items import NutritionFacts
from food_tracker.domain.meals import MealIngredient, MealTotals

_NUTRIMENT_KEYS = {
    "energy_kcal_100g": "energy-kcal_100g",
    "proteins_100g": "proteins_100g",
    "carbohydrates_100g": "carbohydrates_100g",
    "fat_100g": "fat_100g",
    "sugars_100g": "sugars_100g",
    "fiber_100g": "fiber_100g",
    "salt_100g": "salt_100g",
    "sodium_100g": "sodium_100g",
}


def extract_nutrition_facts(nutriments: object) -> NutritionFacts:
    """Extract per-100g values from a catalog ``nutriments`` object.

    Values that are missing or not numeric stay ``None`` so that an unknown
    value is never confused with a real zero.
    """
    if not isinstance(nutriments, dict):
        return NutritionFacts()
    return NutritionFacts(
        **{
            name: _to_number(nutriments.get(key))
            for name, key in _NUTRIMENT_KEYS.items()
        }
    )


def aggregate(ingredients: Iterable[MealIngredient]) -> MealTotals:
    """Sum protein and calories scaled by each ingredient's amount in grams."""
    total_protein = 0.0
    total_calories = 0.0
    for ingredient in ingredients:
        factor = ingredient.amount / 100
        total_protein += factor * (ingredient.proteins_100g or 0.0)
        total_calories += factor * (ingredient.energy_kcal_100g or 0.0)
    return MealTotals(total_protein=total_protein, total_calories=total_calories)


def format_nutrition(value: float) -> str:
    """Format a total with at most two decimals, dropping ``.00``."""
    if not math.isfinite(value):
        return "0"
    rounded = math.floor(value * 100 + 0.5) / 100
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.2f}"


def _to_number(value: object) -> float | None:
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
