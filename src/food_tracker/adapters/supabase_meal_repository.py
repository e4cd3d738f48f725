"""Supabase implementation for meals."""

from dataclasses import dataclass

from supabase import Client

from food_tracker.domain.meals import Meal, normalize_meal_name
from food_tracker.services.meals import MealRepository


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase-backed meal storage keyed by normalized name."""

    client: Client

    def save_meal(self, meal: Meal) -> None:
        """Insert a completed meal."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "name": meal.name,
                    "name_normalized": normalize_meal_name(meal.name),
                    "total_protein": meal.total_protein,
                    "total_calories": meal.total_calories,
                    "record_json": meal.to_record(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal")

    def find_meal_by_name(self, name: str) -> Meal | None:
        """Return a meal whose normalized name matches ``name``."""
        response = (
            self.client.table("meals")
            .select("record_json")
            .eq("name_normalized", normalize_meal_name(name))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return Meal.from_record(response.data[0]["record_json"])
