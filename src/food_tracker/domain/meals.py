"""Domain models for composed meals."""

from dataclasses import dataclass
from datetime import datetime

from food_tracker.domain.records import (
    optional_float,
    optional_int,
    optional_str,
    parse_date,
    put_optional,
)


@dataclass(frozen=True)
class MealIngredient:
    """A submitted item referenced by a meal, with its amount in grams."""

    barcode: str
    product_name: str
    amount: float
    alias: str | None = None
    quantity: str | None = None
    proteins_100g: float | None = None
    energy_kcal_100g: float | None = None

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {"barcode": self.barcode}
        put_optional(record, "alias", self.alias)
        record["productName"] = self.product_name
        put_optional(record, "quantity", self.quantity)
        record["amount"] = self.amount
        put_optional(record, "proteins100g", self.proteins_100g)
        put_optional(record, "energyKcal100g", self.energy_kcal_100g)
        return record

    @classmethod
    def from_record(cls, record: dict[str, object]) -> "MealIngredient":
        return cls(
            barcode=str(record["barcode"]),
            product_name=str(record.get("productName", "")),
            amount=float(record["amount"]),
            alias=optional_str(record.get("alias")),
            quantity=optional_str(record.get("quantity")),
            proteins_100g=optional_float(record.get("proteins100g")),
            energy_kcal_100g=optional_float(record.get("energyKcal100g")),
        )


@dataclass(frozen=True)
class MealTotals:
    """Protein and calorie totals for a list of ingredients."""

    total_protein: float
    total_calories: float


@dataclass(frozen=True)
class Meal:
    """A saved meal with totals computed at save time."""

    name: str
    ingredients: tuple[MealIngredient, ...]
    total_protein: float
    total_calories: float
    chat_id: int
    date: datetime
    user_id: int | None = None
    username: str | None = None

    def to_record(self) -> dict[str, object]:
        """Return the persisted JSON shape of the meal."""
        record: dict[str, object] = {
            "name": self.name,
            "ingredients": [ingredient.to_record() for ingredient in self.ingredients],
            "totalProtein": self.total_protein,
            "totalCalories": self.total_calories,
            "chatId": self.chat_id,
        }
        put_optional(record, "userId", self.user_id)
        put_optional(record, "username", self.username)
        record["date"] = self.date.isoformat()
        return record

    @classmethod
    def from_record(cls, record: dict[str, object]) -> "Meal":
        """Parse a persisted meal record."""
        raw_ingredients = record.get("ingredients") or []
        return cls(
            name=str(record["name"]),
            ingredients=tuple(
                MealIngredient.from_record(entry)
                for entry in raw_ingredients
                if isinstance(entry, dict)
            ),
            total_protein=float(record.get("totalProtein", 0.0)),
            total_calories=float(record.get("totalCalories", 0.0)),
            chat_id=int(record.get("chatId", 0)),
            date=parse_date(record.get("date")),
            user_id=optional_int(record.get("userId")),
            username=optional_str(record.get("username")),
        )


def normalize_meal_name(name: str) -> str:
    """Return the key used for case-insensitive meal name uniqueness."""
    return name.strip().lower()
