"""Domain models for submitted food items."""

from dataclasses import dataclass, fields
from datetime import datetime

from food_tracker.domain.records import (
    optional_float,
    optional_int,
    optional_str,
    parse_date,
    put_optional,
)

_NUTRITION_RECORD_KEYS = {
    "energy_kcal_100g": "energyKcal100g",
    "proteins_100g": "proteins100g",
    "carbohydrates_100g": "carbohydrates100g",
    "fat_100g": "fat100g",
    "sugars_100g": "sugars100g",
    "fiber_100g": "fiber100g",
    "salt_100g": "salt100g",
    "sodium_100g": "sodium100g",
}


@dataclass(frozen=True)
class NutritionFacts:
    """Per-100g nutrition values; ``None`` means the value is unknown."""

    energy_kcal_100g: float | None = None
    proteins_100g: float | None = None
    carbohydrates_100g: float | None = None
    fat_100g: float | None = None
    sugars_100g: float | None = None
    fiber_100g: float | None = None
    salt_100g: float | None = None
    sodium_100g: float | None = None

    def to_record(self) -> dict[str, float]:
        """Return the stored JSON shape, omitting unknown values."""
        record: dict[str, float] = {}
        for entry in fields(self):
            value = getattr(self, entry.name)
            if value is not None:
                record[_NUTRITION_RECORD_KEYS[entry.name]] = value
        return record

    @classmethod
    def from_record(cls, record: dict[str, object] | None) -> "NutritionFacts":
        """Build nutrition facts from the stored JSON shape."""
        record = record or {}
        values: dict[str, float | None] = {}
        for name, key in _NUTRITION_RECORD_KEYS.items():
            values[name] = optional_float(record.get(key))
        return cls(**values)


@dataclass(frozen=True)
class PendingItem:
    """A catalog-resolved item waiting for the alias decision."""

    barcode: str
    product_name: str
    nutrition_facts: NutritionFacts
    brand: str | None = None
    quantity: str | None = None

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {
            "barcode": self.barcode,
            "productName": self.product_name,
            "nutritionFacts": self.nutrition_facts.to_record(),
        }
        put_optional(record, "brand", self.brand)
        put_optional(record, "quantity", self.quantity)
        return record

    @classmethod
    def from_record(cls, record: dict[str, object]) -> "PendingItem":
        return cls(
            barcode=str(record["barcode"]),
            product_name=str(record["productName"]),
            nutrition_facts=NutritionFacts.from_record(record.get("nutritionFacts")),
            brand=optional_str(record.get("brand")),
            quantity=optional_str(record.get("quantity")),
        )


@dataclass(frozen=True)
class SubmittedItem:
    """A food item saved by a completed submit or update flow."""

    barcode: str
    product_name: str
    nutrition_facts: NutritionFacts
    chat_id: int
    date: datetime
    alias: str | None = None
    brand: str | None = None
    quantity: str | None = None
    user_id: int | None = None
    username: str | None = None

    def to_record(self) -> dict[str, object]:
        """Return the persisted JSON shape of the item."""
        record: dict[str, object] = {
            "barcode": self.barcode,
            "productName": self.product_name,
            "nutritionFacts": self.nutrition_facts.to_record(),
        }
        put_optional(record, "alias", self.alias)
        put_optional(record, "brand", self.brand)
        put_optional(record, "quantity", self.quantity)
        record["chatId"] = self.chat_id
        put_optional(record, "userId", self.user_id)
        put_optional(record, "username", self.username)
        record["date"] = self.date.isoformat()
        return record

    @classmethod
    def from_record(cls, record: dict[str, object]) -> "SubmittedItem":
        """Parse a persisted item record."""
        return cls(
            barcode=str(record["barcode"]),
            product_name=str(record.get("productName", "")),
            nutrition_facts=NutritionFacts.from_record(record.get("nutritionFacts")),
            chat_id=int(record.get("chatId", 0)),
            date=parse_date(record.get("date")),
            alias=optional_str(record.get("alias")),
            brand=optional_str(record.get("brand")),
            quantity=optional_str(record.get("quantity")),
            user_id=optional_int(record.get("userId")),
            username=optional_str(record.get("username")),
        )


# Opaque reference to a stored item, used to replace it in place.
ItemRef = str


@dataclass(frozen=True)
class ItemMatch:
    """A stored item together with its repository reference."""

    item: SubmittedItem
    ref: ItemRef


@dataclass(frozen=True)
class SavedProduct:
    """A product looked up by id through the catalog."""

    product_id: str
    product_name: str
    chat_id: int
    date: datetime
    user_id: int | None = None
    username: str | None = None

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {
            "productId": self.product_id,
            "productName": self.product_name,
            "chatId": self.chat_id,
        }
        put_optional(record, "userId", self.user_id)
        put_optional(record, "username", self.username)
        record["date"] = self.date.isoformat()
        return record
