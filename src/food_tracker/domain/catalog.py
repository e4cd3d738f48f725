"""Catalog product models and errors."""

from dataclasses import dataclass

from food_tracker.domain.items import NutritionFacts


class CatalogError(Exception):
    """Raised when the product catalog request fails."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        url: str | None = None,
        payload: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.url = url
        self.payload = payload

    @property
    def retriable(self) -> bool:
        """Rate limits and server errors are worth retrying."""
        return self.status is not None and (self.status == 429 or self.status >= 500)


@dataclass(frozen=True)
class CatalogProduct:
    """Product fields read from a catalog record."""

    code: str | None
    product_name: str | None
    product_name_en: str | None
    generic_name: str | None
    brands: str | None
    quantity: str | None
    nutrition_facts: NutritionFacts

    @property
    def display_name(self) -> str | None:
        """First non-empty of the name, English name and generic name."""
        return self.product_name or self.product_name_en or self.generic_name
