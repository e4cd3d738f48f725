"""Supabase implementation for product lookups."""

from dataclasses import dataclass

from supabase import Client

from food_tracker.domain.items import SavedProduct
from food_tracker.services.products import ProductRepository


@dataclass
class SupabaseProductRepository(ProductRepository):
    """Supabase-backed log of successful product lookups."""

    client: Client

    def save_product(self, product: SavedProduct) -> None:
        """Insert a product lookup row."""
        self.client.table("products").insert(
            {
                "product_id": product.product_id,
                "product_name": product.product_name,
                "record_json": product.to_record(),
            }
        ).execute()
