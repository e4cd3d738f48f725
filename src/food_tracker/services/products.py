"""One-off product lookups by catalog id."""

import logging
from dataclasses import dataclass
from typing import Protocol

from food_tracker.domain.catalog import CatalogError
from food_tracker.domain.items import SavedProduct
from food_tracker.domain.messages import BotReply, IncomingMessage
from food_tracker.services.catalog import NAME_FIELDS, CatalogService

_logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    """Persistence interface for looked-up products."""

    def save_product(self, product: SavedProduct) -> None:
        """Record a successful product lookup."""


@dataclass
class ProductLookupService:
    """Look up a product name and remember the lookup."""

    catalog: CatalogService
    repository: ProductRepository

    async def lookup(self, message: IncomingMessage) -> BotReply:
        product_id = message.command_args.strip()
        if not product_id:
            return BotReply(
                text=(
                    "Send a product id after the command, e.g. "
                    "/say_name 737628064502"
                )
            )

        try:
            product = await self.catalog.get_product(product_id, NAME_FIELDS)
        except CatalogError:
            _logger.exception(
                "Product lookup failed", extra={"product_id": product_id}
            )
            return BotReply(text="Could not fetch product for that product id.")

        product_name = product.display_name if product else None
        if product is None or not product_name:
            _logger.warning(
                "Product has no display name", extra={"product_id": product_id}
            )
            return BotReply(text="Product not found for that product id.")

        self.repository.save_product(
            SavedProduct(
                product_id=product_id,
                product_name=product_name,
                chat_id=message.conversation_id,
                user_id=message.sender_id,
                username=message.sender_handle,
                date=message.timestamp,
            )
        )
        brand_part = f" ({product.brands})" if product.brands else ""
        return BotReply(text=f"Product: {product_name}{brand_part}")
