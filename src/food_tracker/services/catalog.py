"""Catalog lookups with retry and caching."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from food_tracker.adapters.openfoodfacts_client import CatalogClient
from food_tracker.domain.catalog import CatalogError, CatalogProduct
from food_tracker.services.cache import Cache
from food_tracker.services.nutrition import extract_nutrition_facts

PRODUCT_FIELDS: tuple[str, ...] = (
    "code",
    "product_name",
    "product_name_en",
    "generic_name",
    "brands",
    "quantity",
    "nutriments",
)
NAME_FIELDS: tuple[str, ...] = (
    "code",
    "product_name",
    "product_name_en",
    "generic_name",
    "brands",
    "quantity",
)

_logger = logging.getLogger(__name__)


@dataclass
class CatalogService:
    """Resolve barcodes to catalog products."""

    client: CatalogClient
    cache: Cache
    product_ttl_seconds: int = 86400
    retry_attempts: int = 2
    retry_delay_seconds: float = 0.35

    async def get_product(
        self, identifier: str, fields: Sequence[str] = PRODUCT_FIELDS
    ) -> CatalogProduct | None:
        """Return the parsed product, or ``None`` when the catalog has no record.

        Rate-limit and server errors are retried with a growing delay; any
        other failure, or a retriable one that outlasts the retries, raises
        :class:`CatalogError`.
        """
        cache_key = f"off:product:{identifier}:{','.join(fields)}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, CatalogProduct):
            return cached

        raw = await self._call_with_retry(identifier, fields)
        if raw is None:
            return None
        product = parse_catalog_product(raw)
        self.cache.set(cache_key, product, ttl_seconds=self.product_ttl_seconds)
        return product

    async def _call_with_retry(
        self, identifier: str, fields: Sequence[str]
    ) -> dict[str, object] | None:
        attempt = 0
        while True:
            try:
                return await self.client.get_product(identifier, fields)
            except CatalogError as exc:
                if not exc.retriable or attempt >= self.retry_attempts:
                    _logger.error(
                        "Catalog lookup failed: code=%s status=%s",
                        identifier,
                        exc.status,
                    )
                    raise
                attempt += 1
                delay = self.retry_delay_seconds * attempt
                _logger.warning(
                    "Catalog lookup retry %s/%s: code=%s status=%s delay=%.2fs",
                    attempt,
                    self.retry_attempts,
                    identifier,
                    exc.status,
                    delay,
                )
                await asyncio.sleep(delay)


def parse_catalog_product(raw: dict[str, object]) -> CatalogProduct:
    """Read the known product fields, ignoring anything malformed."""
    return CatalogProduct(
        code=_string_field(raw, "code"),
        product_name=_string_field(raw, "product_name"),
        product_name_en=_string_field(raw, "product_name_en"),
        generic_name=_string_field(raw, "generic_name"),
        brands=_string_field(raw, "brands"),
        quantity=_string_field(raw, "quantity"),
        nutrition_facts=extract_nutrition_facts(raw.get("nutriments")),
    )


def _string_field(raw: dict[str, object], key: str) -> str | None:
    value = raw.get(key)
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None
