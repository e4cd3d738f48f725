"""Open Food Facts product API client."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from food_tracker.domain.catalog import CatalogError

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://world.openfoodfacts.net"
DEFAULT_USER_AGENT = "FoodTrackerBot/1.0 (contact@example.com)"


class CatalogClient(Protocol):
    """Interface for product catalog lookups."""

    async def get_product(
        self, product_id: str, fields: Sequence[str] | None = None
    ) -> dict[str, object] | None:
        """Return the raw product record, or ``None`` when it does not exist."""


@dataclass
class HttpxOpenFoodFactsClient(CatalogClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(
        cls,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = 10.0,
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(
        self, product_id: str, fields: Sequence[str] | None = None
    ) -> dict[str, object] | None:
        """Fetch a product by barcode."""
        code = product_id.strip()
        if not code:
            return None

        url = f"{self.base_url}/api/v2/product/{quote(code, safe='')}.json"
        params = {"fields": ",".join(fields)} if fields else None
        _logger.info("Catalog product request: code=%s fields=%s", code, fields)
        try:
            response = await self.http_client.get(
                url, params=params, timeout=self.timeout_seconds
            )
        except httpx.HTTPError as exc:
            raise CatalogError(
                str(exc) or "Open Food Facts request failed", url=url
            ) from exc

        # The v2 API answers unknown codes with 404 and a status=0 body.
        if response.status_code == httpx.codes.NOT_FOUND:
            payload = _json_or_none(response)
            if isinstance(payload, dict) and payload.get("status") == 0:
                _logger.info("Catalog product not found: code=%s", code)
                return None
        if response.is_error:
            raise CatalogError(
                f"Open Food Facts returned {response.status_code}",
                status=response.status_code,
                url=url,
                payload=_json_or_none(response),
            )

        payload = _json_or_none(response)
        if not isinstance(payload, dict):
            raise CatalogError(
                "Open Food Facts returned a non-JSON body",
                status=response.status_code,
                url=url,
            )
        product = payload.get("product")
        if payload.get("status") == 0 or not isinstance(product, dict):
            _logger.info("Catalog product not found: code=%s", code)
            return None
        return product

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _json_or_none(response: httpx.Response) -> object | None:
    try:
        return response.json()
    except ValueError:
        return None
