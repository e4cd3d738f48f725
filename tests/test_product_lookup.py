"""Tests for one-off product lookups."""

import asyncio

from food_tracker.domain.catalog import CatalogError
from food_tracker.services.catalog import NAME_FIELDS, CatalogService
from food_tracker.services.products import ProductLookupService
from tests.conftest import FakeCatalogClient, InMemoryProductRepository, make_message


def _lookup(service: ProductLookupService, args: str) -> str:
    message = make_message(f"/say_name {args}", command="say_name", command_args=args)
    return asyncio.run(service.lookup(message)).text


def test_lookup_saves_product(
    catalog_service: CatalogService,
    catalog_client: FakeCatalogClient,
    product_repository: InMemoryProductRepository,
) -> None:
    service = ProductLookupService(catalog_service, product_repository)

    reply = _lookup(service, "737628064502")

    assert reply == "Product: Thai peanut noodle kit (Simply Asia)"
    assert catalog_client.calls == [("737628064502", NAME_FIELDS)]
    saved = product_repository.products[0]
    assert saved.product_id == "737628064502"
    assert saved.product_name == "Thai peanut noodle kit"
    assert saved.chat_id == 10


def test_lookup_requires_product_id(
    catalog_service: CatalogService, product_repository: InMemoryProductRepository
) -> None:
    service = ProductLookupService(catalog_service, product_repository)

    assert _lookup(service, "").startswith("Send a product id")


def test_lookup_not_found(
    catalog_service: CatalogService, product_repository: InMemoryProductRepository
) -> None:
    service = ProductLookupService(catalog_service, product_repository)

    assert _lookup(service, "123") == "Product not found for that product id."
    assert product_repository.products == []


def test_lookup_reports_catalog_errors(
    catalog_service: CatalogService,
    catalog_client: FakeCatalogClient,
    product_repository: InMemoryProductRepository,
) -> None:
    catalog_client.errors = [CatalogError("forbidden", status=403)]
    service = ProductLookupService(catalog_service, product_repository)

    assert _lookup(service, "737628064502") == (
        "Could not fetch product for that product id."
    )
