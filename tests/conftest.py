"""Shared test fixtures."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from food_tracker.adapters.openfoodfacts_client import CatalogClient
from food_tracker.adapters.telegram_client import TelegramClient
from food_tracker.adapters.telegram_file_client import TelegramFileClient
from food_tracker.config import Settings
from food_tracker.containers import AppContainer
from food_tracker.domain.catalog import CatalogError
from food_tracker.domain.items import (
    ItemMatch,
    ItemRef,
    NutritionFacts,
    SavedProduct,
    SubmittedItem,
)
from food_tracker.domain.meals import Meal, normalize_meal_name
from food_tracker.domain.messages import IncomingMessage
from food_tracker.services.barcodes import BarcodeResolver, ImageBarcodeDecoder
from food_tracker.services.cache import InMemoryCache
from food_tracker.services.catalog import CatalogService
from food_tracker.services.dispatcher import ConversationDispatcher
from food_tracker.services.items import ItemFlowService
from food_tracker.services.library import ItemLibraryService, ItemRepository
from food_tracker.services.meals import MealFlowService, MealRepository
from food_tracker.services.products import ProductLookupService, ProductRepository
from food_tracker.services.sessions import InMemorySessionStore

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryItemRepository(ItemRepository):
    """In-memory item repository keeping insertion order."""

    rows: list[tuple[ItemRef, SubmittedItem]] = field(default_factory=list)

    def save_item(self, item: SubmittedItem) -> None:
        self.rows.append((str(uuid4()), item))

    def list_items(self) -> list[SubmittedItem]:
        return [item for _, item in self.rows]

    def delete_by_alias_or_barcode(self, query: str) -> SubmittedItem | None:
        for column in ("alias", "barcode"):
            for index, (_, item) in enumerate(self.rows):
                value = item.alias if column == "alias" else item.barcode
                if value is not None and value.strip() == query:
                    del self.rows[index]
                    return item
        return None

    def find_by_alias(self, alias: str) -> ItemMatch | None:
        for ref, item in self.rows:
            if item.alias is not None and item.alias.strip() == alias.strip():
                return ItemMatch(item=item, ref=ref)
        return None

    def replace_at(self, ref: ItemRef, item: SubmittedItem) -> None:
        for index, (row_ref, _) in enumerate(self.rows):
            if row_ref == ref:
                self.rows[index] = (ref, item)
                return
        raise KeyError(ref)


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: list[Meal] = field(default_factory=list)

    def save_meal(self, meal: Meal) -> None:
        self.meals.append(meal)

    def find_meal_by_name(self, name: str) -> Meal | None:
        for meal in self.meals:
            if normalize_meal_name(meal.name) == normalize_meal_name(name):
                return meal
        return None


@dataclass
class InMemoryProductRepository(ProductRepository):
    """In-memory product lookup log for tests."""

    products: list[SavedProduct] = field(default_factory=list)

    def save_product(self, product: SavedProduct) -> None:
        self.products.append(product)


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None

    async def send_message(self, chat_id: int, text: str) -> None:
        self.messages.append((chat_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button


@dataclass
class FakeTelegramFileClient(TelegramFileClient):
    """Fake Telegram file client returning fixed bytes."""

    content: bytes = b"image-bytes"
    downloads: list[str] = field(default_factory=list)
    error: Exception | None = None

    async def download_file_bytes(self, file_id: str) -> bytes:
        self.downloads.append(file_id)
        if self.error is not None:
            raise self.error
        return self.content


@dataclass
class FakeCatalogClient(CatalogClient):
    """Fake catalog client serving products by code."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    errors: list[CatalogError] = field(default_factory=list)
    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)

    async def get_product(
        self, product_id: str, fields: Sequence[str] | None = None
    ) -> dict[str, object] | None:
        self.calls.append((product_id, tuple(fields or ())))
        if self.errors:
            raise self.errors.pop(0)
        return self.products.get(product_id)


@dataclass
class FakeBarcodeDecoder(ImageBarcodeDecoder):
    """Fake decoder returning a fixed barcode for any image."""

    barcode: str | None = None
    images: list[bytes] = field(default_factory=list)

    async def decode(self, image_bytes: bytes) -> str | None:
        self.images.append(image_bytes)
        return self.barcode


def make_message(
    text: str = "",
    *,
    conversation_id: int = 10,
    command: str | None = None,
    command_args: str = "",
    image_bytes: bytes | None = None,
    timestamp: datetime = NOW,
) -> IncomingMessage:
    return IncomingMessage(
        conversation_id=conversation_id,
        sender_id=42,
        sender_handle="tester",
        timestamp=timestamp,
        text=text,
        image_bytes=image_bytes,
        command=command,
        command_args=command_args,
    )


def make_item(
    barcode: str,
    alias: str | None = None,
    *,
    product_name: str = "Greek Yogurt",
    proteins: float | None = 10.0,
    calories: float | None = 100.0,
) -> SubmittedItem:
    return SubmittedItem(
        barcode=barcode,
        product_name=product_name,
        nutrition_facts=NutritionFacts(
            proteins_100g=proteins, energy_kcal_100g=calories
        ),
        alias=alias,
        chat_id=10,
        date=NOW,
        user_id=42,
        username="tester",
    )


NOODLE_KIT_PRODUCT: dict[str, object] = {
    "code": "737628064502",
    "product_name": "Thai peanut noodle kit",
    "brands": "Simply Asia",
    "quantity": "155 g",
    "nutriments": {"energy-kcal_100g": 385, "proteins_100g": "9.62"},
}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        session_store="memory",
        environment="local",
    )


@pytest.fixture
def item_repository() -> InMemoryItemRepository:
    return InMemoryItemRepository()


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def product_repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient(products={"737628064502": dict(NOODLE_KIT_PRODUCT)})


@pytest.fixture
def catalog_service(catalog_client: FakeCatalogClient) -> CatalogService:
    return CatalogService(
        client=catalog_client, cache=InMemoryCache(), retry_delay_seconds=0
    )


@pytest.fixture
def barcode_decoder() -> FakeBarcodeDecoder:
    return FakeBarcodeDecoder()


@pytest.fixture
def item_flow(
    item_repository: InMemoryItemRepository,
    catalog_service: CatalogService,
    barcode_decoder: FakeBarcodeDecoder,
) -> ItemFlowService:
    return ItemFlowService(
        repository=item_repository,
        catalog=catalog_service,
        resolver=BarcodeResolver(barcode_decoder),
    )


@pytest.fixture
def meal_flow(
    meal_repository: InMemoryMealRepository,
    item_repository: InMemoryItemRepository,
) -> MealFlowService:
    return MealFlowService(repository=meal_repository, item_repository=item_repository)


@pytest.fixture
def dispatcher(
    item_flow: ItemFlowService,
    meal_flow: MealFlowService,
    item_repository: InMemoryItemRepository,
    catalog_service: CatalogService,
    product_repository: InMemoryProductRepository,
) -> ConversationDispatcher:
    return ConversationDispatcher(
        session_store=InMemorySessionStore(),
        item_flow=item_flow,
        meal_flow=meal_flow,
        library=ItemLibraryService(item_repository),
        products=ProductLookupService(
            catalog=catalog_service, repository=product_repository
        ),
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def telegram_file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def container(
    settings: Settings,
    telegram_client: FakeTelegramClient,
    telegram_file_client: FakeTelegramFileClient,
    dispatcher: ConversationDispatcher,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        dispatcher=dispatcher,
        close_resources=close_resources,
    )
