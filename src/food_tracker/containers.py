"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from food_tracker.adapters.barcode_reader import PyzbarBarcodeDecoder
from food_tracker.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_tracker.adapters.supabase_item_repository import SupabaseItemRepository
from food_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from food_tracker.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from food_tracker.adapters.supabase_session_repository import SupabaseSessionStore
from food_tracker.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from food_tracker.adapters.telegram_file_client import (
    HttpxTelegramFileClient,
    TelegramFileClient,
)
from food_tracker.config import Settings
from food_tracker.services.barcodes import BarcodeResolver
from food_tracker.services.cache import InMemoryCache
from food_tracker.services.catalog import CatalogService
from food_tracker.services.dispatcher import ConversationDispatcher
from food_tracker.services.items import ItemFlowService
from food_tracker.services.library import ItemLibraryService
from food_tracker.services.meals import MealFlowService
from food_tracker.services.products import ProductLookupService
from food_tracker.services.sessions import InMemorySessionStore, SessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    dispatcher: ConversationDispatcher
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    item_repository = SupabaseItemRepository(supabase_client)
    meal_repository = SupabaseMealRepository(supabase_client)
    product_repository = SupabaseProductRepository(supabase_client)
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    catalog_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.off_timeout_seconds,
    )
    catalog_service = CatalogService(
        client=catalog_client,
        cache=InMemoryCache(),
        retry_attempts=resolved_settings.off_retry_attempts,
        retry_delay_seconds=resolved_settings.off_retry_delay_seconds,
    )
    dispatcher = ConversationDispatcher(
        session_store=_build_session_store(resolved_settings, supabase_client),
        item_flow=ItemFlowService(
            repository=item_repository,
            catalog=catalog_service,
            resolver=BarcodeResolver(PyzbarBarcodeDecoder()),
        ),
        meal_flow=MealFlowService(
            repository=meal_repository, item_repository=item_repository
        ),
        library=ItemLibraryService(item_repository),
        products=ProductLookupService(
            catalog=catalog_service, repository=product_repository
        ),
        idle_timeout_seconds=resolved_settings.session_idle_timeout_seconds,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        await catalog_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        dispatcher=dispatcher,
        close_resources=close_resources,
    )


def _build_session_store(settings: Settings, client: Client) -> SessionStore:
    if settings.session_store == "memory":
        return InMemorySessionStore()
    return SupabaseSessionStore(client)
