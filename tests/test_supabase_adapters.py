"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from food_tracker.adapters.supabase_item_repository import SupabaseItemRepository
from food_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from food_tracker.adapters.supabase_product_repository import (
    SupabaseProductRepository,
)
from food_tracker.adapters.supabase_session_repository import SupabaseSessionStore
from food_tracker.domain.items import SavedProduct
from food_tracker.domain.meals import Meal, MealIngredient
from food_tracker.domain.sessions import (
    ConversationSession,
    ItemFlow,
    ItemFlowMode,
    ItemFlowState,
)
from food_tracker.services.library import ItemLibraryService
from tests.conftest import NOW, make_item


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_on_conflict: str | None = None
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def upsert(self, payload, on_conflict: str = "") -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_on_conflict = on_conflict
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _item_row(row_id: str, barcode: str, alias: str | None) -> dict[str, object]:
    return {
        "id": row_id,
        "barcode": barcode,
        "alias": alias,
        "record_json": make_item(barcode, alias).to_record(),
    }


def test_supabase_item_repository_save_and_list() -> None:
    client = FakeSupabaseClient()
    table = client.table("submitted_items")
    table.queue("insert", [{"id": "row-1"}])
    table.queue("select", [_item_row("row-1", "11111111", "breakfast")])

    repository = SupabaseItemRepository(client)
    repository.save_item(make_item("11111111", " breakfast "))
    items = repository.list_items()

    assert table.actions == ["insert", "select"]
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["alias"] == "breakfast"
    assert table.last_payload["barcode"] == "11111111"
    assert items == [make_item("11111111", "breakfast")]


def test_supabase_item_repository_save_failure() -> None:
    repository = SupabaseItemRepository(FakeSupabaseClient())

    with pytest.raises(RuntimeError):
        repository.save_item(make_item("11111111"))


def test_supabase_item_repository_find_and_replace() -> None:
    client = FakeSupabaseClient()
    table = client.table("submitted_items")
    table.queue("select", [_item_row("row-2", "22222222", "breakfast")])
    table.queue("update", [{"id": "row-2"}])

    repository = SupabaseItemRepository(client)
    match = repository.find_by_alias(" breakfast ")
    assert match is not None
    repository.replace_at(match.ref, make_item("737628064502", "lunch"))

    assert match.ref == "row-2"
    assert match.item.barcode == "22222222"
    assert ("alias", "breakfast") in table.last_filters
    assert ("id", "row-2") in table.last_filters
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["barcode"] == "737628064502"


def test_supabase_item_repository_delete_falls_back_to_barcode() -> None:
    client = FakeSupabaseClient()
    table = client.table("submitted_items")
    table.queue("select", [])
    table.queue("select", [_item_row("row-3", "22222222", None)])
    table.queue("delete", [{"id": "row-3"}])

    repository = SupabaseItemRepository(client)
    deleted = repository.delete_by_alias_or_barcode("22222222")

    assert deleted is not None
    assert deleted.barcode == "22222222"
    assert table.actions == ["select", "select", "delete"]
    assert table.last_filters[-1] == ("id", "row-3")


def test_supabase_item_repository_delete_reports_rows_already_gone() -> None:
    client = FakeSupabaseClient()
    table = client.table("submitted_items")
    table.queue("select", [_item_row("row-4", "33333333", "oats")])
    table.queue("delete", [])

    repository = SupabaseItemRepository(client)

    assert repository.delete_by_alias_or_barcode("oats") is None
    assert table.actions == ["select", "delete"]

    table.queue("select", [_item_row("row-4", "33333333", "oats")])
    table.queue("delete", [])
    reply = ItemLibraryService(repository).delete_item("oats")

    assert reply.text == "Item not found for that alias or barcode."


def test_supabase_meal_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    meal = Meal(
        name="Sunday Lunch",
        ingredients=(
            MealIngredient(
                barcode="11111111",
                product_name="Greek Yogurt",
                amount=150,
                alias="breakfast",
                quantity=None,
                proteins_100g=20,
                energy_kcal_100g=200,
            ),
        ),
        total_protein=30,
        total_calories=300,
        chat_id=10,
        date=NOW,
        user_id=42,
        username="tester",
    )
    table.queue("insert", [{"id": "meal-1"}])
    table.queue("select", [{"record_json": meal.to_record()}])

    repository = SupabaseMealRepository(client)
    repository.save_meal(meal)
    found = repository.find_meal_by_name("  sunday lunch ")

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["name_normalized"] == "sunday lunch"
    assert ("name_normalized", "sunday lunch") in table.last_filters
    assert found == meal


def test_supabase_product_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("products")

    SupabaseProductRepository(client).save_product(
        SavedProduct(
            product_id="737628064502",
            product_name="Thai peanut noodle kit",
            chat_id=10,
            date=datetime(2024, 5, 1, tzinfo=UTC),
        )
    )

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["product_id"] == "737628064502"
    assert table.last_payload["record_json"]["productName"] == (
        "Thai peanut noodle kit"
    )


def test_supabase_session_store_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("conversation_sessions")
    session = ConversationSession(
        conversation_id=10,
        item_flow=ItemFlow(
            state=ItemFlowState.AWAITING_INPUT,
            mode=ItemFlowMode.UPDATE,
            update_ref="row-2",
        ),
        last_active_at=NOW,
    )

    store = SupabaseSessionStore(client)
    store.save(session)
    assert isinstance(table.last_payload, dict)
    table.queue("select", [{"conversation_id": 10, **table.last_payload}])
    loaded = store.load(10)

    assert table.last_on_conflict == "conversation_id"
    assert loaded == session


def test_supabase_session_store_missing_row_is_idle() -> None:
    store = SupabaseSessionStore(FakeSupabaseClient())

    session = store.load(7)

    assert session.conversation_id == 7
    assert not session.is_active
