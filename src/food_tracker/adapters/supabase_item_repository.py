"""Supabase implementation for submitted items."""

from dataclasses import dataclass

from supabase import Client

from food_tracker.domain.items import ItemMatch, ItemRef, SubmittedItem
from food_tracker.services.library import ItemRepository

_TABLE = "submitted_items"
_COLUMNS = "id, barcode, alias, record_json"


@dataclass
class SupabaseItemRepository(ItemRepository):
    """Supabase-backed repository keeping items in submission order.

    Rows are ordered by ``created_at``; replacing an item updates its row in
    place so its list position does not change.
    """

    client: Client

    def save_item(self, item: SubmittedItem) -> None:
        """Insert a submitted item row."""
        response = self.client.table(_TABLE).insert(_item_payload(item)).execute()
        if not response.data:
            raise RuntimeError("Failed to save submitted item")

    def list_items(self) -> list[SubmittedItem]:
        """Return all items ordered by submission time."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .order("created_at")
            .execute()
        )
        return [_parse_item(row) for row in response.data or []]

    def find_by_alias(self, alias: str) -> ItemMatch | None:
        """Return the earliest item saved under ``alias``."""
        row = self._first_row("alias", alias.strip())
        if row is None:
            return None
        return ItemMatch(item=_parse_item(row), ref=str(row["id"]))

    def replace_at(self, ref: ItemRef, item: SubmittedItem) -> None:
        """Overwrite the row identified by ``ref``."""
        response = (
            self.client.table(_TABLE)
            .update(_item_payload(item))
            .eq("id", ref)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to replace submitted item {ref}")

    def delete_by_alias_or_barcode(self, query: str) -> SubmittedItem | None:
        """Delete the first alias match, falling back to the first barcode match."""
        row = self._first_row("alias", query) or self._first_row("barcode", query)
        if row is None:
            return None
        response = (
            self.client.table(_TABLE).delete().eq("id", str(row["id"])).execute()
        )
        # Nothing deleted means another request removed the row first.
        if not response.data:
            return None
        return _parse_item(row)

    def _first_row(self, column: str, value: str) -> dict[str, object] | None:
        if not value:
            return None
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq(column, value)
            .order("created_at")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]


def _item_payload(item: SubmittedItem) -> dict[str, object]:
    return {
        "barcode": item.barcode,
        "alias": item.alias.strip() if item.alias else None,
        "record_json": item.to_record(),
    }


def _parse_item(row: dict[str, object]) -> SubmittedItem:
    record = row.get("record_json")
    if not isinstance(record, dict):
        raise RuntimeError(f"Submitted item {row.get('id')} has no record")
    return SubmittedItem.from_record(record)
