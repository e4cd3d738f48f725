"""Services for the submitted item library."""

import re
from dataclasses import dataclass
from typing import Protocol

from food_tracker.domain.items import ItemMatch, ItemRef, SubmittedItem
from food_tracker.domain.messages import BotReply

DEFAULT_LIST_RANGE = (1, 10)
_RANGE_PATTERN = re.compile(r"^(\d+)\s*-\s*(\d+)$")


class ItemRepository(Protocol):
    """Persistence interface for submitted items."""

    def save_item(self, item: SubmittedItem) -> None:
        """Append a submitted item."""

    def list_items(self) -> list[SubmittedItem]:
        """Return all items in stored order."""

    def delete_by_alias_or_barcode(self, query: str) -> SubmittedItem | None:
        """Delete the first alias match, else the first barcode match."""

    def find_by_alias(self, alias: str) -> ItemMatch | None:
        """Return the first item whose trimmed alias equals ``alias``."""

    def replace_at(self, ref: ItemRef, item: SubmittedItem) -> None:
        """Overwrite the item stored under ``ref`` keeping its position."""


class InvalidRangeError(ValueError):
    """Raised for list ranges that are not ``<start>-<end>`` with start <= end."""


@dataclass
class ItemLibraryService:
    """Flow-independent operations over submitted items."""

    repository: ItemRepository

    def list_items(self, raw_range: str) -> BotReply:
        """List items at 1-based positions of the requested range."""
        try:
            selected_range = parse_range(raw_range) or DEFAULT_LIST_RANGE
        except InvalidRangeError:
            return BotReply(text="Invalid range. Use /item_list or /item_list 5-10.")

        start, end = selected_range
        items = self.repository.list_items()
        lines = [
            _format_list_line(position, item)
            for position, item in enumerate(items, start=1)
            if start <= position <= end
        ]
        if not lines:
            return BotReply(text="No submitted items in that range.")
        return BotReply(text="\n".join(lines))

    def delete_item(self, query: str) -> BotReply:
        """Delete an item by alias, falling back to barcode."""
        query = query.strip()
        if not query:
            return BotReply(
                text="Send barcode or alias. Example: /item_delete greek yogurt"
            )
        deleted = self.repository.delete_by_alias_or_barcode(query)
        if deleted is None:
            return BotReply(text="Item not found for that alias or barcode.")
        return BotReply(
            text=(
                f"Deleted item: {deleted.product_name} | "
                f"barcode: {deleted.barcode} | alias: {deleted.alias or '-'}"
            )
        )


def parse_range(query: str) -> tuple[int, int] | None:
    """Parse ``<start>-<end>``; an empty query means the default range."""
    query = query.strip()
    if not query:
        return None
    match = _RANGE_PATTERN.match(query)
    if not match:
        raise InvalidRangeError(query)
    start, end = int(match.group(1)), int(match.group(2))
    if start < 1 or end < start:
        raise InvalidRangeError(query)
    return start, end


def resolve_reference(
    items: list[SubmittedItem], reference: str
) -> SubmittedItem | None:
    """Find an item by exact barcode, then by exact trimmed alias."""
    reference = reference.strip()
    if not reference:
        return None
    for item in items:
        if item.barcode == reference:
            return item
    for item in items:
        if item.alias is not None and item.alias.strip() == reference:
            return item
    return None


def _format_list_line(position: int, item: SubmittedItem) -> str:
    facts = item.nutrition_facts
    return (
        f"{position}. barcode: {item.barcode} | name: {item.product_name} | "
        f"alias: {item.alias or '-'} | "
        f"protein: {_format_fact(facts.proteins_100g)} | "
        f"calories: {_format_fact(facts.energy_kcal_100g)}"
    )


def _format_fact(value: float | None) -> str:
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return str(value)
