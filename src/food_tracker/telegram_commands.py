"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Welcome and command guide")
    ITEM_SUBMIT = TelegramCommand("item_submit", "Submit an item by barcode")
    ITEM_LIST = TelegramCommand("item_list", "List submitted items, e.g. 1-10")
    ITEM_DELETE = TelegramCommand("item_delete", "Delete an item by alias or barcode")
    ITEM_UPDATE = TelegramCommand("item_update", "Replace the item saved under an alias")
    MEAL_CREATE = TelegramCommand("meal_create", "Compose a meal from your items")
    SAY_NAME = TelegramCommand("say_name", "Look up a product name by barcode")
    CANCEL = TelegramCommand("cancel", "Cancel the active flow")
    HELP = TelegramCommand("help", "Quick guide and tips")

    @classmethod
    def from_name(cls, name: str) -> "BotCommand | None":
        """Return the command registered under ``name``, if any."""
        for entry in cls:
            if entry.value.command == name:
                return entry
        return None


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def parse_command(text: str) -> tuple[str, str] | None:
    """Split ``/name[@bot] args`` into the command name and its arguments."""
    if not text.startswith("/"):
        return None
    parts = text.split(maxsplit=1)
    if not parts:
        return None
    name = parts[0][1:].split("@", maxsplit=1)[0].lower()
    if not name:
        return None
    args = parts[1].strip() if len(parts) > 1 else ""
    return name, args


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
