"""Route inbound messages to commands and conversation flows."""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from food_tracker.domain.messages import BotReply, IncomingMessage
from food_tracker.domain.sessions import ConversationSession, ItemFlowState
from food_tracker.services.items import ItemFlowService
from food_tracker.services.library import ItemLibraryService
from food_tracker.services.meals import MealFlowService
from food_tracker.services.products import ProductLookupService
from food_tracker.services.sessions import SessionStore
from food_tracker.telegram_commands import BotCommand

HELP_TEXT = "\n".join(
    [
        "Food Tracker commands:",
        "/item_submit - submit an item from a barcode photo or text",
        "/item_update <alias> - replace the item saved under an alias",
        "/item_list [start-end] - list submitted items",
        "/item_delete <alias or barcode> - delete an item",
        '/meal_create <name> or "name with spaces" - compose a meal',
        "/say_name <barcode> - look up a product name",
        "/cancel - cancel the active flow",
    ]
)
EXPIRED_TEXT = (
    "Your previous session expired after inactivity. "
    "Start again with /item_submit or /meal_create."
)
UNKNOWN_COMMAND_TEXT = "Unknown command. Send /help to see what I can do."

_logger = logging.getLogger(__name__)


@dataclass
class ConversationDispatcher:
    """Process one message at a time per conversation.

    The session is loaded before and committed after each message; if
    handling raises, nothing is committed and the flow stays where it was.
    """

    session_store: SessionStore
    item_flow: ItemFlowService
    meal_flow: MealFlowService
    library: ItemLibraryService
    products: ProductLookupService
    idle_timeout_seconds: int = 3600
    # Locks drop out once no dispatch for the conversation holds them.
    _locks: weakref.WeakValueDictionary[int, asyncio.Lock] = field(
        default_factory=weakref.WeakValueDictionary, repr=False
    )

    def expects_image(self, conversation_id: int) -> bool:
        """Return true when the conversation is waiting for a barcode."""
        session = self.session_store.load(conversation_id)
        return session.item_flow.state is ItemFlowState.AWAITING_INPUT

    async def dispatch(self, message: IncomingMessage) -> BotReply | None:
        """Handle a message and return the reply to send, if any."""
        lock = self._locks.get(message.conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[message.conversation_id] = lock
        async with lock:
            session = self.session_store.load(message.conversation_id)
            expired = self._expire_if_idle(session, message.timestamp)
            reply = await self._route(session, message, expired=expired)
            session.last_active_at = message.timestamp
            self.session_store.save(session)
        return reply

    async def _route(
        self,
        session: ConversationSession,
        message: IncomingMessage,
        *,
        expired: bool,
    ) -> BotReply | None:
        if message.command:
            command = BotCommand.from_name(message.command)
            if command is None:
                return BotReply(text=UNKNOWN_COMMAND_TEXT)
            return await self._handle_command(command, session, message)
        if session.item_flow.is_active:
            return await self.item_flow.handle_message(session, message)
        if session.meal_flow.is_active:
            return self.meal_flow.handle_message(session, message)
        if expired:
            return BotReply(text=EXPIRED_TEXT)
        return None

    async def _handle_command(  # noqa: PLR0911
        self,
        command: BotCommand,
        session: ConversationSession,
        message: IncomingMessage,
    ) -> BotReply:
        args = message.command_args
        if command in {BotCommand.START, BotCommand.HELP}:
            return BotReply(text=HELP_TEXT)
        if command is BotCommand.ITEM_SUBMIT:
            return self.item_flow.start_submit(session)
        if command is BotCommand.ITEM_UPDATE:
            return self.item_flow.start_update(session, args)
        if command is BotCommand.ITEM_LIST:
            return self.library.list_items(args)
        if command is BotCommand.ITEM_DELETE:
            return self.library.delete_item(args)
        if command is BotCommand.MEAL_CREATE:
            return self.meal_flow.start(session, args)
        if command is BotCommand.SAY_NAME:
            return await self.products.lookup(message)
        return (
            self.item_flow.cancel(session)
            or self.meal_flow.cancel(session)
            or BotReply(text="No active flow to cancel.")
        )

    def _expire_if_idle(self, session: ConversationSession, now: datetime) -> bool:
        if self.idle_timeout_seconds <= 0 or session.last_active_at is None:
            return False
        if not session.is_active:
            return False
        if now - session.last_active_at <= timedelta(seconds=self.idle_timeout_seconds):
            return False
        _logger.info(
            "Session expired after inactivity",
            extra={"conversation_id": session.conversation_id},
        )
        session.reset()
        return True
