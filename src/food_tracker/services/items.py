"""State machine for submitting and updating food items."""

import logging
import re
from dataclasses import dataclass

from food_tracker.domain.catalog import CatalogError
from food_tracker.domain.items import PendingItem, SubmittedItem
from food_tracker.domain.messages import BotReply, IncomingMessage
from food_tracker.domain.sessions import (
    ConversationSession,
    ItemFlow,
    ItemFlowMode,
    ItemFlowState,
)
from food_tracker.services.barcodes import BarcodeResolver
from food_tracker.services.catalog import PRODUCT_FIELDS, CatalogService
from food_tracker.services.library import ItemRepository

_SKIP_ALIAS = re.compile(r"^skip$", re.IGNORECASE)

_logger = logging.getLogger(__name__)


@dataclass
class ItemFlowService:
    """Drive the item submit/update flow for a conversation session.

    ``idle -> awaiting_input -> awaiting_alias -> idle``. The flow only
    writes to the repository once the alias decision completes it; every
    other step changes the session alone.
    """

    repository: ItemRepository
    catalog: CatalogService
    resolver: BarcodeResolver

    def start_submit(self, session: ConversationSession) -> BotReply:
        """Begin a new item submission."""
        session.item_flow = ItemFlow(state=ItemFlowState.AWAITING_INPUT)
        return BotReply(
            text=(
                "Submit started. Send a barcode image or a text that includes "
                "the barcode."
            )
        )

    def start_update(self, session: ConversationSession, alias: str) -> BotReply:
        """Begin replacing the item stored under ``alias``."""
        alias = alias.strip()
        if not alias:
            return BotReply(
                text="Send alias to update. Example: /item_update greek yogurt"
            )
        existing = self.repository.find_by_alias(alias)
        if existing is None:
            return BotReply(text="Alias not found.")

        session.item_flow = ItemFlow(
            state=ItemFlowState.AWAITING_INPUT,
            mode=ItemFlowMode.UPDATE,
            update_ref=existing.ref,
        )
        return BotReply(
            text=(
                f"Updating {existing.item.product_name} ({existing.item.barcode}). "
                "Send a barcode image or text barcode."
            )
        )

    def cancel(self, session: ConversationSession) -> BotReply | None:
        """Abandon the item flow; ``None`` when there is nothing to cancel."""
        if not session.item_flow.is_active:
            return None
        session.item_flow = ItemFlow()
        return BotReply(text="Submit flow cancelled.")

    async def handle_message(
        self, session: ConversationSession, message: IncomingMessage
    ) -> BotReply:
        """Advance the active flow with an inbound message."""
        flow = session.item_flow
        if flow.state is ItemFlowState.AWAITING_INPUT:
            return await self._handle_input(session, message)
        if flow.state is ItemFlowState.AWAITING_ALIAS:
            return self._handle_alias(session, message)
        raise RuntimeError("Item flow is not active")

    async def _handle_input(
        self, session: ConversationSession, message: IncomingMessage
    ) -> BotReply:
        barcode = await self.resolver.resolve(message)
        if not barcode:
            return BotReply(
                text=(
                    "Could not read a barcode. Send a clearer image or a text "
                    "with digits."
                )
            )

        try:
            product = await self.catalog.get_product(barcode, PRODUCT_FIELDS)
        except CatalogError:
            _logger.exception(
                "Catalog lookup failed during item submit",
                extra={"barcode": barcode},
            )
            return BotReply(text="Could not fetch this product right now. Try again.")

        product_name = product.display_name if product else None
        if product is None or not product_name:
            return BotReply(
                text="Product not found for this barcode. Send another barcode."
            )

        flow = session.item_flow
        session.item_flow = ItemFlow(
            state=ItemFlowState.AWAITING_ALIAS,
            mode=flow.mode,
            update_ref=flow.update_ref,
            pending=PendingItem(
                barcode=barcode,
                product_name=product_name,
                nutrition_facts=product.nutrition_facts,
                brand=product.brands,
                quantity=product.quantity,
            ),
        )
        return BotReply(
            text=(
                f"Found: {product_name}. Send alias text or send \"skip\" to "
                "continue without alias."
            )
        )

    def _handle_alias(
        self, session: ConversationSession, message: IncomingMessage
    ) -> BotReply:
        flow = session.item_flow
        pending = flow.pending
        if pending is None:
            _logger.warning(
                "Item flow awaiting alias without a pending item",
                extra={"conversation_id": session.conversation_id},
            )
            session.item_flow = ItemFlow()
            return BotReply(
                text="Submit session expired. Send /item_submit to start again."
            )

        alias_input = message.text.strip()
        if not alias_input:
            return BotReply(text='Send alias text, or send "skip".')
        alias = None if _SKIP_ALIAS.match(alias_input) else alias_input

        item = SubmittedItem(
            barcode=pending.barcode,
            product_name=pending.product_name,
            nutrition_facts=pending.nutrition_facts,
            alias=alias,
            brand=pending.brand,
            quantity=pending.quantity,
            chat_id=message.conversation_id,
            user_id=message.sender_id,
            username=message.sender_handle,
            date=message.timestamp,
        )
        if flow.mode is ItemFlowMode.UPDATE and flow.update_ref is not None:
            self.repository.replace_at(flow.update_ref, item)
        else:
            self.repository.save_item(item)

        session.item_flow = ItemFlow()
        if alias:
            return BotReply(text=f"Saved {pending.product_name} with alias: {alias}")
        return BotReply(text=f"Saved {pending.product_name} without alias.")
