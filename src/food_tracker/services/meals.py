"""Meal composition flow."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from food_tracker.domain.meals import Meal, MealIngredient
from food_tracker.domain.messages import BotReply, IncomingMessage
from food_tracker.domain.sessions import ConversationSession, MealFlow, MealFlowState
from food_tracker.services.library import ItemRepository, resolve_reference
from food_tracker.services.nutrition import aggregate, format_nutrition

_DONE = re.compile(r"^done$", re.IGNORECASE)
_QUOTED_NAME = re.compile(r'^"(.+)"$')
_SINGLE_TOKEN = re.compile(r"^\S+$")
_INGREDIENT_LINE = re.compile(
    r"^(.*\S)\s+([+-]?(?:[0-9]+(?:\.[0-9]+)?|\.[0-9]+))$"
)

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def save_meal(self, meal: Meal) -> None:
        """Persist a completed meal."""

    def find_meal_by_name(self, name: str) -> Meal | None:
        """Return the meal with ``name`` compared trimmed and case-insensitively."""


@dataclass(frozen=True)
class IngredientLine:
    """A parsed ``<reference> <amount>`` line."""

    reference: str
    amount: float


@dataclass
class MealFlowService:
    """Collect ingredient lines into a named meal."""

    repository: MealRepository
    item_repository: ItemRepository

    def start(self, session: ConversationSession, raw_name: str) -> BotReply:
        """Begin composing a meal with a new, unused name."""
        name = parse_meal_name(raw_name)
        if name is None:
            return BotReply(
                text=(
                    "Invalid meal name. Use /meal_create <name> or "
                    '/meal_create "name with spaces".'
                )
            )
        if self.repository.find_meal_by_name(name) is not None:
            return BotReply(text="Meal name already exists.")

        session.meal_flow = MealFlow(state=MealFlowState.COLLECTING, name=name)
        return BotReply(
            text=(
                'Meal creation started. Send ingredient lines as "<barcode or '
                'alias> <amount>". Send "done" when finished.'
            )
        )

    def cancel(self, session: ConversationSession) -> BotReply | None:
        """Discard the composition; ``None`` when none is in progress."""
        if not session.meal_flow.is_active:
            return None
        session.meal_flow = MealFlow()
        return BotReply(text="Meal creation cancelled.")

    def handle_message(
        self, session: ConversationSession, message: IncomingMessage
    ) -> BotReply:
        """Add ingredient lines, or save the meal on ``done``."""
        flow = session.meal_flow
        if flow.name is None:
            _logger.warning(
                "Meal flow collecting without a name",
                extra={"conversation_id": session.conversation_id},
            )
            session.meal_flow = MealFlow()
            return BotReply(text="Meal session expired. Start again with /meal_create.")

        text = message.text.strip()
        if not text:
            return BotReply(text="Send ingredient entries or send done.")
        if _DONE.match(text):
            return self._finish(session, message)

        lines = [line.strip() for line in text.split("\n") if line.strip()]
        items = self.item_repository.list_items()
        errors: list[str] = []
        accepted = 0
        for line in lines:
            parsed = parse_ingredient_line(line)
            if parsed is None:
                errors.append(f"Invalid entry: {line}")
                continue
            item = resolve_reference(items, parsed.reference)
            if item is None:
                errors.append(f"Item not found: {parsed.reference}")
                continue
            flow = flow.with_ingredient(
                MealIngredient(
                    barcode=item.barcode,
                    alias=item.alias,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    amount=parsed.amount,
                    proteins_100g=item.nutrition_facts.proteins_100g,
                    energy_kcal_100g=item.nutrition_facts.energy_kcal_100g,
                )
            )
            accepted += 1
        session.meal_flow = flow

        response: list[str] = []
        if accepted:
            noun = "entry" if accepted == 1 else "entries"
            response.append(f"Accepted {accepted} {noun}.")
        response.extend(errors)
        if not response:
            response.append("No valid entries found.")
        return BotReply(text="\n".join(response))

    def _finish(
        self, session: ConversationSession, message: IncomingMessage
    ) -> BotReply:
        flow = session.meal_flow
        if not flow.ingredients:
            return BotReply(
                text="No valid ingredients yet. Add at least one ingredient before done."
            )

        totals = aggregate(flow.ingredients)
        self.repository.save_meal(
            Meal(
                name=flow.name or "",
                ingredients=flow.ingredients,
                total_protein=totals.total_protein,
                total_calories=totals.total_calories,
                chat_id=message.conversation_id,
                user_id=message.sender_id,
                username=message.sender_handle,
                date=message.timestamp,
            )
        )
        session.meal_flow = MealFlow()
        return BotReply(
            text=(
                f"Saved meal {flow.name}. "
                f"protein: {format_nutrition(totals.total_protein)} | "
                f"calories: {format_nutrition(totals.total_calories)}"
            )
        )


def parse_meal_name(raw: str) -> str | None:
    """Accept a single token or a double-quoted phrase."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    quoted = _QUOTED_NAME.match(trimmed)
    if quoted:
        return quoted.group(1).strip() or None
    return trimmed if _SINGLE_TOKEN.match(trimmed) else None


def parse_ingredient_line(line: str) -> IngredientLine | None:
    """Split a line into its reference and a positive trailing amount."""
    match = _INGREDIENT_LINE.match(line)
    if not match:
        return None
    reference = match.group(1).strip()
    amount = float(match.group(2))
    if not reference or amount <= 0:
        return None
    return IngredientLine(reference=reference, amount=amount)
