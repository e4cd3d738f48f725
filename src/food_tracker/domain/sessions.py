"""Domain models for per-conversation sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from food_tracker.domain.items import ItemRef, PendingItem
from food_tracker.domain.meals import MealIngredient
from food_tracker.domain.records import optional_str, parse_date


class ItemFlowState(Enum):
    """States of the item submit/update flow."""

    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    AWAITING_ALIAS = "awaiting_alias"


class ItemFlowMode(Enum):
    """Whether a completed item flow appends or replaces."""

    CREATE = "create"
    UPDATE = "update"


class MealFlowState(Enum):
    """States of the meal composition flow."""

    IDLE = "idle"
    COLLECTING = "collecting"


@dataclass(frozen=True)
class ItemFlow:
    """In-progress item submission or update."""

    state: ItemFlowState = ItemFlowState.IDLE
    mode: ItemFlowMode = ItemFlowMode.CREATE
    update_ref: ItemRef | None = None
    pending: PendingItem | None = None

    @property
    def is_active(self) -> bool:
        return self.state is not ItemFlowState.IDLE

    def to_record(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "mode": self.mode.value,
            "update_ref": self.update_ref,
            "pending": self.pending.to_record() if self.pending else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, object] | None) -> "ItemFlow":
        if not record:
            return cls()
        pending = record.get("pending")
        return cls(
            state=ItemFlowState(record.get("state", ItemFlowState.IDLE.value)),
            mode=ItemFlowMode(record.get("mode", ItemFlowMode.CREATE.value)),
            update_ref=optional_str(record.get("update_ref")),
            pending=PendingItem.from_record(pending)
            if isinstance(pending, dict)
            else None,
        )


@dataclass(frozen=True)
class MealFlow:
    """In-progress meal composition; ingredients are unique by barcode."""

    state: MealFlowState = MealFlowState.IDLE
    name: str | None = None
    ingredients: tuple[MealIngredient, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.state is not MealFlowState.IDLE

    def with_ingredient(self, ingredient: MealIngredient) -> "MealFlow":
        """Return a copy where ``ingredient`` replaces any entry for its barcode."""
        kept = tuple(
            entry for entry in self.ingredients if entry.barcode != ingredient.barcode
        )
        return MealFlow(
            state=self.state,
            name=self.name,
            ingredients=(*kept, ingredient),
        )

    def to_record(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "name": self.name,
            "ingredients": [entry.to_record() for entry in self.ingredients],
        }

    @classmethod
    def from_record(cls, record: dict[str, object] | None) -> "MealFlow":
        if not record:
            return cls()
        raw_ingredients = record.get("ingredients") or []
        return cls(
            state=MealFlowState(record.get("state", MealFlowState.IDLE.value)),
            name=optional_str(record.get("name")),
            ingredients=tuple(
                MealIngredient.from_record(entry)
                for entry in raw_ingredients
                if isinstance(entry, dict)
            ),
        )


@dataclass
class ConversationSession:
    """Workflow state for one conversation."""

    conversation_id: int
    item_flow: ItemFlow = field(default_factory=ItemFlow)
    meal_flow: MealFlow = field(default_factory=MealFlow)
    last_active_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.item_flow.is_active or self.meal_flow.is_active

    def reset(self) -> None:
        """Abandon every in-progress flow."""
        self.item_flow = ItemFlow()
        self.meal_flow = MealFlow()

    def to_context(self) -> dict[str, object]:
        """Serialize the session into a JSON-compatible context."""
        return {
            "item_flow": self.item_flow.to_record(),
            "meal_flow": self.meal_flow.to_record(),
            "last_active_at": (
                self.last_active_at.isoformat() if self.last_active_at else None
            ),
        }

    @classmethod
    def from_context(
        cls, conversation_id: int, context: dict[str, object]
    ) -> "ConversationSession":
        """Rebuild a session from a stored context."""
        item_flow = context.get("item_flow")
        meal_flow = context.get("meal_flow")
        last_active_raw = context.get("last_active_at")
        return cls(
            conversation_id=conversation_id,
            item_flow=ItemFlow.from_record(
                item_flow if isinstance(item_flow, dict) else None
            ),
            meal_flow=MealFlow.from_record(
                meal_flow if isinstance(meal_flow, dict) else None
            ),
            last_active_at=parse_date(last_active_raw) if last_active_raw else None,
        )
