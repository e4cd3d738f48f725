"""Inbound message events and outbound replies."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class IncomingMessage:
    """A chat message normalized for the conversation flows."""

    conversation_id: int
    sender_id: int | None
    sender_handle: str | None
    timestamp: datetime
    text: str = ""
    image_bytes: bytes | None = None
    command: str | None = None
    command_args: str = ""


@dataclass(frozen=True)
class BotReply:
    """Represents the next user-facing message."""

    text: str
