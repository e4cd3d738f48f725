"""Conversation session storage."""

from dataclasses import dataclass, field
from typing import Protocol

from food_tracker.domain.sessions import ConversationSession


class SessionStore(Protocol):
    """Persistence interface for conversation sessions."""

    def load(self, conversation_id: int) -> ConversationSession:
        """Return a fresh copy of the session, or a new idle one."""

    def save(self, session: ConversationSession) -> None:
        """Commit the session state."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-local store keeping serialized session contexts.

    Sessions are stored serialized so a loaded session is a copy: changes
    made while handling a message only land when :meth:`save` is called.
    """

    contexts: dict[int, dict[str, object]] = field(default_factory=dict)

    def load(self, conversation_id: int) -> ConversationSession:
        context = self.contexts.get(conversation_id)
        if context is None:
            return ConversationSession(conversation_id=conversation_id)
        return ConversationSession.from_context(conversation_id, context)

    def save(self, session: ConversationSession) -> None:
        self.contexts[session.conversation_id] = session.to_context()
