"""Supabase-backed conversation session store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from food_tracker.domain.sessions import ConversationSession
from food_tracker.services.sessions import SessionStore


@dataclass
class SupabaseSessionStore(SessionStore):
    """Persist one session row per conversation."""

    client: Client

    def load(self, conversation_id: int) -> ConversationSession:
        """Return the stored session or a new idle one."""
        response = (
            self.client.table("conversation_sessions")
            .select("conversation_id, context_json")
            .eq("conversation_id", conversation_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return ConversationSession(conversation_id=conversation_id)
        context = response.data[0].get("context_json") or {}
        return ConversationSession.from_context(conversation_id, context)

    def save(self, session: ConversationSession) -> None:
        """Upsert the session context."""
        self.client.table("conversation_sessions").upsert(
            {
                "conversation_id": session.conversation_id,
                "context_json": session.to_context(),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="conversation_id",
        ).execute()
