"""ConversationStore backed by the Supabase table API (PostgREST)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

from ..config import CONVERSATIONS_TABLE, MESSAGES_TABLE
from .conversation_store import ConversationStore
from .errors import ConversationExists
from .supabase_client import SupabaseClientProvider

_UNIQUE_VIOLATION = "23505"


def _quote_filter_value(value: str) -> str:
    # PostgREST logic-tree filters split on "," and "()"; quoted values are taken literally.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def participant_filter(user_id: str) -> str:
    quoted = _quote_filter_value(user_id)
    return f"user1_id.eq.{quoted},user2_id.eq.{quoted}"


def _first_row(data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


class SupabaseConversationStore:
    def __init__(self, provider: SupabaseClientProvider):
        self._provider = provider

    async def find_conversation(self, user1_id: str, user2_id: str) -> Optional[Dict[str, Any]]:
        client = await self._provider.get()
        resp = await (
            client.table(CONVERSATIONS_TABLE)
            .select("*")
            .eq("user1_id", user1_id)
            .eq("user2_id", user2_id)
            .limit(1)
            .execute()
        )
        return _first_row(resp.data)

    async def create_conversation(self, user1_id: str, user2_id: str) -> Dict[str, Any]:
        client = await self._provider.get()
        try:
            resp = await (
                client.table(CONVERSATIONS_TABLE)
                .insert({"user1_id": user1_id, "user2_id": user2_id})
                .execute()
            )
        except APIError as e:
            if e.code == _UNIQUE_VIOLATION:
                raise ConversationExists(user1_id, user2_id) from e
            raise
        row = _first_row(resp.data)
        if row is None:
            raise RuntimeError("Conversation insert returned no row")
        return row

    async def add_message(self, conversation_id: str, sender_id: str, text: str) -> Dict[str, Any]:
        client = await self._provider.get()
        resp = await (
            client.table(MESSAGES_TABLE)
            .insert({"conversation_id": conversation_id, "sender_id": sender_id, "text": text})
            .execute()
        )
        row = _first_row(resp.data)
        if row is None:
            raise RuntimeError("Message insert returned no row")
        return row

    async def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        client = await self._provider.get()
        resp = await (
            client.table(MESSAGES_TABLE)
            .select("*")
            .eq("conversation_id", conversation_id)
            .order("timestamp", desc=False)
            .execute()
        )
        return list(resp.data or [])

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        client = await self._provider.get()
        resp = await (
            client.table(CONVERSATIONS_TABLE)
            .select("*")
            .or_(participant_filter(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return list(resp.data or [])


def _as_store(obj: SupabaseConversationStore) -> ConversationStore:
    return obj
