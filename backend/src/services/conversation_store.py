"""Storage boundary for conversations and messages.

Rows cross this boundary as plain dicts shaped like the external tables:

- conversation: ``{"id", "user1_id", "user2_id", "created_at"}``
- message: ``{"id", "conversation_id", "sender_id", "text", "timestamp"}``

Ids are strings and timestamps ISO-8601 strings. Implementations raise
``ConversationExists`` from ``create_conversation`` when the participant pair
is already taken; every other failure propagates as the client library raised
it and is classified by the services.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class ConversationStore(Protocol):
    async def find_conversation(self, user1_id: str, user2_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def create_conversation(self, user1_id: str, user2_id: str) -> Dict[str, Any]:
        ...

    async def add_message(self, conversation_id: str, sender_id: str, text: str) -> Dict[str, Any]:
        ...

    async def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        ...

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        ...
