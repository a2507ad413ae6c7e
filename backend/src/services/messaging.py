from __future__ import annotations

import logging
from typing import List, Optional

from ..app.schemas.messages import Conversation, Message
from ..utils.redact import redact_secrets
from .conversation_store import ConversationStore
from .conversations import resolve_conversation
from .errors import (
    ConversationResolutionFailed,
    InvalidRequest,
    PersistenceFailed,
    QueryFailed,
    StoreError,
)

logger = logging.getLogger(__name__)


class MessagingService:
    """Send and read messages through an injected ConversationStore."""

    def __init__(self, store: ConversationStore):
        self._store = store

    async def send_message(
        self,
        sender_id: Optional[str],
        receiver_id: Optional[str],
        text: Optional[str],
    ) -> Message:
        if not sender_id or not receiver_id or not text:
            raise InvalidRequest("Missing required fields")

        try:
            conversation_id = await resolve_conversation(self._store, sender_id, receiver_id)
        except StoreError as e:
            raise ConversationResolutionFailed(e.message, cause=e.cause or e) from e

        # A failure here leaves a freshly created conversation in place; nothing is rolled back.
        try:
            row = await self._store.add_message(conversation_id, sender_id, text)
        except Exception as e:
            raise PersistenceFailed(f"Message insert failed: {redact_secrets(str(e))}", cause=e) from e

        logger.info("Stored message %s in conversation %s", row.get("id"), conversation_id)
        return Message.from_row(row)

    async def list_messages(self, conversation_id: str) -> List[Message]:
        try:
            rows = await self._store.list_messages(conversation_id)
        except Exception as e:
            raise QueryFailed(
                f"Fetching messages failed: {redact_secrets(str(e))}",
                cause=e,
                error_code="failed_to_fetch_messages",
            ) from e
        return [Message.from_row(r) for r in rows]

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        try:
            rows = await self._store.list_conversations(user_id)
        except Exception as e:
            raise QueryFailed(
                f"Fetching conversations failed: {redact_secrets(str(e))}",
                cause=e,
                error_code="failed_to_fetch_conversations",
            ) from e
        return [Conversation.from_row(r) for r in rows]
