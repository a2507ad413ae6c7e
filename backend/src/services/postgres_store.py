from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..db.models import Conversation, Message
from .conversation_store import ConversationStore
from .errors import ConversationExists


def _conversation_row(convo: Conversation) -> Dict[str, Any]:
    return {
        "id": str(convo.id),
        "user1_id": convo.user1_id,
        "user2_id": convo.user2_id,
        "created_at": convo.created_at.isoformat(),
    }


def _message_row(msg: Message) -> Dict[str, Any]:
    return {
        "id": str(msg.id),
        "conversation_id": str(msg.conversation_id),
        "sender_id": msg.sender_id,
        "text": msg.text,
        "timestamp": msg.timestamp.isoformat(),
    }


class PostgresConversationStore:
    """ConversationStore that talks SQL to the messaging schema directly."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_conversation(self, user1_id: str, user2_id: str) -> Optional[Dict[str, Any]]:
        convo = (
            await self._session.exec(
                select(Conversation)
                .where(Conversation.user1_id == user1_id)
                .where(Conversation.user2_id == user2_id)
            )
        ).first()
        if convo is None:
            return None
        return _conversation_row(convo)

    async def create_conversation(self, user1_id: str, user2_id: str) -> Dict[str, Any]:
        convo = Conversation(user1_id=user1_id, user2_id=user2_id)
        self._session.add(convo)
        try:
            await self._session.flush()
        except IntegrityError as e:
            # Nothing else is pending in the session at this point of a request.
            await self._session.rollback()
            raise ConversationExists(user1_id, user2_id) from e
        return _conversation_row(convo)

    async def add_message(self, conversation_id: str, sender_id: str, text: str) -> Dict[str, Any]:
        msg = Message(
            conversation_id=uuid.UUID(conversation_id),
            sender_id=sender_id,
            text=text,
        )
        self._session.add(msg)
        await self._session.flush()
        return _message_row(msg)

    async def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        conversation_uuid = uuid.UUID(conversation_id)
        msgs = (
            await self._session.exec(
                select(Message)
                .where(Message.conversation_id == conversation_uuid)
                .order_by(Message.timestamp.asc())
            )
        ).all()
        return [_message_row(m) for m in msgs]

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        convos = (
            await self._session.exec(
                select(Conversation)
                .where(or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id))
                .order_by(Conversation.created_at.desc())
            )
        ).all()
        return [_conversation_row(c) for c in convos]


def _as_store(obj: PostgresConversationStore) -> ConversationStore:
    return obj
