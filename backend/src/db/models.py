from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import DateTime, UniqueConstraint, func
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"
    # One row per canonical participant pair (user1_id <= user2_id).
    __table_args__ = (UniqueConstraint("user1_id", "user2_id", name="uq_conversations_participants"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user1_id: str = Field(index=True)
    user2_id: str = Field(index=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        index=True,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    conversation_id: uuid.UUID = Field(foreign_key="conversations.id", index=True)
    sender_id: str
    text: str
    timestamp: datetime = Field(
        default_factory=utcnow,
        index=True,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )
