from typing import Any, Dict, Optional

from pydantic import BaseModel


class SendMessageRequest(BaseModel):
    """Request to send a message from one user to another.

    Fields are optional at the schema level so a missing field is reported as
    ``missing_required_fields`` (400) rather than a generic validation error.
    """

    sender_id: Optional[str] = None
    receiver_id: Optional[str] = None
    text: Optional[str] = None


class Message(BaseModel):
    """A stored message."""

    id: str
    conversation_id: str
    sender_id: str
    text: str
    timestamp: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Message":
        return cls(
            id=str(row["id"]),
            conversation_id=str(row["conversation_id"]),
            sender_id=str(row["sender_id"]),
            text=str(row["text"]),
            timestamp=str(row["timestamp"]),
        )


class Conversation(BaseModel):
    """A conversation between two users; user1_id <= user2_id."""

    id: str
    user1_id: str
    user2_id: str
    created_at: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Conversation":
        return cls(
            id=str(row["id"]),
            user1_id=str(row["user1_id"]),
            user2_id=str(row["user2_id"]),
            created_at=str(row["created_at"]),
        )


class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
    request_id: str
