"""Error taxonomy for the messaging services.

Every error carries a ``kind`` and an optional ``cause``. The HTTP layer only
exposes ``error_code``/``status_code``; the cause is for internal logs.
"""

from __future__ import annotations

from typing import Optional


class MessagingError(Exception):
    kind = "server_error"
    error_code = "internal_server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "",
        *,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.cause = cause
        if error_code is not None:
            self.error_code = error_code


class InvalidRequest(MessagingError):
    kind = "invalid_request"
    error_code = "missing_required_fields"
    status_code = 400


class ServerError(MessagingError):
    pass


class StoreError(MessagingError):
    """Base for failures reported by the external store."""

    kind = "store_error"


class LookupFailed(StoreError):
    kind = "lookup_failed"


class CreateFailed(StoreError):
    kind = "create_failed"


class QueryFailed(StoreError):
    kind = "query_failed"
    error_code = "query_failed"


class PersistenceFailed(StoreError):
    kind = "persistence_failed"
    error_code = "failed_to_send_message"


class ConversationResolutionFailed(StoreError):
    kind = "conversation_resolution_failed"
    error_code = "conversation_resolution_failed"


class ConversationExists(Exception):
    """Raised by a store when the canonical participant pair already has a row."""

    def __init__(self, user1_id: str, user2_id: str):
        super().__init__(f"Conversation {user1_id}/{user2_id} already exists")
        self.user1_id = user1_id
        self.user2_id = user2_id
