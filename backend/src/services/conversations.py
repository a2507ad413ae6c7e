"""Conversation identity: canonical participant pairs and get-or-create."""

from __future__ import annotations

import logging

from ..utils.redact import redact_secrets
from .conversation_store import ConversationStore
from .errors import ConversationExists, CreateFailed, InvalidRequest, LookupFailed

logger = logging.getLogger(__name__)


def canonical_pair(participant_a: str, participant_b: str) -> tuple[str, str]:
    """Order a participant pair so the same two users always map to the same row."""
    if participant_a > participant_b:
        return participant_b, participant_a
    return participant_a, participant_b


async def resolve_conversation(store: ConversationStore, participant_a: str, participant_b: str) -> str:
    """
    Return the id of the conversation between two participants, creating it if needed.

    Lookup-then-create is not atomic. Two concurrent first messages for the same pair
    can both miss the lookup; the unique constraint on (user1_id, user2_id) makes the
    second insert fail with ConversationExists, and the loser re-reads the winner's row.
    A schema without that constraint can still end up with duplicate rows.
    """
    if not participant_a or not participant_b:
        raise InvalidRequest("Both participants are required")

    user1_id, user2_id = canonical_pair(participant_a, participant_b)

    try:
        existing = await store.find_conversation(user1_id, user2_id)
    except Exception as e:
        raise LookupFailed(f"Conversation lookup failed: {redact_secrets(str(e))}", cause=e) from e
    if existing is not None:
        return str(existing["id"])

    try:
        created = await store.create_conversation(user1_id, user2_id)
    except ConversationExists:
        logger.info("Conversation %s/%s created concurrently; re-reading", user1_id, user2_id)
        try:
            existing = await store.find_conversation(user1_id, user2_id)
        except Exception as e:
            raise LookupFailed(f"Conversation lookup failed: {redact_secrets(str(e))}", cause=e) from e
        if existing is None:
            raise CreateFailed("Conversation insert conflicted but no row was found")
        return str(existing["id"])
    except Exception as e:
        raise CreateFailed(f"Conversation insert failed: {redact_secrets(str(e))}", cause=e) from e

    logger.info("Created conversation %s for %s/%s", created["id"], user1_id, user2_id)
    return str(created["id"])
