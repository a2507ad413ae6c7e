from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request

from .. import config
from ..db.session import session_scope
from .conversation_store import ConversationStore
from .messaging import MessagingService
from .postgres_store import PostgresConversationStore
from .supabase_client import SupabaseClientProvider
from .supabase_store import SupabaseConversationStore


def get_supabase_provider(request: Request) -> SupabaseClientProvider:
    provider = getattr(request.app.state, "supabase", None)
    if provider is None:
        provider = SupabaseClientProvider(config.SUPABASE_URL, config.SUPABASE_KEY, schema=config.SUPABASE_SCHEMA)
        request.app.state.supabase = provider
    return provider


async def get_default_store(request: Request) -> AsyncIterator[ConversationStore]:
    if config.DATABASE_URL:
        async with session_scope() as session:
            yield PostgresConversationStore(session)
        return
    yield SupabaseConversationStore(get_supabase_provider(request))


def get_messaging_service(store: ConversationStore = Depends(get_default_store)) -> MessagingService:
    return MessagingService(store)
