"""Lazily-built async Supabase client, owned by the app lifespan."""

from __future__ import annotations

import logging
from typing import Optional

from supabase import AsyncClient, AsyncClientOptions, acreate_client

logger = logging.getLogger(__name__)


class SupabaseClientProvider:
    def __init__(
        self,
        url: str | None,
        key: str | None,
        *,
        schema: str = "public",
        client: Optional[AsyncClient] = None,
    ):
        self._url = url
        self._key = key
        self.schema = schema
        self._client = client

    async def get(self) -> AsyncClient:
        # Credentials are not checked up front; acreate_client raises on the first use instead.
        if self._client is None:
            logger.info("Creating Supabase client for %s (schema=%s)", self._url, self.schema)
            self._client = await acreate_client(
                self._url,
                self._key,
                options=AsyncClientOptions(schema=self.schema),
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.remove_all_channels()
        # Table API requests share one HTTP session.
        await client.postgrest.aclose()
