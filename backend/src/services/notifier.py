"""Realtime notifications for newly inserted messages (Supabase change feed)."""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import ValidationError

from .. import config
from ..app.schemas.messages import Message
from .supabase_client import SupabaseClientProvider

logger = logging.getLogger(__name__)

OnInsert = Callable[[Message], Union[None, Awaitable[None]]]

_CLOSED = object()


def inserted_row(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Extract the new row from a postgres_changes INSERT payload."""
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    # JS-client style payloads carry the row under "new".
    if isinstance(payload.get("new"), dict):
        return payload["new"]
    if isinstance(payload.get("record"), dict):
        return payload["record"]
    return None


class MessageSubscription:
    """Async iterator over messages inserted into one conversation after subscribing.

    Close it (or leave its ``async with`` block) to remove the realtime channel.
    """

    def __init__(self, conversation_id: str, on_insert: Optional[OnInsert] = None):
        self.conversation_id = conversation_id
        self._on_insert = on_insert
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._channel: Any = None
        self._client: Any = None
        self._pending: set[asyncio.Future[Any]] = set()
        self.closed = False

    def _attach(self, client: Any, channel: Any) -> None:
        self._client = client
        self._channel = channel

    def _handle_payload(self, payload: Dict[str, Any]) -> None:
        if self.closed:
            return
        row = inserted_row(payload)
        if row is None:
            logger.warning("Ignoring realtime payload without a record for %s", self.conversation_id)
            return
        try:
            message = Message.from_row(row)
        except (KeyError, ValidationError):
            logger.warning("Ignoring malformed message row for %s", self.conversation_id)
            return
        self._queue.put_nowait(message)
        if self._on_insert is not None:
            try:
                result = self._on_insert(message)
            except Exception:
                logger.exception("on_insert callback failed for conversation %s", self.conversation_id)
                return
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._callback_done)

    def _callback_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "on_insert callback failed for conversation %s",
                self.conversation_id,
                exc_info=task.exception(),
            )

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._client is not None and self._channel is not None:
            await self._client.remove_channel(self._channel)
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._queue.put_nowait(_CLOSED)
        logger.info("Unsubscribed from messages in conversation %s", self.conversation_id)

    def __aiter__(self) -> "MessageSubscription":
        return self

    async def __anext__(self) -> Message:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep later iterations ending as well.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "MessageSubscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class ChangeNotifier:
    def __init__(self, provider: SupabaseClientProvider):
        self._provider = provider

    async def subscribe(self, conversation_id: str, on_insert: Optional[OnInsert] = None) -> MessageSubscription:
        client = await self._provider.get()
        subscription = MessageSubscription(conversation_id, on_insert)
        channel = client.channel(f"messages:{conversation_id}:{uuid.uuid4().hex[:8]}")
        channel.on_postgres_changes(
            "INSERT",
            schema=self._provider.schema,
            table=config.MESSAGES_TABLE,
            filter=f"conversation_id=eq.{conversation_id}",
            callback=subscription._handle_payload,
        )
        subscription._attach(client, channel)
        await channel.subscribe()
        logger.info("Subscribed to messages in conversation %s", conversation_id)
        return subscription
