import asyncio

import pytest

from backend.src.services.conversations import resolve_conversation
from backend.src.services.notifier import ChangeNotifier, inserted_row
from backend.src.services.supabase_store import SupabaseConversationStore


def test_inserted_row_payload_shapes():
    row = {"id": "m1"}
    assert inserted_row({"data": {"type": "INSERT", "record": row}}) == row
    assert inserted_row({"new": row}) == row
    assert inserted_row({"data": {"type": "INSERT"}}) is None


@pytest.mark.asyncio
async def test_subscription_receives_only_its_conversation(supabase_provider, fake_supabase):
    store = SupabaseConversationStore(supabase_provider)
    ab = await resolve_conversation(store, "alice", "bob")
    ac = await resolve_conversation(store, "alice", "carol")

    # Sent before subscribing: never replayed.
    await store.add_message(ab, "alice", "before")

    received = []
    notifier = ChangeNotifier(supabase_provider)
    subscription = await notifier.subscribe(ab, on_insert=received.append)

    channel = fake_supabase.channels[0]
    assert channel.subscribed
    assert channel.bindings[0]["filter"] == f"conversation_id=eq.{ab}"
    assert channel.bindings[0]["table"] == "messages"

    await store.add_message(ab, "alice", "hello")
    await store.add_message(ac, "alice", "not for bob")
    await store.add_message(ab, "bob", "hi back")
    await subscription.close()

    texts = [m.text async for m in subscription]
    assert texts == ["hello", "hi back"]
    assert [m.text for m in received] == ["hello", "hi back"]
    assert fake_supabase.channels == []


@pytest.mark.asyncio
async def test_close_ends_iteration_and_stops_delivery(supabase_provider, fake_supabase):
    notifier = ChangeNotifier(supabase_provider)
    async with await notifier.subscribe("c1") as subscription:
        channel = fake_supabase.channels[0]

        async def consume():
            return [m async for m in subscription]

        task = asyncio.create_task(consume())
        fake_supabase.emit_insert(
            "messages",
            {"id": "m1", "conversation_id": "c1", "sender_id": "a", "text": "x", "timestamp": "2026-01-01T00:00:00"},
        )
        await asyncio.sleep(0)

    messages = await asyncio.wait_for(task, timeout=1)
    assert [m.id for m in messages] == ["m1"]
    assert subscription.closed
    assert not channel.subscribed

    # Late payloads after close are ignored.
    subscription._handle_payload({"data": {"record": {"id": "m2"}}})
    assert [m async for m in subscription] == []


@pytest.mark.asyncio
async def test_callback_errors_do_not_break_the_stream(supabase_provider, fake_supabase):
    def broken(message):
        raise ValueError("callback bug")

    subscription = await ChangeNotifier(supabase_provider).subscribe("c1", on_insert=broken)
    fake_supabase.emit_insert(
        "messages",
        {"id": "m1", "conversation_id": "c1", "sender_id": "a", "text": "x", "timestamp": "2026-01-01T00:00:00"},
    )
    fake_supabase.emit_insert("messages", {"conversation_id": "c1"})  # malformed row
    await subscription.close()
    assert [m.id async for m in subscription] == ["m1"]


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited(supabase_provider, fake_supabase):
    received = []

    async def on_insert(message):
        await asyncio.sleep(0)
        received.append(message.id)

    subscription = await ChangeNotifier(supabase_provider).subscribe("c1", on_insert=on_insert)
    fake_supabase.emit_insert(
        "messages",
        {"id": "m1", "conversation_id": "c1", "sender_id": "a", "text": "x", "timestamp": "2026-01-01T00:00:00"},
    )
    await subscription.close()
    assert received == ["m1"]
    assert [m.id async for m in subscription] == ["m1"]
