from __future__ import annotations

import asyncio

import pytest

from chat_delivery.application.exceptions import ForbiddenError, PersistenceError, ValidationError
from chat_delivery.infrastructure.bus.local import LocalBroadcaster
from chat_delivery.infrastructure.ws.registry import ConnectionRegistry
from chat_delivery.services.delivery_service import DeliveryCoordinator
from tests.conftest import FakeConnection, RecordingBroadcaster, uow_factory_for


@pytest.mark.asyncio
async def test_send_stores_then_broadcasts_once(uow, alice, direct_conversation):
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    msg = await coordinator.send(direct_conversation.id, alice.user_id, "hello")
    await coordinator.drain()

    assert uow.messages._messages == [msg]
    assert len(broadcaster.events) == 1
    event = broadcaster.events[0]
    assert event.conversation_id == direct_conversation.id
    assert event.message == msg


@pytest.mark.asyncio
async def test_empty_content_is_neither_stored_nor_broadcast(uow, alice, direct_conversation):
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    with pytest.raises(ValidationError):
        await coordinator.send(direct_conversation.id, alice.user_id, "   ")
    await coordinator.drain()

    assert uow.messages._messages == []
    assert broadcaster.events == []


@pytest.mark.asyncio
async def test_persistence_failure_is_not_broadcast(uow, alice, direct_conversation):
    uow.messages_w.fail = True
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    with pytest.raises(PersistenceError):
        await coordinator.send(direct_conversation.id, alice.user_id, "hello")
    await coordinator.drain()

    assert broadcaster.events == []


@pytest.mark.asyncio
async def test_outsider_is_rejected_without_broadcast(uow, direct_conversation):
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    with pytest.raises(ForbiddenError):
        await coordinator.send(direct_conversation.id, "carol", "hello")
    await coordinator.drain()

    assert broadcaster.events == []


@pytest.mark.asyncio
async def test_broadcasts_follow_store_order(uow, alice, bob, direct_conversation):
    # The first broadcast is slow; the second must still go out after it.
    broadcaster = RecordingBroadcaster(delays={"first": 0.05})
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    await coordinator.send(direct_conversation.id, alice.user_id, "first")
    await coordinator.send(direct_conversation.id, bob.user_id, "second")
    await coordinator.drain()

    assert [e.message.content for e in broadcaster.events] == ["first", "second"]
    history = await uow.messages.list_messages(direct_conversation.id)
    assert [m.content for m in reversed(history)] == ["first", "second"]


@pytest.mark.asyncio
async def test_concurrent_sends_get_increasing_ids(uow, alice, direct_conversation):
    uow.messages_w.delay = 0.01
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    await asyncio.gather(*(
        coordinator.send(direct_conversation.id, alice.user_id, f"m{i}") for i in range(5)
    ))
    await coordinator.drain()

    ids = [e.message.id for e in broadcaster.events]
    assert ids == sorted(ids)
    assert len(ids) == 5


@pytest.mark.asyncio
async def test_sender_cancellation_does_not_lose_message(uow, alice, direct_conversation):
    uow.messages_w.delay = 0.05
    broadcaster = RecordingBroadcaster()
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    sender = asyncio.create_task(
        coordinator.send(direct_conversation.id, alice.user_id, "still here")
    )
    await asyncio.sleep(0.01)
    sender.cancel()
    with pytest.raises(asyncio.CancelledError):
        await sender
    await coordinator.drain()

    assert [m.content for m in uow.messages._messages] == ["still here"]
    assert [e.message.content for e in broadcaster.events] == ["still here"]


@pytest.mark.asyncio
async def test_broadcast_failure_does_not_reach_sender(uow, alice, direct_conversation):
    broadcaster = RecordingBroadcaster(fail=True)
    coordinator = DeliveryCoordinator(broadcaster, uow_factory_for(uow))

    msg = await coordinator.send(direct_conversation.id, alice.user_id, "hello")
    await coordinator.drain()

    assert msg.content == "hello"


@pytest.mark.asyncio
async def test_local_fanout_reaches_open_connections(uow, alice, direct_conversation):
    registry = ConnectionRegistry()
    open_conn, closed_conn = FakeConnection(), FakeConnection()
    registry.register(open_conn)
    registry.register(closed_conn)
    closed_conn.mark_closed()
    coordinator = DeliveryCoordinator(LocalBroadcaster(registry), uow_factory_for(uow))

    msg = await coordinator.send(direct_conversation.id, alice.user_id, "hello", "text")
    await coordinator.drain()

    [frame] = open_conn.json_frames()
    assert frame["type"] == "new_message"
    assert frame["conversationId"] == direct_conversation.id
    assert frame["message"]["id"] == msg.id
    assert frame["message"]["senderId"] == "alice"
    assert frame["message"]["content"] == "hello"
    assert closed_conn.frames == []
    assert closed_conn not in registry
