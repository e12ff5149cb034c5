"""Persist-then-broadcast coordination for chat messages."""
from __future__ import annotations

import asyncio
import functools
import logging
import weakref
from contextlib import AbstractAsyncContextManager
from typing import Callable

from chat_delivery.application.ports.bus import EventBroadcaster
from chat_delivery.application.uow import UnitOfWork
from chat_delivery.domain.entities.message import Message
from chat_delivery.domain.events.message_created import MessageCreated
from chat_delivery.services import message_service

logger = logging.getLogger(__name__)

UowFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


class DeliveryCoordinator:
    """Stores a message, then fans a new_message event out to live clients.

    A broadcast is scheduled exactly once per successfully stored message and
    never for a failed one. Within a conversation, broadcasts go out in the
    order the messages were stored.
    """

    def __init__(self, broadcaster: EventBroadcaster, uow_factory: UowFactory) -> None:
        self._broadcaster = broadcaster
        self._uow_factory = uow_factory
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._tails: dict[str, asyncio.Task[None]] = {}
        self._pending: set[asyncio.Task] = set()

    async def send(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: str = "text",
    ) -> Message:
        message_service.validate_new_message(conversation_id, content, message_type)

        # Shielded: a sender that goes away mid-request must not stop the
        # store or the broadcast that follows it.
        task = asyncio.ensure_future(
            self._persist_and_schedule(conversation_id, sender_id, content, message_type)
        )
        self._track(task)
        return await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait until every scheduled broadcast has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    async def _persist_and_schedule(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: str,
    ) -> Message:
        async with self._lock_for(conversation_id):
            async with self._uow_factory() as uow:
                message = await message_service.append(
                    conversation_id, sender_id, content, message_type, uow,
                )
            self._schedule_broadcast(MessageCreated(conversation_id=conversation_id, message=message))
        return message

    def _schedule_broadcast(self, event: MessageCreated) -> None:
        previous = self._tails.get(event.conversation_id)
        task = asyncio.create_task(
            self._broadcast_after(previous, event),
            name=f"broadcast-{event.conversation_id}-{event.message.id}",
        )
        self._tails[event.conversation_id] = task
        self._track(task)
        task.add_done_callback(functools.partial(self._release_tail, event.conversation_id))

    async def _broadcast_after(
        self,
        previous: asyncio.Task[None] | None,
        event: MessageCreated,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        try:
            await self._broadcaster.broadcast(event)
        except Exception:
            logger.exception(
                "Broadcast of message %s in %s failed",
                event.message.id, event.conversation_id,
            )

    def _release_tail(self, conversation_id: str, task: asyncio.Task[None]) -> None:
        if self._tails.get(conversation_id) is task:
            del self._tails[conversation_id]

    def _track(self, task: asyncio.Task) -> None:
        self._pending.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Send task ended with %r", task.exception())
