"""Redis Pub/Sub fan-out across processes: publisher + subscriber task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from chat_delivery.domain.events.message_created import MessageCreated
from chat_delivery.infrastructure.bus.serializer import deserialize_frame, serialize_frame
from chat_delivery.infrastructure.ws.protocol import NewMessageFrame, new_message_frame

logger = logging.getLogger(__name__)


class RedisPubSubBroadcaster:
    """Implements application.ports.bus.EventBroadcaster.

    Every process (this one included) receives the frame through its
    subscriber and hands it to its own registry.
    """

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def broadcast(self, event: MessageCreated) -> None:
        raw = serialize_frame(new_message_frame(event))
        await self._redis.publish(self._channel, raw)


OnFrameCallback = Callable[[NewMessageFrame], Coroutine[Any, Any, Any]]


class RedisPubSubSubscriber:
    """Background task that listens to a Redis channel and dispatches frames."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnFrameCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    _event, frame = deserialize_frame(message["data"])
                    await self._callback(frame)
                except Exception:
                    logger.exception("Error processing pubsub message")
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
