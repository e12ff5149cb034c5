from __future__ import annotations

from typing import Protocol

from chat_delivery.domain.events.message_created import MessageCreated


class EventBroadcaster(Protocol):
    """Hands a persisted-message event to every open real-time connection."""

    async def broadcast(self, event: MessageCreated) -> None: ...
