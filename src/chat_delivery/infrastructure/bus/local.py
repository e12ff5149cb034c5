"""Fan-out inside one process: events go straight to the local registry."""
from __future__ import annotations

import logging

from chat_delivery.domain.events.message_created import MessageCreated
from chat_delivery.infrastructure.ws.protocol import new_message_frame
from chat_delivery.infrastructure.ws.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class LocalBroadcaster:
    """Implements application.ports.bus.EventBroadcaster."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def broadcast(self, event: MessageCreated) -> None:
        delivered = await self._registry.broadcast(new_message_frame(event))
        logger.debug(
            "new_message %s in %s delivered to %d connections",
            event.message.id, event.conversation_id, delivered,
        )
