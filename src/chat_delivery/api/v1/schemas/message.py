from __future__ import annotations

from chat_delivery.domain.value_objects.enums import MessageType
from chat_delivery.infrastructure.ws.protocol import CamelModel, WireMessage


class SendMessageRequest(CamelModel):
    # Emptiness is checked by the service so the error body stays uniform.
    content: str
    message_type: MessageType = MessageType.TEXT


class MessageResponse(WireMessage):
    """Same shape as the message embedded in new_message frames."""


class MarkReadResponse(CamelModel):
    updated: int
