"""WebSocket frame models.

Outbound frames are a closed, tagged set serialised in camelCase. Inbound
frames are tagged as well; anything that is valid JSON but not a known
variant is echoed back to the client unchanged.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from chat_delivery.domain.events.message_created import MessageCreated


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class WireMessage(CamelModel):
    id: int
    conversation_id: str
    sender_id: str
    receiver_id: str | None = None
    content: str
    message_type: str
    is_read: bool = False
    created_at: datetime


# Server -> Client

class NewMessageFrame(CamelModel):
    type: Literal["new_message"] = "new_message"
    conversation_id: str
    message: WireMessage


class EchoFrame(CamelModel):
    type: Literal["echo"] = "echo"
    data: Any = None


class PongFrame(CamelModel):
    type: Literal["pong"] = "pong"


class ErrorFrame(CamelModel):
    type: Literal["error"] = "error"
    message: str


OutboundFrame = Annotated[
    NewMessageFrame | EchoFrame | PongFrame | ErrorFrame,
    Field(discriminator="type"),
]

_outbound_adapter: TypeAdapter[OutboundFrame] = TypeAdapter(OutboundFrame)


def encode_frame(frame: BaseModel) -> str:
    return frame.model_dump_json(by_alias=True)


def decode_frame(raw: str | bytes) -> NewMessageFrame | EchoFrame | PongFrame | ErrorFrame:
    return _outbound_adapter.validate_json(raw)


def new_message_frame(event: MessageCreated) -> NewMessageFrame:
    return NewMessageFrame(
        conversation_id=event.conversation_id,
        message=WireMessage.model_validate(event.message),
    )


# Client -> Server

class PingFrame(CamelModel):
    type: Literal["ping"]


class UntypedFrame(CamelModel):
    """Any JSON value that is not a known command."""

    data: Any = None


InboundFrame = PingFrame | UntypedFrame


def parse_inbound(raw: str) -> InboundFrame:
    """Parse one client frame. Raises ValueError for text that is not JSON."""
    data = json.loads(raw)
    if isinstance(data, dict) and data.get("type") == "ping":
        return PingFrame.model_validate(data)
    return UntypedFrame(data=data)
