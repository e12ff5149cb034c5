from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from chat_delivery.domain.entities.message import Message
from chat_delivery.domain.events.message_created import MessageCreated
from chat_delivery.infrastructure.bus.serializer import deserialize_frame, serialize_frame
from chat_delivery.infrastructure.ws.protocol import (
    EchoFrame,
    PingFrame,
    UntypedFrame,
    encode_frame,
    new_message_frame,
    parse_inbound,
)


def _event() -> MessageCreated:
    msg = Message(
        id=7,
        conversation_id="conv_1",
        sender_id="alice",
        receiver_id="bob",
        content="hi",
        message_type="text",
        is_read=False,
        created_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
    return MessageCreated(conversation_id="conv_1", message=msg)


def test_new_message_frame_is_camel_case():
    data = json.loads(encode_frame(new_message_frame(_event())))

    assert data["type"] == "new_message"
    assert data["conversationId"] == "conv_1"
    assert data["message"]["receiverId"] == "bob"
    assert data["message"]["messageType"] == "text"
    assert data["message"]["isRead"] is False


def test_fanout_envelope_carries_new_message_only():
    event, frame = deserialize_frame(serialize_frame(new_message_frame(_event())))

    assert event == "new_message"
    assert frame.message.id == 7

    bogus = json.dumps({"event": "echo", "frame": encode_frame(EchoFrame(data=1))})
    with pytest.raises(ValueError):
        deserialize_frame(bogus)


def test_parse_inbound_variants():
    assert isinstance(parse_inbound('{"type": "ping"}'), PingFrame)

    other = parse_inbound('{"hello": "world"}')
    assert isinstance(other, UntypedFrame)
    assert other.data == {"hello": "world"}

    with pytest.raises(ValueError):
        parse_inbound("not json")
