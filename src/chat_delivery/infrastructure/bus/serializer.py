from __future__ import annotations

import json

from chat_delivery.infrastructure.ws.protocol import NewMessageFrame, decode_frame

# Envelope: {"event": "<frame type>", "frame": "<frame json>"}


def serialize_frame(frame: NewMessageFrame) -> str:
    envelope = {"event": frame.type, "frame": frame.model_dump_json(by_alias=True)}
    return json.dumps(envelope)


def deserialize_frame(raw: str | bytes) -> tuple[str, NewMessageFrame]:
    envelope = json.loads(raw)
    frame = decode_frame(envelope["frame"])
    if not isinstance(frame, NewMessageFrame):
        raise ValueError(f"unexpected fan-out frame: {envelope['event']}")
    return envelope["event"], frame
