from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class NewMessageDTO:
    conversation_id: str
    sender_id: str
    receiver_id: str | None
    content: str
    message_type: str
    created_at: datetime
