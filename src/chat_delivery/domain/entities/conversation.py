from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    name: str | None
    is_group: bool
    pair_key: str | None
    last_message_at: datetime | None
    created_at: datetime
