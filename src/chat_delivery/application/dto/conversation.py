from __future__ import annotations

from dataclasses import dataclass, field

from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.user import UserProfile


@dataclass(frozen=True, slots=True)
class ConversationSummaryDTO:
    conversation: Conversation
    participant_ids: list[str] = field(default_factory=list)
    other_user: UserProfile | None = None
