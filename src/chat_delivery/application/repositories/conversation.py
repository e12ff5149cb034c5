from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.participant import Participant


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: str) -> Conversation | None: ...

    async def get_by_pair_key(self, pair_key: str) -> Conversation | None: ...

    async def list_for_user(self, user_id: str, *, limit: int = 100) -> list[Conversation]:
        """Conversations the user participates in, most recent activity first."""
        ...


class ConversationWriter(Protocol):
    async def create_direct(
        self,
        conversation: Conversation,
        participants: list[Participant],
    ) -> tuple[Conversation, bool]:
        """Insert a two-person conversation unless its pair key exists.

        Returns (conversation, created). On conflict the existing row is
        returned and no participant links are written.
        """
        ...

    async def create(self, conversation: Conversation) -> Conversation: ...

    async def touch_last_message_at(self, conversation_id: str, ts: datetime) -> None:
        """Advance last_message_at to ts; never moves it backwards."""
        ...
