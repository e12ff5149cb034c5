from __future__ import annotations

from typing import Protocol

from chat_delivery.application.dto.message import NewMessageDTO
from chat_delivery.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        conversation_id: str,
        *,
        before_id: int | None = None,
        limit: int = 50,
    ) -> list[Message]:
        """Newest-first page of a conversation's messages."""
        ...


class MessageWriter(Protocol):
    async def create(self, data: NewMessageDTO) -> Message: ...

    async def mark_read(self, conversation_id: str, reader_id: str) -> int: ...
