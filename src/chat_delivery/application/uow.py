from __future__ import annotations

from typing import Protocol

from chat_delivery.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from chat_delivery.application.repositories.message import MessageReader, MessageWriter
from chat_delivery.application.repositories.participant import (
    ParticipantReader,
    ParticipantWriter,
)
from chat_delivery.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    participants_w: ParticipantWriter
    messages: MessageReader
    messages_w: MessageWriter
    users: UserReader

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
