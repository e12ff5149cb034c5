from __future__ import annotations

from chat_delivery.application.exceptions import PersistenceError
from chat_delivery.application.policies.permissions import assert_conversation_access
from chat_delivery.application.uow import UnitOfWork


async def mark_read(
    conversation_id: str,
    reader_id: str,
    uow: UnitOfWork,
) -> int:
    """Flag every message the reader received in the conversation as read."""
    conversation = await uow.conversations.get_by_id(conversation_id)
    await assert_conversation_access(reader_id, conversation, uow.participants)
    try:
        updated = await uow.messages_w.mark_read(conversation_id, reader_id)
        await uow.commit()
    except PersistenceError:
        await uow.rollback()
        raise
    return updated
