from __future__ import annotations

from datetime import datetime, timezone

from chat_delivery.application.dto.message import NewMessageDTO
from chat_delivery.application.exceptions import PersistenceError, ValidationError
from chat_delivery.application.policies.permissions import assert_conversation_access
from chat_delivery.application.uow import UnitOfWork
from chat_delivery.config import settings
from chat_delivery.domain.entities.message import Message
from chat_delivery.domain.value_objects.enums import MessageType
from chat_delivery.domain.value_objects.ids import is_well_formed_conversation_id


def validate_new_message(conversation_id: str, content: str | None, message_type: str) -> MessageType:
    if not conversation_id or not is_well_formed_conversation_id(conversation_id):
        raise ValidationError("Malformed conversation id")
    if content is None or not content.strip():
        raise ValidationError("Message content cannot be empty")
    try:
        return MessageType(message_type)
    except ValueError:
        raise ValidationError(f"Unsupported message type: {message_type}") from None


async def append(
    conversation_id: str,
    sender_id: str,
    content: str,
    message_type: str,
    uow: UnitOfWork,
) -> Message:
    """Persist a message and advance the conversation's recency pointer.

    Both writes commit together; on failure nothing is stored.
    """
    msg_type = validate_new_message(conversation_id, content, message_type)

    conversation = await uow.conversations.get_by_id(conversation_id)
    conversation = await assert_conversation_access(sender_id, conversation, uow.participants)

    receiver_id: str | None = None
    if not conversation.is_group:
        members = await uow.participants.list_participants(conversation_id)
        receiver_id = next((p.user_id for p in members if p.user_id != sender_id), None)

    data = NewMessageDTO(
        conversation_id=conversation_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        message_type=msg_type.value,
        created_at=datetime.now(timezone.utc),
    )
    try:
        msg = await uow.messages_w.create(data)
        await uow.conversations_w.touch_last_message_at(conversation_id, msg.created_at)
        await uow.commit()
    except PersistenceError:
        await uow.rollback()
        raise
    return msg


async def history(
    conversation_id: str,
    user_id: str,
    limit: int,
    uow: UnitOfWork,
    *,
    before_id: int | None = None,
) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    await assert_conversation_access(user_id, conversation, uow.participants)
    limit = max(1, min(limit, settings.HISTORY_MAX_LIMIT))
    return await uow.messages.list_messages(conversation_id, before_id=before_id, limit=limit)
