from __future__ import annotations

from chat_delivery.application.dto.message import NewMessageDTO
from chat_delivery.domain.entities.message import Message
from chat_delivery.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        content=model.content,
        message_type=model.message_type,
        is_read=model.is_read,
        created_at=model.created_at,
    )


def dto_to_model(data: NewMessageDTO) -> MessageModel:
    return MessageModel(
        conversation_id=data.conversation_id,
        sender_id=data.sender_id,
        receiver_id=data.receiver_id,
        content=data.content,
        message_type=data.message_type,
        is_read=False,
        created_at=data.created_at,
    )
