from __future__ import annotations

from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        name=model.name,
        is_group=model.is_group,
        pair_key=model.pair_key,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
    )


def entity_to_values(entity: Conversation) -> dict[str, object]:
    return {
        "id": entity.id,
        "name": entity.name,
        "is_group": entity.is_group,
        "pair_key": entity.pair_key,
        "last_message_at": entity.last_message_at,
        "created_at": entity.created_at,
    }


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(**entity_to_values(entity))
