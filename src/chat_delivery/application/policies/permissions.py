from __future__ import annotations

from chat_delivery.application.exceptions import ForbiddenError, NotFoundError
from chat_delivery.application.repositories.participant import ParticipantReader
from chat_delivery.domain.entities.conversation import Conversation


async def assert_conversation_access(
    user_id: str,
    conversation: Conversation | None,
    participants: ParticipantReader,
) -> Conversation:
    """Raise if conversation doesn't exist or the user is not a member."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    is_member = await participants.is_participant(conversation.id, user_id)
    if not is_member:
        raise ForbiddenError("Not a participant of this conversation")

    return conversation
