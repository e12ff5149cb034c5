from __future__ import annotations

from datetime import datetime

from pydantic import Field

from chat_delivery.application.dto.conversation import ConversationSummaryDTO
from chat_delivery.infrastructure.ws.protocol import CamelModel


class CreateConversationRequest(CamelModel):
    participant_id: str = Field(min_length=1)


class CreateConversationResponse(CamelModel):
    conversation_id: str


class CreateGroupRequest(CamelModel):
    name: str
    member_ids: list[str] = Field(default_factory=list)


class AddParticipantRequest(CamelModel):
    user_id: str = Field(min_length=1)


class UserSummary(CamelModel):
    id: str
    username: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None


class ConversationResponse(CamelModel):
    id: str
    name: str | None
    is_group: bool
    last_message_at: datetime | None
    created_at: datetime


class ConversationSummaryResponse(ConversationResponse):
    participant_ids: list[str]
    other_user: UserSummary | None = None

    @classmethod
    def from_dto(cls, dto: ConversationSummaryDTO) -> ConversationSummaryResponse:
        conv = dto.conversation
        return cls(
            id=conv.id,
            name=conv.name,
            is_group=conv.is_group,
            last_message_at=conv.last_message_at,
            created_at=conv.created_at,
            participant_ids=dto.participant_ids,
            other_user=UserSummary.model_validate(dto.other_user) if dto.other_user else None,
        )
