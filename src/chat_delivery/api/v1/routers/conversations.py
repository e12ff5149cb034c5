from __future__ import annotations

from fastapi import APIRouter, Query, status

from chat_delivery.api.deps import CurrentPrincipal, UoWDep
from chat_delivery.api.v1.schemas.conversation import (
    AddParticipantRequest,
    ConversationResponse,
    ConversationSummaryResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    CreateGroupRequest,
)
from chat_delivery.config import settings
from chat_delivery.services import conversation_service

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationSummaryResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(
        settings.CONVERSATION_LIST_LIMIT, ge=1, le=settings.CONVERSATION_LIST_LIMIT,
    ),
) -> list[ConversationSummaryResponse]:
    summaries = await conversation_service.list_user_conversations(
        principal.user_id, limit, uow,
    )
    return [ConversationSummaryResponse.from_dto(s) for s in summaries]


@router.post("", response_model=CreateConversationResponse)
async def get_or_create_conversation(
    body: CreateConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> CreateConversationResponse:
    conv, _created = await conversation_service.get_or_create_direct_conversation(
        principal.user_id, body.participant_id, uow,
    )
    return CreateConversationResponse(conversation_id=conv.id)


@router.post("/groups", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    body: CreateGroupRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.create_group_conversation(
        principal.user_id, body.name, body.member_ids, uow,
    )
    return ConversationResponse.model_validate(conv)


@router.post("/{conversation_id}/participants", response_model=ConversationResponse)
async def add_participant(
    conversation_id: str,
    body: AddParticipantRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.add_participant(
        conversation_id, principal.user_id, body.user_id, uow,
    )
    return ConversationResponse.model_validate(conv)
