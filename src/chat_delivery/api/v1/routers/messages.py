from __future__ import annotations

from fastapi import APIRouter, Query, status

from chat_delivery.api.deps import CoordinatorDep, CurrentPrincipal, UoWDep
from chat_delivery.api.v1.schemas.message import (
    MarkReadResponse,
    MessageResponse,
    SendMessageRequest,
)
from chat_delivery.config import settings
from chat_delivery.services import message_service, read_state_service

router = APIRouter(prefix="/api/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
    # Values above HISTORY_MAX_LIMIT are clamped by the service.
    limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1),
    before: int | None = Query(None, ge=1),
) -> list[MessageResponse]:
    messages = await message_service.history(
        conversation_id, principal.user_id, limit, uow, before_id=before,
    )
    return [MessageResponse.model_validate(m) for m in messages]


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    coordinator: CoordinatorDep,
) -> MessageResponse:
    msg = await coordinator.send(
        conversation_id,
        principal.user_id,
        body.content,
        body.message_type.value,
    )
    return MessageResponse.model_validate(msg)


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_read(
    conversation_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MarkReadResponse:
    updated = await read_state_service.mark_read(conversation_id, principal.user_id, uow)
    return MarkReadResponse(updated=updated)
