from __future__ import annotations

import logging
from datetime import datetime, timezone

from chat_delivery.application.dto.conversation import ConversationSummaryDTO
from chat_delivery.application.exceptions import NotFoundError, PersistenceError, ValidationError
from chat_delivery.application.policies.permissions import assert_conversation_access
from chat_delivery.application.uow import UnitOfWork
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.participant import Participant
from chat_delivery.domain.value_objects.ids import direct_pair_key, new_conversation_id

logger = logging.getLogger(__name__)


async def get_or_create_direct_conversation(
    user_id: str,
    participant_id: str,
    uow: UnitOfWork,
) -> tuple[Conversation, bool]:
    """Return the two-person conversation between the users, creating it once.

    Returns (conversation, created). The pair is unordered: (A, B) and (B, A)
    resolve to the same row.
    """
    participant_id = (participant_id or "").strip()
    if not participant_id:
        raise ValidationError("participantId is required")
    if participant_id == user_id:
        raise ValidationError("Cannot start a conversation with yourself")

    pair_key = direct_pair_key(user_id, participant_id)
    existing = await uow.conversations.get_by_pair_key(pair_key)
    if existing is not None:
        return existing, False

    if not await uow.users.exists(participant_id):
        raise NotFoundError("User not found")

    now = datetime.now(timezone.utc)
    conversation = Conversation(
        id=new_conversation_id(),
        name=None,
        is_group=False,
        pair_key=pair_key,
        last_message_at=now,
        created_at=now,
    )
    participants = [
        Participant(conversation_id=conversation.id, user_id=uid, joined_at=now)
        for uid in (user_id, participant_id)
    ]
    try:
        conversation, created = await uow.conversations_w.create_direct(conversation, participants)
        await uow.commit()
    except PersistenceError:
        await uow.rollback()
        raise

    if created:
        logger.info("Created conversation %s for %s", conversation.id, pair_key)
    return conversation, created


async def create_group_conversation(
    creator_id: str,
    name: str,
    member_ids: list[str],
    uow: UnitOfWork,
) -> Conversation:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")

    members: list[str] = [creator_id]
    for raw in member_ids:
        uid = raw.strip()
        if uid and uid not in members:
            members.append(uid)
    if len(members) < 2:
        raise ValidationError("A group needs at least one other member")

    for uid in members[1:]:
        if not await uow.users.exists(uid):
            raise NotFoundError(f"User {uid} not found")

    now = datetime.now(timezone.utc)
    conversation = Conversation(
        id=new_conversation_id(),
        name=name,
        is_group=True,
        pair_key=None,
        last_message_at=now,
        created_at=now,
    )
    try:
        conversation = await uow.conversations_w.create(conversation)
        for uid in members:
            await uow.participants_w.add(
                Participant(conversation_id=conversation.id, user_id=uid, joined_at=now)
            )
        await uow.commit()
    except PersistenceError:
        await uow.rollback()
        raise

    logger.info("Created group %s with %d members", conversation.id, len(members))
    return conversation


async def add_participant(
    conversation_id: str,
    actor_id: str,
    user_id: str,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    conversation = await assert_conversation_access(actor_id, conversation, uow.participants)
    if not conversation.is_group:
        raise ValidationError("Members can only be added to group conversations")

    user_id = (user_id or "").strip()
    if not user_id:
        raise ValidationError("userId is required")
    if await uow.participants.is_participant(conversation_id, user_id):
        return conversation
    if not await uow.users.exists(user_id):
        raise NotFoundError("User not found")

    try:
        await uow.participants_w.add(
            Participant(
                conversation_id=conversation_id,
                user_id=user_id,
                joined_at=datetime.now(timezone.utc),
            )
        )
        await uow.commit()
    except PersistenceError:
        await uow.rollback()
        raise
    return conversation


async def list_user_conversations(
    user_id: str,
    limit: int,
    uow: UnitOfWork,
) -> list[ConversationSummaryDTO]:
    conversations = await uow.conversations.list_for_user(user_id, limit=limit)
    links = await uow.participants.list_for_conversations([c.id for c in conversations])

    members: dict[str, list[str]] = {}
    for link in links:
        members.setdefault(link.conversation_id, []).append(link.user_id)

    others: dict[str, str] = {}
    for conv in conversations:
        if conv.is_group:
            continue
        other = next((uid for uid in members.get(conv.id, []) if uid != user_id), None)
        if other is not None:
            others[conv.id] = other

    profiles = await uow.users.get_profiles(sorted(set(others.values())))
    return [
        ConversationSummaryDTO(
            conversation=conv,
            participant_ids=members.get(conv.id, []),
            other_user=profiles.get(others[conv.id]) if conv.id in others else None,
        )
        for conv in conversations
    ]
