from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.participant import Participant
from chat_delivery.infrastructure.db.errors import translate_db_errors
from chat_delivery.infrastructure.db.mappers import conversation as mapper
from chat_delivery.infrastructure.db.mappers import participant as participant_mapper
from chat_delivery.infrastructure.db.models.conversation import ConversationModel
from chat_delivery.infrastructure.db.models.participant import ParticipantModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    @translate_db_errors
    async def get_by_pair_key(self, pair_key: str) -> Conversation | None:
        stmt = select(ConversationModel).where(ConversationModel.pair_key == pair_key)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    @translate_db_errors
    async def list_for_user(self, user_id: str, *, limit: int = 100) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .join(
                ParticipantModel,
                ParticipantModel.conversation_id == ConversationModel.id,
            )
            .where(ParticipantModel.user_id == user_id)
            .order_by(
                ConversationModel.last_message_at.desc().nullslast(),
                ConversationModel.created_at.desc(),
                ConversationModel.id,
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def create_direct(
        self,
        conversation: Conversation,
        participants: list[Participant],
    ) -> tuple[Conversation, bool]:
        """Insert the conversation unless its pair key is taken.

        The unique constraint on pair_key decides concurrent races; the loser
        reads back the winner's row.
        """
        stmt = (
            pg_insert(ConversationModel)
            .values(**mapper.entity_to_values(conversation))
            .on_conflict_do_nothing(constraint="uq_conversations_pair_key")
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is None:
            existing = await self._session.execute(
                select(ConversationModel).where(
                    ConversationModel.pair_key == conversation.pair_key
                )
            )
            return mapper.model_to_entity(existing.scalar_one()), False

        self._session.add_all([participant_mapper.entity_to_model(p) for p in participants])
        await self._session.flush()
        return mapper.model_to_entity(row), True

    @translate_db_errors
    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    @translate_db_errors
    async def touch_last_message_at(self, conversation_id: str, ts: datetime) -> None:
        stmt = (
            update(ConversationModel)
            .where(
                ConversationModel.id == conversation_id,
                or_(
                    ConversationModel.last_message_at.is_(None),
                    ConversationModel.last_message_at <= ts,
                ),
            )
            .values(last_message_at=ts)
        )
        await self._session.execute(stmt)
