from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_delivery.domain.entities.participant import Participant
from chat_delivery.infrastructure.db.errors import translate_db_errors
from chat_delivery.infrastructure.db.mappers import participant as mapper
from chat_delivery.infrastructure.db.models.participant import ParticipantModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        stmt = (
            select(ParticipantModel.id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @translate_db_errors
    async def list_participants(self, conversation_id: str) -> list[Participant]:
        stmt = (
            select(ParticipantModel)
            .where(ParticipantModel.conversation_id == conversation_id)
            .order_by(ParticipantModel.joined_at, ParticipantModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    @translate_db_errors
    async def list_for_conversations(self, conversation_ids: list[str]) -> list[Participant]:
        if not conversation_ids:
            return []
        stmt = (
            select(ParticipantModel)
            .where(ParticipantModel.conversation_id.in_(conversation_ids))
            .order_by(ParticipantModel.joined_at, ParticipantModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def add(self, participant: Participant) -> None:
        model = mapper.entity_to_model(participant)
        self._session.add(model)
        await self._session.flush()
