from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_delivery.application.dto.message import NewMessageDTO
from chat_delivery.domain.entities.message import Message
from chat_delivery.infrastructure.db.errors import translate_db_errors
from chat_delivery.infrastructure.db.mappers import message as mapper
from chat_delivery.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def list_messages(
        self,
        conversation_id: str,
        *,
        before_id: int | None = None,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            # Identity ids grow with insert order; they are both the sort key and the cursor.
            .order_by(MessageModel.id.desc())
            .limit(limit)
        )
        if before_id is not None:
            stmt = stmt.where(MessageModel.id < before_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def create(self, data: NewMessageDTO) -> Message:
        model = mapper.dto_to_model(data)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    @translate_db_errors
    async def mark_read(self, conversation_id: str, reader_id: str) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.conversation_id == conversation_id,
                MessageModel.sender_id != reader_id,
                MessageModel.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
