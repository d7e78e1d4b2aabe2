from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderRole
from support_chat.infrastructure.db.mappers import message as mapper
from support_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(self, conversation_id: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.seq.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_newest_first(self) -> list[Message]:
        stmt = select(MessageModel).order_by(
            MessageModel.created_at.desc(),
            MessageModel.seq.desc(),
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def exists(self, conversation_id: str) -> bool:
        stmt = (
            select(MessageModel.id)
            .where(MessageModel.conversation_id == conversation_id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message idempotently. Returns (message, created_flag)."""
        stmt = (
            pg_insert(MessageModel)
            .values(**mapper.entity_to_values(message))
            .on_conflict_do_nothing(constraint="uq_chat_message_idempotency")
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict on client_msg_id, hand back the stored record
        existing = await self._get_by_client_msg_id(message)
        assert existing is not None
        return existing, False

    async def _get_by_client_msg_id(self, message: Message) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.conversation_id == message.conversation_id,
            MessageModel.client_msg_id == message.client_msg_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def mark_read(self, conversation_id: str) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.conversation_id == conversation_id,
                MessageModel.is_read.is_(False),
                MessageModel.sender_role != SenderRole.ADMIN.value,
            )
            .values(is_read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
