"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Sequence
from uuid import UUID

import pytest

from support_chat.api.v1.schemas.conversation import ConversationResponse
from support_chat.api.v1.schemas.message import MessageResponse
from support_chat.application.dto.principal import ANONYMOUS, Principal
from support_chat.client.api import ChatApiError
from support_chat.client.widget import ChatEntry, WidgetState
from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderRole

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def guest_principal() -> Principal:
    return ANONYMOUS


@pytest.fixture
def member_principal() -> Principal:
    return Principal(role=SenderRole.MEMBER, subject_id="m_1", display_name="Sita Sharma")


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(role=SenderRole.ADMIN, subject_id="admin-1", display_name="Ram")


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def make_message(
    *,
    conversation_id: str = "guest_abc123",
    sender_role: str = SenderRole.GUEST,
    sender_name: str | None = None,
    content: str = "hello",
    is_read: bool = False,
    created_at: datetime | None = None,
    sender_id: str | None = None,
    client_msg_id: UUID | None = None,
) -> Message:
    if sender_name is None:
        sender_name = "Admin" if sender_role == SenderRole.ADMIN else "Guest"
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        sender_role=str(sender_role),
        sender_name=sender_name,
        content=content,
        is_read=is_read,
        created_at=created_at or datetime.now(timezone.utc),
        client_msg_id=client_msg_id,
    )


class FixedClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = T0) -> None:
        self._now = start

    def now(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        return sorted(
            (m for m in self._messages if m.conversation_id == conversation_id),
            key=lambda m: m.sort_key,
        )

    async def list_newest_first(self) -> list[Message]:
        return sorted(self._messages, key=lambda m: m.sort_key, reverse=True)

    async def exists(self, conversation_id: str) -> bool:
        return any(m.conversation_id == conversation_id for m in self._messages)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        if message.client_msg_id is not None:
            for m in self._reader._messages:
                if (
                    m.conversation_id == message.conversation_id
                    and m.client_msg_id == message.client_msg_id
                ):
                    return m, False
        stored = replace(message, seq=len(self._reader._messages) + 1)
        self._reader._messages.append(stored)
        return stored, True

    async def mark_read(self, conversation_id: str) -> int:
        updated = 0
        for i, m in enumerate(self._reader._messages):
            if (
                m.conversation_id == conversation_id
                and not m.is_read
                and m.sender_role != SenderRole.ADMIN
            ):
                self._reader._messages[i] = replace(m, is_read=True)
                updated += 1
        return updated


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    def add(self, *messages: Message) -> None:
        for m in messages:
            self.messages._messages.append(replace(m, seq=len(self.messages._messages) + 1))

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass


class FakeChatApi:
    """HTTP client stand-in; an append is stored before its response is released."""

    def __init__(self) -> None:
        self.server: list[MessageResponse] = []
        self.conversations: list[ConversationResponse] = []
        self.list_calls = 0
        self.list_conversation_calls = 0
        self.appended: list[dict] = []
        self.marked_read: list[str] = []
        self.fail_list = False
        self.fail_append = False
        self.fail_mark_read = False
        self.release_append: asyncio.Event | None = None

    def seed(self, conversation_id: str, sender_role: str, content: str) -> MessageResponse:
        msg = MessageResponse(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_role=sender_role,
            sender_name="Admin" if sender_role == "admin" else "Guest",
            content=content,
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        self.server.append(msg)
        return msg

    def seed_conversation(self, conversation_id: str, unread_count: int = 0) -> None:
        self.conversations.append(
            ConversationResponse(
                conversation_id=conversation_id,
                last_message="hello",
                last_message_at=datetime.now(timezone.utc),
                display_name="Guest",
                role="guest",
                unread_count=unread_count,
            )
        )

    async def list_messages(self, conversation_id: str) -> list[MessageResponse]:
        self.list_calls += 1
        if self.fail_list:
            raise ChatApiError(500, "Internal Server Error")
        return [m for m in self.server if m.conversation_id == conversation_id]

    async def append_message(
        self,
        *,
        conversation_id: str,
        sender_role: str,
        content: str,
        sender_name: str | None = None,
        sender_id: str | None = None,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse:
        self.appended.append(
            {
                "conversation_id": conversation_id,
                "sender_role": sender_role,
                "content": content,
                "sender_name": sender_name,
                "sender_id": sender_id,
                "client_msg_id": client_msg_id,
            }
        )
        if self.fail_append:
            raise ChatApiError(500, "Internal Server Error")
        msg = MessageResponse(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            sender_role=sender_role,
            sender_name=sender_name or "Guest",
            content=content,
            is_read=False,
            created_at=datetime.now(timezone.utc),
            client_msg_id=client_msg_id,
        )
        self.server.append(msg)
        if self.release_append is not None:
            await self.release_append.wait()
        return msg

    async def list_conversations(self) -> list[ConversationResponse]:
        self.list_conversation_calls += 1
        if self.fail_list:
            raise ChatApiError(500, "Internal Server Error")
        return list(self.conversations)

    async def mark_read(self, conversation_id: str) -> int:
        if self.fail_mark_read:
            raise ChatApiError(500, "Internal Server Error")
        self.marked_read.append(conversation_id)
        updated = 0
        for i, conv in enumerate(self.conversations):
            if conv.conversation_id == conversation_id:
                updated = conv.unread_count
                self.conversations[i] = conv.model_copy(update={"unread_count": 0})
        return updated


class RecordingView:
    def __init__(self) -> None:
        self.renders: list[tuple[tuple[ChatEntry, ...], WidgetState]] = []
        self.scrolls = 0

    def render(self, entries: Sequence[ChatEntry], state: WidgetState) -> None:
        self.renders.append((tuple(entries), state))

    def scroll_to_latest(self) -> None:
        self.scrolls += 1


async def settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)
