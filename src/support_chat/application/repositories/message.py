from __future__ import annotations

from typing import Protocol

from support_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of one conversation, oldest first."""
        ...

    async def list_newest_first(self) -> list[Message]:
        """Every stored message, most recent first."""
        ...

    async def exists(self, conversation_id: str) -> bool: ...


class MessageWriter(Protocol):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message. Return (message, created). On client_msg_id conflict return the stored one."""
        ...

    async def mark_read(self, conversation_id: str) -> int:
        """Flag unread non-admin messages as read. Return the number updated."""
        ...
