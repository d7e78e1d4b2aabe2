from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class AppendMessageDTO:
    """Raw append request as declared by the caller, before validation."""

    conversation_id: str | None
    sender_role: str | None
    content: str | None
    sender_name: str | None = None
    sender_id: str | None = None
    client_msg_id: UUID | None = None
