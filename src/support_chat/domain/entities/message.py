from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: str
    sender_id: str | None
    sender_role: str
    sender_name: str
    content: str
    is_read: bool
    created_at: datetime
    client_msg_id: UUID | None = None
    seq: int | None = None

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.created_at, self.seq if self.seq is not None else 0
