from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Query-time view over the messages sharing one conversation id."""

    conversation_id: str
    last_message: str
    last_message_at: datetime
    display_name: str
    role: str
    unread_count: int
