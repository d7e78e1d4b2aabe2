from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from support_chat.domain.entities.conversation import ConversationSummary


class ConversationResponse(BaseModel):
    conversation_id: str
    last_message: str
    last_message_at: datetime
    display_name: str
    role: str
    unread_count: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_entity(cls, summary: ConversationSummary) -> ConversationResponse:
        return cls(
            conversation_id=summary.conversation_id,
            last_message=summary.last_message,
            last_message_at=summary.last_message_at,
            display_name=summary.display_name,
            role=summary.role,
            unread_count=summary.unread_count,
        )


class MarkReadResponse(BaseModel):
    conversation_id: str
    updated: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
