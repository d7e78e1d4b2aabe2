from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from support_chat.application.dto.message import AppendMessageDTO
from support_chat.domain.entities.message import Message


class SendMessageRequest(BaseModel):
    # Every field is optional here so that missing ones surface as 400, not 422
    conversation_id: str | None = None
    sender_role: str | None = None
    sender_name: str | None = None
    content: str | None = None
    sender_id: str | None = None
    client_msg_id: UUID | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dto(self) -> AppendMessageDTO:
        return AppendMessageDTO(
            conversation_id=self.conversation_id,
            sender_role=self.sender_role,
            content=self.content,
            sender_name=self.sender_name,
            sender_id=self.sender_id,
            client_msg_id=self.client_msg_id,
        )


class MessageResponse(BaseModel):
    id: UUID = Field(alias="_id")
    conversation_id: str
    sender_id: str | None = None
    sender_role: str
    sender_name: str
    content: str
    is_read: bool
    created_at: datetime
    client_msg_id: UUID | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_entity(cls, msg: Message) -> MessageResponse:
        return cls(
            id=msg.id,
            conversation_id=msg.conversation_id,
            sender_id=msg.sender_id,
            sender_role=msg.sender_role,
            sender_name=msg.sender_name,
            content=msg.content,
            is_read=msg.is_read,
            created_at=msg.created_at,
            client_msg_id=msg.client_msg_id,
        )
