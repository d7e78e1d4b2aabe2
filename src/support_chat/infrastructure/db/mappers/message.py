from __future__ import annotations

from support_chat.domain.entities.message import Message
from support_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        sender_role=model.sender_role,
        sender_name=model.sender_name,
        content=model.content,
        is_read=model.is_read,
        created_at=model.created_at,
        client_msg_id=model.client_msg_id,
        seq=model.seq,
    )


def entity_to_values(entity: Message) -> dict[str, object]:
    """Column values for an INSERT; seq is left to the identity column."""
    return {
        "id": entity.id,
        "conversation_id": entity.conversation_id,
        "sender_id": entity.sender_id,
        "sender_role": entity.sender_role,
        "sender_name": entity.sender_name,
        "content": entity.content,
        "is_read": entity.is_read,
        "client_msg_id": entity.client_msg_id,
        "created_at": entity.created_at,
    }
