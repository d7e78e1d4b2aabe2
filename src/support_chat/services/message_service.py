from __future__ import annotations

import logging
import uuid

from support_chat.application.dto.message import AppendMessageDTO
from support_chat.application.dto.principal import Principal
from support_chat.application.exceptions import BadRequestError
from support_chat.application.policies.permissions import (
    assert_conversation_access,
    resolve_sender_role,
)
from support_chat.application.ports.clock import Clock, SystemClock
from support_chat.application.uow import UnitOfWork
from support_chat.config import settings
from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderRole

logger = logging.getLogger(__name__)

_system_clock = SystemClock()


def _require(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise BadRequestError(f"Missing required field: {field}")
    return value.strip()


def _default_sender_name(role: SenderRole) -> str:
    if role == SenderRole.ADMIN:
        return settings.CHAT_DEFAULT_STAFF_NAME
    return settings.CHAT_DEFAULT_SENDER_NAME


async def list_messages(
    conversation_id: str | None,
    principal: Principal,
    uow: UnitOfWork,
) -> list[Message]:
    """Return the conversation oldest first; an unknown id yields an empty list."""
    conversation_id = _require(conversation_id, "conversationId")
    assert_conversation_access(principal, conversation_id)
    return await uow.messages.list_messages(conversation_id)


async def append_message(
    request: AppendMessageDTO,
    principal: Principal,
    uow: UnitOfWork,
    clock: Clock = _system_clock,
) -> tuple[Message, bool]:
    """Append a message to a conversation.

    Role and sender id are taken from the principal; the declared senderRole
    must match it. A missing senderName falls back to the session display
    name, then to "Guest"; staff replies fall back to "Admin" instead so a
    reply is never shown under the visitor default.
    Returns (message, created). When the request carries a
    client_msg_id that was already stored for this conversation, the stored
    message is returned with created=False.
    """
    conversation_id = _require(request.conversation_id, "conversationId")
    declared_role = _require(request.sender_role, "senderRole")
    content = _require(request.content, "content")

    if len(content) > settings.CHAT_MAX_CONTENT_LENGTH:
        raise BadRequestError(
            f"content exceeds {settings.CHAT_MAX_CONTENT_LENGTH} characters"
        )

    role = resolve_sender_role(principal, declared_role)
    assert_conversation_access(principal, conversation_id)

    if request.sender_id and request.sender_id != principal.subject_id:
        logger.warning(
            "Ignoring declared senderId=%s for %s session %s",
            request.sender_id, role, principal.subject_id,
        )

    sender_name = (
        (request.sender_name or "").strip()
        or principal.display_name
        or _default_sender_name(role)
    )

    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=principal.subject_id,
        sender_role=role.value,
        sender_name=sender_name,
        content=content,
        is_read=False,
        created_at=clock.now(),
        client_msg_id=request.client_msg_id,
    )

    msg, created = await uow.messages_w.create_if_not_exists(msg)

    if created:
        await uow.commit()
        logger.info(
            "Message %s appended to conversation %s by %s",
            msg.id, conversation_id, role,
        )
    else:
        logger.debug(
            "Duplicate client_msg_id %s in conversation %s, returning stored message",
            request.client_msg_id, conversation_id,
        )

    return msg, created
