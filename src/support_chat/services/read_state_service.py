from __future__ import annotations

import logging

from support_chat.application.dto.principal import Principal
from support_chat.application.exceptions import BadRequestError, NotFoundError
from support_chat.application.policies.permissions import assert_admin
from support_chat.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def mark_conversation_read(
    conversation_id: str,
    principal: Principal,
    uow: UnitOfWork,
) -> int:
    """Flag every unread guest/member message of the conversation as seen by staff."""
    assert_admin(principal)
    if not conversation_id.strip():
        raise BadRequestError("Missing required field: conversationId")
    if not await uow.messages.exists(conversation_id):
        raise NotFoundError("Conversation not found")

    updated = await uow.messages_w.mark_read(conversation_id)
    await uow.commit()
    logger.info(
        "Conversation %s marked read by %s (%d messages)",
        conversation_id, principal.subject_id, updated,
    )
    return updated
