from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from support_chat.application.dto.principal import Principal
from support_chat.application.policies.permissions import assert_admin
from support_chat.application.uow import UnitOfWork
from support_chat.domain.entities.conversation import ConversationSummary
from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderRole

UNKNOWN_GUEST_NAME = "Unknown Guest"


@dataclass(slots=True)
class _ConversationAccumulator:
    latest: Message
    participant: Message | None = None
    unread: int = 0

    def add(self, msg: Message) -> None:
        # Staff messages never name the conversation and never count as unread
        if msg.sender_role == SenderRole.ADMIN:
            return
        if self.participant is None:
            self.participant = msg
        if not msg.is_read:
            self.unread += 1

    def summary(self) -> ConversationSummary:
        if self.participant is not None:
            display_name = self.participant.sender_name
            role = self.participant.sender_role
        else:
            display_name = UNKNOWN_GUEST_NAME
            role = SenderRole.GUEST.value
        return ConversationSummary(
            conversation_id=self.latest.conversation_id,
            last_message=self.latest.content,
            last_message_at=self.latest.created_at,
            display_name=display_name,
            role=role,
            unread_count=self.unread,
        )


def summarize_conversations(messages: Iterable[Message]) -> list[ConversationSummary]:
    """Group messages by conversation id into summaries, most recently active first.

    Messages are walked newest first, so the first message seen in a group is
    its last message and the first non-staff sender seen is the participant
    the conversation is shown under.
    """
    groups: dict[str, _ConversationAccumulator] = {}
    for msg in sorted(messages, key=lambda m: m.sort_key, reverse=True):
        acc = groups.get(msg.conversation_id)
        if acc is None:
            acc = groups[msg.conversation_id] = _ConversationAccumulator(latest=msg)
        acc.add(msg)

    summaries = [acc.summary() for acc in groups.values()]
    summaries.sort(key=lambda s: s.last_message_at, reverse=True)
    return summaries


async def list_conversations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[ConversationSummary]:
    assert_admin(principal)
    messages = await uow.messages.list_newest_first()
    return summarize_conversations(messages)
