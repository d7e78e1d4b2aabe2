"""Seed development data: a guest conversation and a member conversation."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from support_chat.client.identity import new_guest_id
from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderRole
from support_chat.infrastructure.db.session import AsyncSessionLocal, engine
from support_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

ADMIN_ID = "admin-1"
MEMBER_ID = "member-42"


async def seed() -> None:
    guest_conv = new_guest_id()
    start = datetime.now(timezone.utc) - timedelta(minutes=30)

    conversations = {
        guest_conv: [
            (SenderRole.GUEST, None, "Guest", "Hi"),
            (SenderRole.ADMIN, ADMIN_ID, "Admin", "Hello, how can we help?"),
            (SenderRole.GUEST, None, "Guest", "Question about membership"),
        ],
        MEMBER_ID: [
            (SenderRole.MEMBER, MEMBER_ID, "Sita Sharma", "When is the next event?"),
            (SenderRole.ADMIN, ADMIN_ID, "Admin", "Saturday at the community hall."),
        ],
    }

    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        step = 0
        for conversation_id, lines in conversations.items():
            for role, sender_id, name, content in lines:
                step += 1
                await uow.messages_w.create_if_not_exists(
                    Message(
                        id=uuid.uuid4(),
                        conversation_id=conversation_id,
                        sender_id=sender_id,
                        sender_role=role.value,
                        sender_name=name,
                        content=content,
                        is_read=False,
                        created_at=start + timedelta(minutes=step),
                    )
                )
        await uow.commit()

    logger.info("Seeded conversations %s", ", ".join(conversations))


async def _run() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(_run())


if __name__ == "__main__":
    main()
