from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Identity,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from support_chat.infrastructure.db.base import Base


class MessageModel(Base):
    __tablename__ = "chat_messages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    # insertion order, breaks ties between equal created_at values
    seq: Mapped[int] = mapped_column(BigInteger, Identity(), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)
    sender_name: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    client_msg_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )

    __table_args__ = (
        UniqueConstraint(
            "conversation_id",
            "client_msg_id",
            name="uq_chat_message_idempotency",
        ),
        CheckConstraint(
            "sender_role IN ('admin', 'member', 'guest')",
            name="sender_role_known",
        ),
        CheckConstraint("length(btrim(content)) > 0", name="content_not_blank"),
        Index("ix_chat_messages_conversation_timeline", "conversation_id", "created_at", "seq"),
        # inbox scan reads this backwards
        Index("ix_chat_messages_recent", "created_at", "seq"),
    )
