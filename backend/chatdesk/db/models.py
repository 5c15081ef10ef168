"""
SQLAlchemy ORM models.

Relational rendition of the per-user document layout:
``users/{uid}/chats/{chatId}`` and ``users/{uid}/chats/{chatId}/messages/{id}``.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatdesk.db.base import Base


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


class ChatRecord(Base):
    """Chat session owned by a user."""

    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    # Messages go with their chat
    messages: Mapped[list[MessageRecord]] = relationship(
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="MessageRecord.timestamp",
    )

    __table_args__ = (
        Index("ix_chats_user_id_created_at", "user_id", "created_at"),
    )


class MessageRecord(Base):
    """Append-only message in a chat."""

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    chat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False
    )
    sender: Mapped[str] = mapped_column(String(8), nullable=False)  # user, ai
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    chat: Mapped[ChatRecord] = relationship(back_populates="messages")

    __table_args__ = (
        Index("ix_messages_chat_id_timestamp", "chat_id", "timestamp"),
    )
