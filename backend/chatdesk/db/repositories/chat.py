"""Repository helpers for chats and messages."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from chatdesk.db.models import ChatRecord, MessageRecord


def create_chat(
    db: Session,
    user_id: str,
    provider: str,
    created_at: datetime,
) -> ChatRecord:
    """Create a new chat for the given user."""
    chat = ChatRecord(user_id=user_id, provider=provider, created_at=created_at)
    db.add(chat)
    db.commit()
    db.refresh(chat)
    return chat


def get_user_chat(db: Session, user_id: str, chat_id: str) -> ChatRecord | None:
    """Fetch chat owned by user."""
    stmt = select(ChatRecord).where(
        ChatRecord.id == chat_id,
        ChatRecord.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def list_user_chats(db: Session, user_id: str) -> list[ChatRecord]:
    """List chats belonging to the user, newest first."""
    stmt = (
        select(ChatRecord)
        .where(ChatRecord.user_id == user_id)
        .order_by(ChatRecord.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def delete_chat(db: Session, user_id: str, chat_id: str) -> bool:
    """Delete a chat and cascade its messages."""
    chat = get_user_chat(db, user_id, chat_id)
    if not chat:
        return False
    db.delete(chat)
    db.commit()
    return True


def create_message(
    db: Session,
    chat_id: str,
    sender: str,
    content: str,
    timestamp: datetime,
) -> MessageRecord:
    """Insert a chat message."""
    message = MessageRecord(
        chat_id=chat_id,
        sender=sender,
        content=content,
        timestamp=timestamp,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def get_chat_messages(db: Session, user_id: str, chat_id: str) -> list[MessageRecord]:
    """Get all messages for a user's chat ordered by timestamp."""
    stmt = (
        select(MessageRecord)
        .join(ChatRecord, MessageRecord.chat_id == ChatRecord.id)
        .where(MessageRecord.chat_id == chat_id, ChatRecord.user_id == user_id)
        .order_by(MessageRecord.timestamp.asc())
    )
    return list(db.execute(stmt).scalars().all())
