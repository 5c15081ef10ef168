"""Database repositories for data access."""

from chatdesk.db.repositories.chat import (
    create_chat,
    create_message,
    delete_chat,
    get_chat_messages,
    get_user_chat,
    list_user_chats,
)

__all__ = [
    "create_chat",
    "list_user_chats",
    "get_user_chat",
    "delete_chat",
    "create_message",
    "get_chat_messages",
]
