"""Session persistence interfaces and implementations."""

from chatdesk.store.base import SessionStore
from chatdesk.store.memory import InMemorySessionStore
from chatdesk.store.sql import SqlSessionStore

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "SqlSessionStore",
]
