"""Database models, engine, and session management."""

from chatdesk.db.base import Base
from chatdesk.db.engine import (
    create_db_engine,
    dispose_engine,
    get_engine,
    init_db,
    verify_database_connection,
)
from chatdesk.db.models import ChatRecord, MessageRecord
from chatdesk.db.session import create_session_factory

__all__ = [
    # Base
    "Base",
    # Engine
    "create_db_engine",
    "dispose_engine",
    "get_engine",
    "init_db",
    "verify_database_connection",
    # Session
    "create_session_factory",
    # Models
    "ChatRecord",
    "MessageRecord",
]
