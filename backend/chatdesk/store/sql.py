"""SQLAlchemy-backed session store."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession
from sqlalchemy.orm import sessionmaker

from chatdesk.core import MonotonicClock, SessionNotFoundError, StoreError, get_logger
from chatdesk.db.models import ChatRecord, MessageRecord
from chatdesk.db.repositories import (
    create_chat,
    create_message,
    delete_chat,
    get_chat_messages,
    get_user_chat,
    list_user_chats,
)
from chatdesk.models import Message, ProviderId, Sender, Session
from chatdesk.store.base import SessionStore

logger = get_logger(__name__)

T = TypeVar("T")


def _to_session(record: ChatRecord) -> Session:
    return Session(
        id=record.id,
        created_at=record.created_at,
        provider=ProviderId.parse(record.provider),
    )


def _to_message(record: MessageRecord) -> Message:
    return Message(
        sender=Sender(record.sender),
        content=record.content,
        timestamp=record.timestamp,
    )


class SqlSessionStore(SessionStore):
    """Session store over the ``chats`` and ``messages`` tables."""

    def __init__(
        self,
        session_factory: sessionmaker[DbSession],
        clock: MonotonicClock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or MonotonicClock()

    @contextmanager
    def _db(self, operation: str) -> Iterator[DbSession]:
        """Open a database session, mapping driver errors to StoreError."""
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Store operation failed",
                data={"operation": operation, "error": str(exc)},
            )
            raise StoreError(
                "Store operation failed", details={"operation": operation}
            ) from exc
        finally:
            db.close()

    def _run_sync(self, operation: str, fn: Callable[[DbSession], T]) -> T:
        with self._db(operation) as db:
            return fn(db)

    async def _run(self, operation: str, fn: Callable[[DbSession], T]) -> T:
        """Run blocking database work in a worker thread."""
        return await asyncio.to_thread(self._run_sync, operation, fn)

    async def list_sessions(self, user_id: str) -> list[Session]:
        records = await self._run("list_sessions", lambda db: list_user_chats(db, user_id))
        return [_to_session(record) for record in records]

    async def create_session(self, user_id: str, provider: ProviderId) -> Session:
        created_at = self._clock.now()
        record = await self._run(
            "create_session",
            lambda db: create_chat(db, user_id, ProviderId(provider).value, created_at),
        )
        logger.debug("Created session", data={"session_id": record.id})
        return _to_session(record)

    async def list_messages(self, user_id: str, session_id: str) -> list[Message]:
        records = await self._run(
            "list_messages", lambda db: get_chat_messages(db, user_id, session_id)
        )
        return [_to_message(record) for record in records]

    async def append_message(
        self, user_id: str, session_id: str, sender: Sender, content: str
    ) -> Message:
        def append(db: DbSession) -> MessageRecord:
            if get_user_chat(db, user_id, session_id) is None:
                raise SessionNotFoundError(session_id)
            return create_message(
                db,
                chat_id=session_id,
                sender=Sender(sender).value,
                content=content,
                timestamp=self._clock.now(),
            )

        return _to_message(await self._run("append_message", append))

    async def delete_session(self, user_id: str, session_id: str) -> None:
        deleted = await self._run(
            "delete_session", lambda db: delete_chat(db, user_id, session_id)
        )
        if not deleted:
            logger.debug("Session already absent", data={"session_id": session_id})
