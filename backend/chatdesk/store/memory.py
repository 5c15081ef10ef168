"""In-process session store backed by plain dictionaries."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from chatdesk.core import MonotonicClock, SessionNotFoundError, get_logger
from chatdesk.models import Message, ProviderId, Sender, Session
from chatdesk.store.base import SessionStore

logger = get_logger(__name__)


@dataclass
class _ChatEntry:
    session: Session
    messages: list[Message] = field(default_factory=list)


class InMemorySessionStore(SessionStore):
    """Keeps every user's sessions and message logs in memory.

    Nothing survives the process; useful for tests and throwaway runs.
    """

    def __init__(self, clock: MonotonicClock | None = None) -> None:
        self._clock = clock or MonotonicClock()
        self._chats: dict[str, dict[str, _ChatEntry]] = {}

    def _user_chats(self, user_id: str) -> dict[str, _ChatEntry]:
        return self._chats.setdefault(user_id, {})

    async def list_sessions(self, user_id: str) -> list[Session]:
        sessions = [entry.session for entry in self._user_chats(user_id).values()]
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    async def create_session(self, user_id: str, provider: ProviderId) -> Session:
        session = Session(
            id=str(uuid.uuid4()),
            created_at=self._clock.now(),
            provider=provider,
        )
        self._user_chats(user_id)[session.id] = _ChatEntry(session=session)
        logger.debug("Created session", data={"session_id": session.id})
        return session

    async def list_messages(self, user_id: str, session_id: str) -> list[Message]:
        entry = self._user_chats(user_id).get(session_id)
        if entry is None:
            return []
        return list(entry.messages)

    async def append_message(
        self, user_id: str, session_id: str, sender: Sender, content: str
    ) -> Message:
        entry = self._user_chats(user_id).get(session_id)
        if entry is None:
            raise SessionNotFoundError(session_id)
        message = Message(sender=Sender(sender), content=content, timestamp=self._clock.now())
        entry.messages.append(message)
        return message

    async def delete_session(self, user_id: str, session_id: str) -> None:
        self._user_chats(user_id).pop(session_id, None)
