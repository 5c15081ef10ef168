"""
Base session store interface.

Defines the contract every persistence backend must implement: a keyed
record store for sessions and an append-only, timestamp-ordered log of
messages per session. All operations are scoped to one user.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable

from chatdesk.core import ErrorCode, StoreError, get_logger, metrics
from chatdesk.models import DeletionResult, Message, ProviderId, Sender, Session

logger = get_logger(__name__)


class SessionStore(ABC):
    """
    Abstract base class for session persistence.

    Timestamps (``Session.created_at`` and ``Message.timestamp``) are assigned
    by the store at write time, never by the caller.
    """

    async def aclose(self) -> None:
        """Close any underlying resources (optional)."""
        return None

    @abstractmethod
    async def list_sessions(self, user_id: str) -> list[Session]:
        """
        List a user's sessions, newest first.

        Raises:
            StoreError: If the backend cannot be read
        """
        ...

    @abstractmethod
    async def create_session(self, user_id: str, provider: ProviderId) -> Session:
        """
        Create a session pinned to ``provider`` with a fresh id.

        Raises:
            StoreError: If the record cannot be written
        """
        ...

    @abstractmethod
    async def list_messages(self, user_id: str, session_id: str) -> list[Message]:
        """
        List a session's messages in ascending timestamp order.

        An unknown session reads as an empty log.
        """
        ...

    @abstractmethod
    async def append_message(
        self, user_id: str, session_id: str, sender: Sender, content: str
    ) -> Message:
        """
        Append a message to a session's log.

        Returns:
            The stored Message, carrying the store-assigned timestamp

        Raises:
            SessionNotFoundError: If the session does not exist for this user
            StoreError: If the record cannot be written
        """
        ...

    @abstractmethod
    async def delete_session(self, user_id: str, session_id: str) -> None:
        """
        Delete a session and, with it, all of its messages.

        Deleting a session that does not exist is not an error.
        """
        ...

    async def delete_sessions(
        self,
        user_id: str,
        session_ids: Iterable[str],
        timeout: float | None = None,
    ) -> DeletionResult:
        """
        Delete several sessions one at a time, best-effort.

        Each delete is awaited before the next starts. A failing id, or one
        whose delete outlasts ``timeout`` seconds, is recorded in
        ``DeletionResult.failed`` and the loop carries on.
        """
        result = DeletionResult()
        for session_id in session_ids:
            try:
                await self._delete_within(user_id, session_id, timeout)
            except StoreError as exc:
                logger.warning(
                    "Session delete failed",
                    data={"session_id": session_id, "code": exc.code.value},
                )
                metrics.increment("session_delete_failures_total")
                result.failed.append(session_id)
                continue
            metrics.increment("sessions_deleted_total")
            result.deleted.append(session_id)
        return result

    async def _delete_within(
        self, user_id: str, session_id: str, timeout: float | None
    ) -> None:
        try:
            await asyncio.wait_for(self.delete_session(user_id, session_id), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise StoreError(
                "Store call timed out",
                details={"operation": "delete_session", "timeout_seconds": timeout},
                code=ErrorCode.STORE_TIMEOUT,
            ) from exc
