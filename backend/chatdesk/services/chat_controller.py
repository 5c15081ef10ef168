"""Chat controller: session lifecycle, send/receive cycle and bulk deletion."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Any, TypeVar

from chatdesk.config import Settings, get_settings
from chatdesk.core import (
    ErrorCode,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
    bind_log_context,
    get_logger,
    metrics,
    utcnow,
)
from chatdesk.models import DeletionResult, Message, ProviderId, Sender, Session, User
from chatdesk.providers import ProviderGateway
from chatdesk.store import SessionStore

logger = get_logger(__name__)

T = TypeVar("T")

AUTH_ROUTE = "/login"


class ControllerState(str, Enum):
    """Lifecycle states of a ChatController."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    SENDING = "sending"
    HALTED = "halted"  # no identity; redirected to authentication
    FAILED = "failed"  # initial load failed; start() may be retried


class ControllerEvent(str, Enum):
    """Notifications emitted to the presentation layer."""

    STATE_CHANGED = "state_changed"
    SESSIONS_DELETED = "sessions_deleted"


EventHandler = Callable[[ControllerEvent, Any], None]


class ChatController:
    """Owns the active-session state machine for one user.

    The controller is driven from a single event loop. Every store and
    gateway call is a suspension point; handlers are guarded by state so a
    second handler cannot run while one is parked on a send or a load.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: ProviderGateway,
        user: User | None,
        navigate: Callable[[str], Any],
        *,
        settings: Settings | None = None,
        sign_out: Callable[[], Awaitable[None]] | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.user = user
        self.settings = settings or get_settings()
        self._navigate = navigate
        self._sign_out = sign_out
        self._handlers: dict[ControllerEvent, list[EventHandler]] = {}

        self.state = ControllerState.UNINITIALIZED
        self.sessions: list[Session] = []
        self.messages: list[Message] = []
        self.active_session_id: str | None = None
        self.provider: ProviderId = self.settings.default_provider
        self.selecting = False
        self.selected_ids: set[str] = set()
        self.last_error: StoreError | None = None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def active_session(self) -> Session | None:
        for session in self.sessions:
            if session.id == self.active_session_id:
                return session
        return None

    def subscribe(self, event: ControllerEvent, handler: EventHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that unregisters it."""
        handlers = self._handlers.setdefault(event, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def _emit(self, event: ControllerEvent, payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(event, payload)
            except Exception:
                logger.exception("Event handler failed", data={"event": event.value})

    def _set_state(self, state: ControllerState) -> None:
        if state is self.state:
            return
        logger.debug(
            "Controller state change",
            data={"from": self.state.value, "to": state.value},
        )
        self.state = state
        self._emit(ControllerEvent.STATE_CHANGED, state)

    def _require_state(self, *allowed: ControllerState, action: str) -> None:
        if self.state not in allowed:
            raise InvalidStateError(
                f"Cannot {action} while {self.state.value}",
                details={"state": self.state.value},
            )

    def _set_active(self, session: Session | None) -> None:
        self.active_session_id = session.id if session else None
        if session:
            self.provider = session.provider
        bind_log_context(session_id=self.active_session_id)

    @property
    def _uid(self) -> str:
        if self.user is None:
            raise InvalidStateError("No user is signed in")
        return self.user.uid

    async def _store_call(self, operation: str, call: Awaitable[T]) -> T:
        """Await a store call, bounded by the configured store timeout."""
        timeout = self.settings.store_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "Store call timed out",
                data={"operation": operation, "timeout_seconds": timeout},
            )
            raise StoreError(
                "Store call timed out",
                details={"operation": operation, "timeout_seconds": timeout},
                code=ErrorCode.STORE_TIMEOUT,
            ) from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the user's sessions, creating one if there are none.

        Without a user the controller redirects to authentication and halts.
        A store failure leaves the controller in FAILED and is re-raised so
        the caller can offer a retry (calling ``start`` again).
        """
        self._require_state(
            ControllerState.UNINITIALIZED, ControllerState.FAILED, action="start"
        )
        if self.user is None:
            logger.info("No user present; redirecting to authentication")
            self._set_state(ControllerState.HALTED)
            self._navigate(AUTH_ROUTE)
            return

        bind_log_context(user_id=self.user.uid)
        self.last_error = None
        self._set_state(ControllerState.LOADING)
        try:
            sessions = await self._store_call(
                "list_sessions", self.store.list_sessions(self._uid)
            )
            if sessions:
                self.sessions = list(sessions)
                self._set_active(self.sessions[0])
                self.messages = list(
                    await self._store_call(
                        "list_messages",
                        self.store.list_messages(self._uid, self.sessions[0].id),
                    )
                )
            else:
                self.sessions = []
                session = await self._create_session(self.provider)
                self.messages = []
                self._set_active(session)
        except StoreError as exc:
            logger.error(
                "Failed to load chat sessions",
                data={"code": exc.code.value, "message": exc.message},
            )
            self.last_error = exc
            self._set_state(ControllerState.FAILED)
            raise

        metrics.set_gauge("cached_sessions", float(len(self.sessions)))
        logger.info(
            "Chat sessions loaded",
            data={"sessions": len(self.sessions), "active": self.active_session_id},
        )
        self._set_state(ControllerState.READY)

    async def logout(self) -> None:
        """Sign out, drop all transient state and redirect to authentication."""
        if self._sign_out is not None:
            await self._sign_out()
        self.user = None
        self.sessions = []
        self.messages = []
        self.selecting = False
        self.selected_ids = set()
        self._set_active(None)
        bind_log_context(user_id=None)
        self._set_state(ControllerState.HALTED)
        self._navigate(AUTH_ROUTE)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def _create_session(self, provider: ProviderId) -> Session:
        session = await self._store_call(
            "create_session", self.store.create_session(self._uid, provider)
        )
        self.sessions.insert(0, session)
        metrics.increment("sessions_created_total")
        metrics.set_gauge("cached_sessions", float(len(self.sessions)))
        logger.info(
            "Created chat session",
            data={"session_id": session.id, "provider": session.provider.value},
        )
        return session

    async def create_new_chat(self, provider: ProviderId | str | None = None) -> Session:
        """Start a brand-new session and make it active.

        The current session is never modified, whatever the provider.
        """
        self._require_state(ControllerState.READY, action="create a chat")
        chosen = _provider_id(provider) if provider is not None else self.provider
        session = await self._create_session(chosen)
        self._set_active(session)
        self.messages = []
        return session

    async def switch_provider(self, provider: ProviderId | str) -> Session:
        """Switching provider always opens a new session pinned to it."""
        return await self.create_new_chat(provider)

    async def select_session(self, session_id: str) -> None:
        """Make an existing session active and load its messages."""
        self._require_state(ControllerState.READY, action="select a session")
        session = next((s for s in self.sessions if s.id == session_id), None)
        if session is None:
            raise NotFoundError(f"Session '{session_id}' not found")
        self._set_active(session)
        self.messages = list(
            await self._store_call(
                "list_messages", self.store.list_messages(self._uid, session_id)
            )
        )

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> Message | None:
        """Send user text and append the assistant's reply.

        Blank text or a missing active session is a no-op. Provider failures
        come back from the gateway as fallback text, so exactly one assistant
        message follows every user message that reached the store.
        """
        if not text or not text.strip() or not self.active_session_id:
            return None
        self._require_state(ControllerState.READY, action="send a message")

        session_id = self.active_session_id
        provider = self.provider
        self._set_state(ControllerState.SENDING)
        try:
            self.messages.append(Message(sender=Sender.USER, content=text, timestamp=utcnow()))
            await self._store_call(
                "append_message",
                self.store.append_message(self._uid, session_id, Sender.USER, text),
            )
            metrics.increment("messages_sent_total")

            reply = await self.gateway.complete(text, provider)

            assistant = Message(sender=Sender.AI, content=reply, timestamp=utcnow())
            self.messages.append(assistant)
            await self._store_call(
                "append_message",
                self.store.append_message(self._uid, session_id, Sender.AI, reply),
            )
        finally:
            self._set_state(ControllerState.READY)
        return assistant

    # ------------------------------------------------------------------
    # Selection & deletion
    # ------------------------------------------------------------------

    def toggle_selecting(self) -> bool:
        """Enter or leave selection mode; the selection starts empty either way."""
        self._require_state(ControllerState.READY, action="toggle selection mode")
        self.selecting = not self.selecting
        self.selected_ids = set()
        return self.selecting

    def toggle_selection(self, session_id: str) -> bool:
        """Mark or unmark a session for deletion; returns whether it is marked."""
        if not self.selecting:
            raise InvalidStateError("Selection mode is not active")
        if session_id in self.selected_ids:
            self.selected_ids.discard(session_id)
            return False
        self.selected_ids.add(session_id)
        return True

    async def commit_deletion(self) -> DeletionResult:
        """Delete the selected sessions and leave selection mode.

        Deletion is best-effort: ids that failed stay in the session list and
        are reported in ``DeletionResult.failed``.
        """
        self._require_state(ControllerState.READY, action="delete sessions")
        if not self.selecting:
            raise InvalidStateError("Selection mode is not active")

        ids = [s.id for s in self.sessions if s.id in self.selected_ids]
        ids += sorted(self.selected_ids.difference(ids))

        if self.settings.parallel_session_deletes:
            result = await self._delete_concurrently(ids)
        else:
            result = await self.store.delete_sessions(
                self._uid, ids, timeout=self.settings.store_timeout_seconds
            )

        deleted = set(result.deleted)
        self.sessions = [s for s in self.sessions if s.id not in deleted]
        if self.active_session_id in deleted:
            self._set_active(None)
        self.messages = []
        self.selected_ids = set()
        self.selecting = False
        metrics.set_gauge("cached_sessions", float(len(self.sessions)))

        logger.info(
            "Deleted chat sessions",
            data={"deleted": len(result.deleted), "failed": result.failed},
        )
        if result.deleted:
            self._emit(ControllerEvent.SESSIONS_DELETED, result)
        return result

    async def _delete_concurrently(self, ids: Iterable[str]) -> DeletionResult:
        ids = list(ids)
        outcomes = await asyncio.gather(
            *(
                self._store_call("delete_session", self.store.delete_session(self._uid, sid))
                for sid in ids
            ),
            return_exceptions=True,
        )
        result = DeletionResult()
        for session_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, StoreError):
                logger.warning(
                    "Session delete failed",
                    data={"session_id": session_id, "code": outcome.code.value},
                )
                metrics.increment("session_delete_failures_total")
                result.failed.append(session_id)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                metrics.increment("sessions_deleted_total")
                result.deleted.append(session_id)
        return result


def _provider_id(value: ProviderId | str) -> ProviderId:
    try:
        return ProviderId(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown provider '{value}'",
            details={"allowed": [p.value for p in ProviderId]},
        ) from exc
