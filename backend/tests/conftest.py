import asyncio
from typing import Any

import pytest

from chatdesk.config import Settings
from chatdesk.core import metrics
from chatdesk.core.logging import log_context
from chatdesk.db import create_db_engine, create_session_factory, init_db
from chatdesk.models import ProviderId, User
from chatdesk.providers import BaseProvider, ProviderGateway
from chatdesk.services import ChatController
from chatdesk.store import InMemorySessionStore, SqlSessionStore


class StubProvider(BaseProvider):
    """Provider stub returning scripted replies (or raising scripted errors)."""

    def __init__(
        self,
        provider_id: ProviderId,
        replies: list[str | Exception] | None = None,
        display_name: str | None = None,
        delay: float = 0.0,
    ):
        self.provider_id = provider_id
        self.display_name = display_name or provider_id.value
        self.replies = list(replies or [])
        self.prompts: list[str] = []
        self.delay = delay

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {"prompt": prompt}

    def extract_text(self, data: Any) -> str:
        return str(data)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if self.replies else f"{self.display_name} says: {prompt}"
        if isinstance(reply, Exception):
            raise reply
        return reply


class Navigator:
    """Records navigation requests from the controller."""

    def __init__(self) -> None:
        self.routes: list[str] = []

    def __call__(self, route: str) -> None:
        self.routes.append(route)


@pytest.fixture(autouse=True)
def _reset_observability():
    metrics.reset()
    token = log_context.set({})
    yield
    log_context.reset(token)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        openai_api_key="sk-test",
        gemini_api_key="gm-test",
        provider_timeout_seconds=5,
        provider_max_retries=0,
        store_timeout_seconds=1,
    )


@pytest.fixture
def user() -> User:
    return User(uid="user-123")


@pytest.fixture
def navigator() -> Navigator:
    return Navigator()


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def sql_store(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'chatdesk.db'}")
    init_db(engine)
    yield SqlSessionStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run a test against every store implementation."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def openai_stub() -> StubProvider:
    return StubProvider(ProviderId.OPENAI)


@pytest.fixture
def gemini_stub() -> StubProvider:
    return StubProvider(ProviderId.GEMINI)


@pytest.fixture
def gateway(openai_stub, gemini_stub) -> ProviderGateway:
    return ProviderGateway([openai_stub, gemini_stub])


@pytest.fixture
def controller(memory_store, gateway, user, navigator, settings) -> ChatController:
    return ChatController(
        store=memory_store,
        gateway=gateway,
        user=user,
        navigate=navigator,
        settings=settings,
    )
