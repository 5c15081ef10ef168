"""
Wiring for a ready-to-start ChatController.

Builds the store and gateway from settings the way a host application
would at process start.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from chatdesk.config import Settings, get_settings
from chatdesk.core import get_logger, setup_logging
from chatdesk.db import create_session_factory, get_engine, init_db
from chatdesk.models import ProviderId, User
from chatdesk.providers import ProviderGateway
from chatdesk.services import ChatController
from chatdesk.store import SessionStore, SqlSessionStore

logger = get_logger(__name__)


def build_store(settings: Settings) -> SessionStore:
    """Create the SQL store, creating tables on first use."""
    engine = get_engine(settings)
    init_db(engine)
    return SqlSessionStore(create_session_factory(engine))


def build_controller(
    user: User | None,
    navigate: Callable[[str], Any],
    *,
    settings: Settings | None = None,
    store: SessionStore | None = None,
    sign_out: Callable[[], Awaitable[None]] | None = None,
    transport_overrides: dict[ProviderId, httpx.AsyncBaseTransport] | None = None,
    configure_logging: bool = True,
) -> ChatController:
    """
    Assemble a ChatController.

    Raises:
        ConfigurationError: If a provider API key is missing
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_json, settings.log_file)
    settings.require_provider_credentials()

    gateway = ProviderGateway.from_settings(settings, transport_overrides=transport_overrides)
    controller = ChatController(
        store=store or build_store(settings),
        gateway=gateway,
        user=user,
        navigate=navigate,
        settings=settings,
        sign_out=sign_out,
    )
    logger.info("Chat controller assembled", data={"environment": settings.environment})
    return controller
