"""Application services."""

from chatdesk.services.chat_controller import (
    AUTH_ROUTE,
    ChatController,
    ControllerEvent,
    ControllerState,
)

__all__ = [
    "AUTH_ROUTE",
    "ChatController",
    "ControllerEvent",
    "ControllerState",
]
