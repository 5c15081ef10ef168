"""
Domain models shared by the store, the providers and the controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ProviderId(str, Enum):
    """Completion backends a session can be pinned to."""

    OPENAI = "OpenAI"
    GEMINI = "Gemini"

    @classmethod
    def parse(cls, value: str | None) -> ProviderId:
        """Read a stored provider value, falling back to OpenAI."""
        try:
            return cls(value)
        except ValueError:
            return cls.OPENAI


class Sender(str, Enum):
    """Author of a chat message."""

    USER = "user"
    AI = "ai"


@dataclass(frozen=True)
class User:
    """Identity handed to the controller by the authentication collaborator."""

    uid: str


@dataclass(frozen=True)
class Session:
    """One persisted conversation thread, pinned to one provider."""

    id: str
    created_at: datetime
    provider: ProviderId


@dataclass(frozen=True)
class Message:
    """One turn in a session."""

    sender: Sender
    content: str
    timestamp: datetime


@dataclass
class DeletionResult:
    """Outcome of a best-effort bulk delete."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
