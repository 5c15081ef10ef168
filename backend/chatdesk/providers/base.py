"""
Base provider interface.

Defines the contract that every completion backend must implement.
"""

from abc import ABC, abstractmethod
from typing import Any

from chatdesk.core import ProviderBadResponseError
from chatdesk.models import ProviderId

FALLBACK_TEMPLATE = "An error occurred retrieving the {name} response."


class BaseProvider(ABC):
    """
    Abstract base class for completion providers.

    Each variant owns its request/response adapter and performs one HTTP
    round trip per call (plus transport-level retries).
    """

    provider_id: ProviderId
    display_name: str

    @property
    def fallback_message(self) -> str:
        """Assistant text used when this provider cannot answer."""
        return FALLBACK_TEMPLATE.format(name=self.display_name)

    async def aclose(self) -> None:
        """Close any underlying resources (optional)."""
        return None

    @abstractmethod
    def build_payload(self, prompt: str) -> dict[str, Any]:
        """Build the JSON request body for a single user prompt."""
        ...

    @abstractmethod
    def extract_text(self, data: Any) -> str:
        """
        Pull the completion text out of a decoded response body.

        Raises:
            ProviderBadResponseError: If the body does not have the expected shape
        """
        ...

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Send a prompt and wait for the completion text.

        Raises:
            ProviderError: If the provider returns an error
            ProviderUnavailableError: If the provider is not available
            ProviderBadResponseError: If the response cannot be parsed
        """
        ...


def extract_path(data: Any, path: tuple[str | int, ...]) -> str:
    """Walk ``path`` through nested dicts/lists and return the string at the end.

    An empty or blank completion counts as a missing one.
    """
    current = data
    for key in path:
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderBadResponseError(
                "Provider returned invalid response",
                details={"missing": ".".join(str(p) for p in path)},
            ) from exc
    if not isinstance(current, str) or not current.strip():
        raise ProviderBadResponseError(
            "Provider returned invalid response",
            details={"missing": ".".join(str(p) for p in path)},
        )
    return current
