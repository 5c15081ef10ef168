"""Provider gateway: dispatches prompts and degrades failures to fallback text."""

from __future__ import annotations

import time
from collections.abc import Iterable

import httpx

from chatdesk.config import Settings
from chatdesk.core import AppError, NotFoundError, get_logger, metrics
from chatdesk.models import ProviderId
from chatdesk.providers.base import FALLBACK_TEMPLATE, BaseProvider
from chatdesk.providers.gemini import GeminiProvider
from chatdesk.providers.openai import OpenAIProvider

logger = get_logger(__name__)


class ProviderGateway:
    """Route prompts to the provider a session is pinned to.

    ``complete`` never raises provider errors: a failed call is logged and
    answered with the provider's fallback message instead.
    """

    def __init__(self, providers: Iterable[BaseProvider]):
        self.providers: dict[ProviderId, BaseProvider] = {}
        for provider in providers:
            self.providers[provider.provider_id] = provider

        logger.info(
            "Provider gateway initialized",
            data={"providers": [p.value for p in self.providers]},
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport_overrides: dict[ProviderId, httpx.AsyncBaseTransport] | None = None,
    ) -> ProviderGateway:
        """Build both provider variants from configuration."""
        overrides = transport_overrides or {}
        return cls(
            [
                OpenAIProvider(
                    base_url=settings.openai_base_url,
                    api_key=settings.openai_api_key,
                    model=settings.openai_model,
                    timeout=settings.provider_timeout_seconds,
                    max_retries=settings.provider_max_retries,
                    transport=overrides.get(ProviderId.OPENAI),
                ),
                GeminiProvider(
                    base_url=settings.gemini_base_url,
                    api_key=settings.gemini_api_key,
                    model=settings.gemini_model,
                    timeout=settings.provider_timeout_seconds,
                    max_retries=settings.provider_max_retries,
                    transport=overrides.get(ProviderId.GEMINI),
                ),
            ]
        )

    def get(self, provider_id: ProviderId | str) -> BaseProvider:
        """Resolve a provider by ID or raise NotFoundError."""
        resolved = _resolve(provider_id)
        provider = self.providers.get(resolved) if resolved else None
        if not provider:
            raise NotFoundError(f"Provider '{provider_id}' not found")
        return provider

    def fallback_message(self, provider_id: ProviderId | str) -> str:
        """Fallback text for a provider, registered or not."""
        resolved = _resolve(provider_id)
        provider = self.providers.get(resolved) if resolved else None
        if provider:
            return provider.fallback_message
        return FALLBACK_TEMPLATE.format(name=resolved.value if resolved else provider_id)

    async def complete(self, prompt: str, provider_id: ProviderId | str) -> str:
        """Return the completion text, or the provider's fallback message on failure."""
        started = time.monotonic()
        try:
            provider = self.get(provider_id)
            text = await provider.complete(prompt)
        except AppError as exc:
            logger.warning(
                "Provider call failed; using fallback response",
                data={
                    "provider": getattr(provider_id, "value", provider_id),
                    "code": exc.code.value,
                    "message": exc.message,
                },
            )
            metrics.increment("provider_fallbacks_total")
            return self.fallback_message(provider_id)
        finally:
            metrics.observe("completion_duration_seconds", time.monotonic() - started)

        return text

    async def aclose(self) -> None:
        """Close all provider clients."""
        for provider in self.providers.values():
            try:
                await provider.aclose()
            except Exception:
                logger.warning(
                    "Error closing provider client", data={"provider": provider.provider_id.value}
                )


def _resolve(provider_id: ProviderId | str) -> ProviderId | None:
    try:
        return ProviderId(provider_id)
    except ValueError:
        return None
