"""Completion provider interfaces and implementations."""

from chatdesk.providers.base import FALLBACK_TEMPLATE, BaseProvider
from chatdesk.providers.gateway import ProviderGateway
from chatdesk.providers.gemini import GeminiProvider
from chatdesk.providers.openai import OpenAIProvider

__all__ = [
    "FALLBACK_TEMPLATE",
    "BaseProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "ProviderGateway",
]
