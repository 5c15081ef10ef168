"""Gemini generateContent provider adapter."""

from __future__ import annotations

from typing import Any

import httpx

from chatdesk.models import ProviderId
from chatdesk.providers.base import BaseProvider, extract_path
from chatdesk.providers.http_client import (
    create_http_client,
    parse_json,
    raise_for_status,
    request_with_retries,
)


class GeminiProvider(BaseProvider):
    """Adapter for the ``models/{model}:generateContent`` shape.

    Gemini authenticates with a ``key`` query parameter rather than a header.
    """

    provider_id = ProviderId.GEMINI

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float,
        max_retries: int,
        transport: httpx.AsyncBaseTransport | None = None,
        display_name: str = "Gemini",
    ):
        self.display_name = display_name
        self.model = model
        self.max_retries = max_retries
        self._api_key = api_key
        self.client = create_http_client(
            base_url=base_url,
            timeout_seconds=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    def extract_text(self, data: Any) -> str:
        return extract_path(data, ("candidates", 0, "content", "parts", 0, "text"))

    async def complete(self, prompt: str) -> str:
        """Send a single-turn generateContent request."""
        response = await request_with_retries(
            self.client,
            "POST",
            f"/models/{self.model}:generateContent",
            params={"key": self._api_key},
            json=self.build_payload(prompt),
            max_retries=self.max_retries,
        )
        raise_for_status(response)
        return self.extract_text(parse_json(response))
