"""OpenAI chat-completions provider adapter."""

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


class OpenAIProvider(BaseProvider):
    """Adapter for the ``/chat/completions`` request/response shape."""

    provider_id = ProviderId.OPENAI

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float,
        max_retries: int,
        transport: httpx.AsyncBaseTransport | None = None,
        display_name: str = "OpenAI",
    ):
        self.display_name = display_name
        self.model = model
        self.max_retries = max_retries
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = create_http_client(
            base_url=base_url,
            timeout_seconds=timeout,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: Any) -> str:
        return extract_path(data, ("choices", 0, "message", "content"))

    async def complete(self, prompt: str) -> str:
        """Send a single-turn chat completion request."""
        response = await request_with_retries(
            self.client,
            "POST",
            "/chat/completions",
            json=self.build_payload(prompt),
            max_retries=self.max_retries,
        )
        raise_for_status(response)
        return self.extract_text(parse_json(response))
