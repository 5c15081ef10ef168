"""
Shared HTTP client helpers for provider adapters.

Provides consistent timeouts, retry behavior, and error mapping so provider
adapters return stable AppError instances without leaking credentials.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from chatdesk.core import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    get_logger,
)

logger = get_logger(__name__)

_REDACTED_PARAMS = ("key",)


def create_http_client(
    base_url: str,
    timeout_seconds: float,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient with consistent timeout settings.

    Args:
        base_url: Base URL for the provider.
        timeout_seconds: Total timeout for requests.
        headers: Default headers to include.
        transport: Optional transport (used by tests with MockTransport).
    """
    timeout = httpx.Timeout(
        timeout_seconds, connect=timeout_seconds, read=timeout_seconds, write=timeout_seconds
    )
    base = base_url.rstrip("/")
    return httpx.AsyncClient(
        base_url=base,
        timeout=timeout,
        headers=headers or {},
        transport=transport,
    )


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int,
    **kwargs: Any,
) -> httpx.Response:
    """
    Execute an HTTP request with lightweight retries and mapped errors.

    Retries are only applied to network/timeout errors, not HTTP status codes.
    """
    last_error: Exception | None = None
    for attempt in range(max_retries + 1):
        try:
            return await client.request(method, url, **kwargs)
        except (
            httpx.ConnectError,
            httpx.ReadTimeout,
            httpx.WriteTimeout,
            httpx.NetworkError,
            httpx.TimeoutException,
        ) as exc:
            last_error = exc
            if attempt < max_retries:
                logger.debug(
                    "Retrying provider request",
                    data={"attempt": attempt + 1, "error": type(exc).__name__},
                )
                await asyncio.sleep(min(0.1 * (attempt + 1), 1.0))
                continue
            raise ProviderUnavailableError(
                "Provider unavailable", details={"reason": type(exc).__name__}
            ) from exc
        except httpx.HTTPError as exc:
            last_error = exc
            if attempt < max_retries:
                await asyncio.sleep(min(0.1 * (attempt + 1), 1.0))
                continue
            raise ProviderError(
                "Provider request failed", details={"reason": type(exc).__name__}
            ) from exc

    # Fallback (should not be reached)
    raise ProviderUnavailableError(
        "Provider unavailable", details={"reason": str(last_error)}
    )


def raise_for_status(response: httpx.Response) -> None:
    """
    Map HTTP status codes to stable AppError types.
    """
    status = response.status_code
    if status < 400:
        return

    details = _safe_error_details(response)

    if status in (401, 403):
        raise ProviderAuthError(details=details, status_code=status)
    if status == 404:
        raise ModelNotFoundError(details=details)
    if status == 429:
        raise RateLimitError("Rate limit exceeded", details=details)
    if status >= 500:
        raise ProviderUnavailableError("Provider unavailable", details=details)
    raise ProviderError("Provider error", details=details)


def parse_json(response: httpx.Response) -> Any:
    """
    Parse JSON with consistent error handling.
    """
    try:
        return response.json()
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        snippet = response.content[:500].decode("utf-8", errors="replace")
        raise ProviderBadResponseError(
            "Provider returned invalid response",
            details={"body": snippet},
        ) from exc


def redact_url(url: httpx.URL) -> str:
    """Render a URL with credential query parameters masked."""
    params = [
        (name, "***" if name in _REDACTED_PARAMS else value)
        for name, value in url.params.multi_items()
    ]
    return str(url.copy_with(params=params)) if params else str(url)


def _safe_error_details(response: httpx.Response) -> dict[str, Any]:
    """Return a small, non-sensitive error payload for debugging."""
    body_snippet = response.text[:300] if response.text else ""
    return {
        "status": response.status_code,
        "body": body_snippet,
        "url": redact_url(response.request.url),
    }
