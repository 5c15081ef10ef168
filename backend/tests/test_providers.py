"""Tests for provider adapters, HTTP error mapping and the gateway."""

from __future__ import annotations

import json

import httpx
import pytest

from chatdesk.core import (
    ErrorCode,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    metrics,
)
from chatdesk.models import ProviderId
from chatdesk.providers import GeminiProvider, OpenAIProvider, ProviderGateway

from conftest import StubProvider


def make_openai(handler, max_retries: int = 0) -> OpenAIProvider:
    return OpenAIProvider(
        base_url="https://openai.test/v1",
        api_key="sk-test",
        model="gpt-3.5-turbo",
        timeout=5,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


def make_gemini(handler, max_retries: int = 0) -> GeminiProvider:
    return GeminiProvider(
        base_url="https://gemini.test/v1beta",
        api_key="gm-secret",
        model="gemini-pro",
        timeout=5,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_openai_request_shape_and_extraction() -> None:
    """Variant A posts a chat-completions body with a bearer header."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": "Hi there"}}]}
        )

    provider = make_openai(handler)
    text = await provider.complete("Hello")

    assert text == "Hi there"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert json.loads(request.content) == {
        "model": "gpt-3.5-turbo",
        "messages": [{"role": "user", "content": "Hello"}],
    }
    await provider.aclose()


@pytest.mark.asyncio
async def test_gemini_request_shape_and_extraction() -> None:
    """Variant B posts a generateContent body with the key as a query parameter."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": "Hallo"}]}}]}
        )

    provider = make_gemini(handler)
    text = await provider.complete("Hello")

    assert text == "Hallo"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-pro:generateContent"
    assert request.url.params["key"] == "gm-secret"
    assert "Authorization" not in request.headers
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "Hello"}]}]}
    await provider.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type", "code"),
    [
        (401, ProviderAuthError, ErrorCode.PROVIDER_AUTH_FAILED),
        (403, ProviderAuthError, ErrorCode.PROVIDER_AUTH_FAILED),
        (404, ModelNotFoundError, ErrorCode.MODEL_NOT_FOUND),
        (429, RateLimitError, ErrorCode.RATE_LIMITED),
        (500, ProviderUnavailableError, ErrorCode.PROVIDER_UNAVAILABLE),
        (400, ProviderError, ErrorCode.PROVIDER_ERROR),
    ],
)
async def test_status_codes_map_to_typed_errors(status, error_type, code) -> None:
    """Non-success statuses raise stable error types."""
    provider = make_openai(lambda request: httpx.Response(status, json={"error": "nope"}))

    with pytest.raises(error_type) as exc:
        await provider.complete("Hello")

    assert exc.value.code == code
    assert exc.value.details["status"] == status
    await provider.aclose()


@pytest.mark.asyncio
async def test_gemini_error_details_redact_api_key() -> None:
    """The credential query parameter never appears in error details."""
    provider = make_gemini(lambda request: httpx.Response(403, json={}))

    with pytest.raises(ProviderAuthError) as exc:
        await provider.complete("Hello")

    assert "gm-secret" not in exc.value.details["url"]
    assert "key=" in exc.value.details["url"]
    await provider.aclose()


@pytest.mark.asyncio
async def test_timeout_maps_to_provider_unavailable() -> None:
    """Network timeouts map to provider_unavailable."""

    def handler(_request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timeout")

    provider = make_openai(handler)

    with pytest.raises(ProviderUnavailableError) as exc:
        await provider.complete("Hello")

    assert exc.value.code == ErrorCode.PROVIDER_UNAVAILABLE
    await provider.aclose()


@pytest.mark.asyncio
async def test_network_error_is_retried_once() -> None:
    """A transient connect error is retried when max_retries allows it."""
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "second try"}}]})

    provider = make_openai(handler, max_retries=1)

    assert await provider.complete("Hello") == "second try"
    assert calls["count"] == 2
    await provider.aclose()


@pytest.mark.asyncio
async def test_status_errors_are_not_retried() -> None:
    calls = {"count": 0}

    def handler(_request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503, json={})

    provider = make_openai(handler, max_retries=2)

    with pytest.raises(ProviderUnavailableError):
        await provider.complete("Hello")
    assert calls["count"] == 1
    await provider.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": {"content": "  \n"}}]},
        {"unexpected": True},
        [],
    ],
)
async def test_unexpected_shape_raises_bad_response(body) -> None:
    provider = make_openai(lambda request: httpx.Response(200, json=body))

    with pytest.raises(ProviderBadResponseError) as exc:
        await provider.complete("Hello")

    assert exc.value.code == ErrorCode.PROVIDER_BAD_RESPONSE
    await provider.aclose()


@pytest.mark.asyncio
async def test_non_json_body_raises_bad_response() -> None:
    provider = make_gemini(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderBadResponseError) as exc:
        await provider.complete("Hello")

    assert exc.value.details["body"] == "<html>oops</html>"
    await provider.aclose()


@pytest.mark.asyncio
async def test_undecodable_body_raises_bad_response() -> None:
    """A body that is not valid UTF-8 is a bad response, not a decode crash."""
    provider = make_openai(
        lambda request: httpx.Response(200, content=b'{"choices": "\xff\xfe"}')
    )

    with pytest.raises(ProviderBadResponseError) as exc:
        await provider.complete("Hello")

    assert exc.value.code == ErrorCode.PROVIDER_BAD_RESPONSE
    assert exc.value.details["body"].startswith('{"choices": ')
    await provider.aclose()


@pytest.mark.asyncio
async def test_gemini_empty_text_raises_bad_response() -> None:
    provider = make_gemini(
        lambda request: httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": ""}]}}]}
        )
    )

    with pytest.raises(ProviderBadResponseError):
        await provider.complete("Hello")
    await provider.aclose()


@pytest.mark.asyncio
async def test_gateway_undecodable_body_falls_back() -> None:
    provider = make_openai(lambda request: httpx.Response(200, content=b"\xff\xfe\xfd"))
    gateway = ProviderGateway([provider])

    text = await gateway.complete("Hello", ProviderId.OPENAI)

    assert text == "An error occurred retrieving the OpenAI response."
    await gateway.aclose()


@pytest.mark.asyncio
async def test_gateway_dispatches_by_provider_id() -> None:
    openai = StubProvider(ProviderId.OPENAI, replies=["from openai"])
    gemini = StubProvider(ProviderId.GEMINI, replies=["from gemini"])
    gateway = ProviderGateway([openai, gemini])

    assert await gateway.complete("a", ProviderId.GEMINI) == "from gemini"
    assert await gateway.complete("b", "OpenAI") == "from openai"
    assert gemini.prompts == ["a"]
    assert openai.prompts == ["b"]


@pytest.mark.asyncio
async def test_gateway_degrades_provider_errors_to_fallback() -> None:
    """A failing provider yields its fallback text instead of raising."""
    openai = StubProvider(ProviderId.OPENAI, replies=[ProviderUnavailableError()])
    gemini = StubProvider(ProviderId.GEMINI, replies=[ProviderBadResponseError()])
    gateway = ProviderGateway([openai, gemini])

    assert (
        await gateway.complete("Hello", ProviderId.OPENAI)
        == "An error occurred retrieving the OpenAI response."
    )
    assert (
        await gateway.complete("Hello", ProviderId.GEMINI)
        == "An error occurred retrieving the Gemini response."
    )
    assert metrics.snapshot()["counters"]["provider_fallbacks_total"] == 2


@pytest.mark.asyncio
async def test_gateway_unknown_provider_falls_back() -> None:
    gateway = ProviderGateway([StubProvider(ProviderId.OPENAI)])

    text = await gateway.complete("Hello", ProviderId.GEMINI)

    assert text == "An error occurred retrieving the Gemini response."


@pytest.mark.asyncio
async def test_gateway_from_settings_builds_both_variants(settings) -> None:
    """Wire-level round trip through a gateway built from settings."""

    def openai_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": "A"}}]})

    def gemini_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={})

    gateway = ProviderGateway.from_settings(
        settings,
        transport_overrides={
            ProviderId.OPENAI: httpx.MockTransport(openai_handler),
            ProviderId.GEMINI: httpx.MockTransport(gemini_handler),
        },
    )

    assert set(gateway.providers) == {ProviderId.OPENAI, ProviderId.GEMINI}
    assert await gateway.complete("Hi", ProviderId.OPENAI) == "A"
    assert (
        await gateway.complete("Hi", ProviderId.GEMINI)
        == "An error occurred retrieving the Gemini response."
    )
    await gateway.aclose()
