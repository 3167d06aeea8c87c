"""Behavior tests for the Gemini generation adapter over httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
from typing import Callable

import httpx
import pytest

from packages.gateway_shared.config import GenerationSettings
from resources.adapters.generation import (
    GeminiGenerationAdapter,
    GenerationRejectedError,
    GenerationTimeoutError,
    GenerationUnavailableError,
)

_Handler = Callable[[httpx.Request], httpx.Response]


def _settings(**overrides: object) -> GenerationSettings:
    values: dict[str, object] = {
        "api_key": "test-key",
        "api_url": "https://generation.test/v1beta",
        "model": "gemini-test",
    }
    values.update(overrides)
    return GenerationSettings.model_validate(values)


def _adapter(handler: _Handler, **overrides: object) -> GeminiGenerationAdapter:
    return GeminiGenerationAdapter(
        settings=_settings(**overrides),
        transport=httpx.MockTransport(handler),
    )


def _generate(adapter: GeminiGenerationAdapter, prompt: str = "hello"):
    async def _run():
        try:
            return await adapter.generate(prompt=prompt)
        finally:
            await adapter.aclose()

    return asyncio.run(_run())


def _candidates(*texts: str) -> dict[str, object]:
    return {
        "candidates": [
            {"content": {"parts": [{"text": text} for text in texts]}},
        ]
    }


def test_generate_posts_prompt_with_generation_config_and_key_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_candidates("Hi ", "there"))

    result = _generate(_adapter(handler), prompt="say hi")

    assert result.text == "Hi there"
    assert result.model == "gemini-test"
    assert result.latency_ms >= 0
    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == (
        "https://generation.test/v1beta/models/gemini-test:generateContent"
    )
    assert request.headers["x-goog-api-key"] == "test-key"
    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "say hi"
    assert body["generationConfig"] == {
        "temperature": 0.7,
        "topK": 40,
        "topP": 0.95,
        "maxOutputTokens": 2048,
        "candidateCount": 1,
    }


def test_timeout_maps_to_generation_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GenerationTimeoutError):
        _generate(_adapter(handler))


@pytest.mark.parametrize("status", [400, 403])
def test_client_errors_map_to_rejected(status: int) -> None:
    with pytest.raises(GenerationRejectedError):
        _generate(_adapter(lambda _request: httpx.Response(status, json={})))


@pytest.mark.parametrize("status", [429, 500, 503])
def test_throttling_and_server_errors_map_to_unavailable(status: int) -> None:
    with pytest.raises(GenerationUnavailableError):
        _generate(_adapter(lambda _request: httpx.Response(status, json={})))


def test_transport_failure_maps_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GenerationUnavailableError):
        _generate(_adapter(handler))


def test_blocked_prompt_maps_to_rejected() -> None:
    body = {"promptFeedback": {"blockReason": "SAFETY"}}

    with pytest.raises(GenerationRejectedError):
        _generate(_adapter(lambda _request: httpx.Response(200, json=body)))


@pytest.mark.parametrize(
    "body",
    [
        {"candidates": []},
        _candidates("   "),
        {"candidates": [{"content": {}}]},
    ],
)
def test_empty_or_malformed_output_maps_to_unavailable(body: dict) -> None:
    with pytest.raises(GenerationUnavailableError):
        _generate(_adapter(lambda _request: httpx.Response(200, json=body)))


def test_non_json_body_maps_to_unavailable() -> None:
    with pytest.raises(GenerationUnavailableError):
        _generate(_adapter(lambda _request: httpx.Response(200, text="<html>")))


def test_missing_api_key_is_rejected_at_construction() -> None:
    with pytest.raises(ValueError):
        GeminiGenerationAdapter(settings=_settings(api_key=""))


def test_model_info_and_health_do_not_call_upstream() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    adapter = _adapter(handler, model="gemini-info")

    async def _run():
        before = await adapter.health()
        await adapter.aclose()
        after = await adapter.health()
        return before, after

    before, after = asyncio.run(_run())

    assert adapter.model_info().model == "gemini-info"
    assert adapter.model_info().max_output_tokens == 2048
    assert before.adapter_ready is True
    assert after.adapter_ready is False
    assert calls == []
