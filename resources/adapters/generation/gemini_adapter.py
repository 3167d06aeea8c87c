"""Gemini-style REST generation adapter over the shared async HTTP client."""

from __future__ import annotations

from time import perf_counter
from typing import Any

import httpx

from packages.gateway_shared.config import GenerationSettings
from packages.gateway_shared.http import (
    AsyncHttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
    HttpTimeoutError,
)
from packages.gateway_shared.logging import get_logger
from resources.adapters.generation.adapter import (
    GenerationAdapter,
    GenerationHealthResult,
    GenerationModelInfo,
    GenerationRejectedError,
    GenerationResult,
    GenerationTimeoutError,
    GenerationUnavailableError,
)

_LOGGER = get_logger(__name__)
_PROVIDER = "gemini"
_API_KEY_HEADER = "x-goog-api-key"


class GeminiGenerationAdapter(GenerationAdapter):
    """Calls ``models/{model}:generateContent`` once per prompt, never retrying."""

    def __init__(
        self,
        *,
        settings: GenerationSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if settings.api_key == "":
            raise ValueError("generation.api_key is required")
        self._settings = settings
        self._client = AsyncHttpClient(
            base_url=settings.api_url.rstrip("/"),
            timeout_seconds=settings.timeout_seconds,
            headers={_API_KEY_HEADER: settings.api_key},
            transport=transport,
        )

    async def generate(self, *, prompt: str) -> GenerationResult:
        started = perf_counter()
        try:
            body = await self._client.post_json(
                f"/models/{self._settings.model}:generateContent",
                json=self._request_body(prompt),
            )
        except HttpTimeoutError as exc:
            raise GenerationTimeoutError(
                f"generation timed out after {self._settings.timeout_seconds:g}s"
            ) from exc
        except HttpStatusError as exc:
            if 400 <= exc.status_code < 500 and exc.status_code != 429:
                raise GenerationRejectedError(
                    f"generation rejected with HTTP {exc.status_code}"
                ) from exc
            raise GenerationUnavailableError(
                f"generation failed with HTTP {exc.status_code}"
            ) from exc
        except (HttpRequestError, HttpJsonDecodeError) as exc:
            raise GenerationUnavailableError("generation service unreachable") from exc

        text = _extract_text(body)
        latency_ms = int((perf_counter() - started) * 1000)
        _LOGGER.debug(
            "generation completed",
            extra={"model": self._settings.model, "latency_ms": latency_ms},
        )
        return GenerationResult(
            text=text, model=self._settings.model, latency_ms=latency_ms
        )

    def model_info(self) -> GenerationModelInfo:
        return GenerationModelInfo(
            model=self._settings.model,
            provider=_PROVIDER,
            temperature=self._settings.temperature,
            top_k=self._settings.top_k,
            top_p=self._settings.top_p,
            max_output_tokens=self._settings.max_output_tokens,
            timeout_seconds=self._settings.timeout_seconds,
        )

    async def health(self) -> GenerationHealthResult:
        if self._client.closed:
            return GenerationHealthResult(adapter_ready=False, detail="client closed")
        return GenerationHealthResult(adapter_ready=True, detail="ok")

    async def aclose(self) -> None:
        await self._client.aclose()

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._settings.temperature,
                "topK": self._settings.top_k,
                "topP": self._settings.top_p,
                "maxOutputTokens": self._settings.max_output_tokens,
                "candidateCount": 1,
            },
        }


def _extract_text(body: object) -> str:
    """Join text parts of the first candidate; reject blocked or empty output."""
    if not isinstance(body, dict):
        raise GenerationUnavailableError("generation response is not an object")

    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = body.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            raise GenerationRejectedError(
                f"prompt blocked: {feedback['blockReason']}"
            )
        raise GenerationUnavailableError("generation response has no candidates")

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise GenerationUnavailableError("generation response has no content parts")

    text = "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if text.strip() == "":
        raise GenerationUnavailableError("generation response text is empty")
    return text
