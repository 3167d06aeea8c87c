"""Outbound HTTP over ``httpx`` with failures raised as ``HttpError`` types."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import (
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
    HttpTimeoutError,
)


def _body_text(response: httpx.Response) -> str:
    try:
        return response.text
    except UnicodeDecodeError:
        return ""


def _where(exc: httpx.RequestError, method: str, url: str) -> tuple[str, str]:
    """Method and absolute URL of the failed request, else the call arguments."""
    try:
        return exc.request.method, str(exc.request.url)
    except RuntimeError:
        return method.upper(), url


class AsyncHttpClient:
    """One pooled ``httpx.AsyncClient`` bound to a base URL and default headers.

    Every request is bounded by ``timeout_seconds``. Timeouts raise
    ``HttpTimeoutError``; other transport failures raise ``HttpRequestError``;
    4xx/5xx responses raise ``HttpStatusError`` unless the caller opts out.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            transport=transport,
        )

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            failed_method, failed_url = _where(exc, method, url)
            raise HttpTimeoutError(
                method=failed_method, url=failed_url, cause=exc
            ) from exc
        except httpx.RequestError as exc:
            failed_method, failed_url = _where(exc, method, url)
            raise HttpRequestError(
                method=failed_method, url=failed_url, cause=exc
            ) from exc

        if raise_for_status and response.is_error:
            raise HttpStatusError(
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response_body=_body_text(response),
                response_headers=dict(response.headers.items()),
            )
        return response

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body of a 2xx/3xx answer."""
        response = await self.request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise HttpJsonDecodeError(
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response_body=_body_text(response),
                cause=exc,
            ) from exc

    async def post_json(self, url: str, *, json: Any, **kwargs: Any) -> Any:
        return await self.request_json("POST", url, json=json, **kwargs)
