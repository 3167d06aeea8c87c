"""Exceptions raised by the shared HTTP client and inbound body helpers."""

from __future__ import annotations

from typing import Mapping


class HttpError(Exception):
    """Root of every shared HTTP helper failure."""


class HttpClientError(HttpError):
    """An outbound call failed; ``retryable`` hints whether a retry may help."""

    detail = "HTTP call failed"
    retryable = False

    def __init__(self, *, method: str, url: str) -> None:
        super().__init__(f"{self.detail} for {method} {url}")
        self.method = method
        self.url = url


class HttpRequestError(HttpClientError):
    """No response arrived: connection, DNS or protocol failure."""

    detail = "HTTP request failed"
    retryable = True

    def __init__(self, *, method: str, url: str, cause: Exception) -> None:
        super().__init__(method=method, url=url)
        self.cause = cause


class HttpTimeoutError(HttpRequestError):
    detail = "HTTP request timed out"


class HttpStatusError(HttpClientError):
    """A response arrived with a 4xx or 5xx status."""

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        response_body: str = "",
        response_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.detail = f"HTTP {status_code}"
        super().__init__(method=method, url=url)
        self.status_code = status_code
        self.response_body = response_body
        self.response_headers = dict(response_headers or {})
        self.retryable = status_code >= 500 or status_code == 429


class HttpJsonDecodeError(HttpClientError):
    """A successful response whose body is not JSON."""

    detail = "Invalid JSON response"

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        response_body: str,
        cause: Exception,
    ) -> None:
        super().__init__(method=method, url=url)
        self.status_code = status_code
        self.response_body = response_body
        self.cause = cause


class InvalidJsonBodyError(HttpError):
    """An inbound request body could not be decoded as JSON."""

    def __init__(self, message: str = "Body is not valid JSON") -> None:
        super().__init__(message)
