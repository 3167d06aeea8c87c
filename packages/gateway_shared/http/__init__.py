"""Public shared HTTP API for gateway packages."""

from .client import AsyncHttpClient
from .errors import (
    HttpClientError,
    HttpError,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
    HttpTimeoutError,
    InvalidJsonBodyError,
)
from .responses import error_body, error_response, status_for_error
from .server import build_server, create_app, get_header, read_json_body

__all__ = [
    "AsyncHttpClient",
    "HttpClientError",
    "HttpError",
    "HttpJsonDecodeError",
    "HttpRequestError",
    "HttpStatusError",
    "HttpTimeoutError",
    "InvalidJsonBodyError",
    "build_server",
    "create_app",
    "error_body",
    "error_response",
    "get_header",
    "read_json_body",
    "status_for_error",
]
