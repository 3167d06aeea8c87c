"""FastAPI and uvicorn helpers for the gateway HTTP surface."""

from __future__ import annotations

import json
from typing import Any

import uvicorn
from fastapi import FastAPI, Request

from .errors import InvalidJsonBodyError


def create_app(
    *, title: str = "metered-gateway", version: str = "0.0.0", lifespan: Any = None
) -> FastAPI:
    """Create a FastAPI app with project defaults."""
    return FastAPI(title=title, version=version, lifespan=lifespan)


def build_server(
    app: FastAPI,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: str = "info",
    graceful_timeout_seconds: float | None = None,
) -> uvicorn.Server:
    """Build one uvicorn server for a FastAPI app without starting it.

    The caller owns ``serve()`` and ``should_exit`` so shutdown sequencing
    stays with the process lifecycle rather than uvicorn's signal handlers.
    """
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level.lower(),
        log_config=None,
        timeout_graceful_shutdown=(
            None
            if graceful_timeout_seconds is None
            else max(1, int(graceful_timeout_seconds))
        ),
    )
    return uvicorn.Server(config)


def get_header(request: Request, name: str, *, strip: bool = True) -> str | None:
    """Fetch one optional header value, normalizing blank values to ``None``."""
    value = request.headers.get(name)
    if value is None:
        return None
    if strip:
        value = value.strip()
    return value or None


async def read_json_body(request: Request) -> Any:
    """Read and decode one request body as JSON."""
    body = await request.body()
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidJsonBodyError() from exc
