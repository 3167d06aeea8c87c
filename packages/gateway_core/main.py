"""Process entrypoint: validate, serve, drain, exit."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from packages.gateway_core.app import create_gateway_app
from packages.gateway_core.context import AppContext
from packages.gateway_core.lifecycle import LifecycleController, LifecycleState
from packages.gateway_core.startup import build_app_context
from packages.gateway_shared.config import (
    GatewaySettings,
    load_settings,
    missing_required_settings,
)
from packages.gateway_shared.http import build_server
from packages.gateway_shared.logging import configure_logging, get_logger

_LOGGER = get_logger(__name__)

_STARTUP_POLL_SECONDS = 0.05

ServerFactory = Callable[..., uvicorn.Server]
ContextFactory = Callable[..., Awaitable[AppContext]]


def run(
    *,
    config_path: Path | None = None,
    server_factory: ServerFactory = build_server,
    context_factory: ContextFactory = build_app_context,
    install_signals: bool = True,
) -> int:
    """Run the gateway to completion and return the process exit code."""
    try:
        settings = load_settings(config_path=config_path)
    except ValidationError as exc:
        configure_logging()
        lifecycle = LifecycleController()
        lifecycle.begin_validation()
        lifecycle.fail(detail=f"invalid configuration: {exc.error_count()} error(s)")
        _LOGGER.error("configuration is invalid", extra={"errors": exc.errors()})
        return 1

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.server.environment,
    )
    lifecycle = LifecycleController(is_production=settings.server.is_production)
    lifecycle.begin_validation()

    missing = missing_required_settings(settings)
    if missing:
        lifecycle.fail(missing=missing)
        return 1

    return asyncio.run(
        _serve(
            settings=settings,
            lifecycle=lifecycle,
            server_factory=server_factory,
            context_factory=context_factory,
            install_signals=install_signals,
        )
    )


async def _serve(
    *,
    settings: GatewaySettings,
    lifecycle: LifecycleController,
    server_factory: ServerFactory,
    context_factory: ContextFactory,
    install_signals: bool,
) -> int:
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(lifecycle.handle_uncaught_fault)

    try:
        context = await context_factory(settings=settings, lifecycle=lifecycle)
    except Exception as exc:  # noqa: BLE001
        _LOGGER.exception("gateway component construction failed")
        lifecycle.fail(detail=f"startup failed: {type(exc).__name__}")
        return 1

    app: FastAPI = create_gateway_app(context)
    server = server_factory(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level,
        graceful_timeout_seconds=settings.server.drain_timeout_seconds,
    )
    context.server = server
    serve_task = asyncio.create_task(server.serve())

    while not server.started and not serve_task.done():
        await asyncio.sleep(_STARTUP_POLL_SECONDS)
    # Installed after uvicorn starts so these replace its own handlers.
    if install_signals:
        lifecycle.install_signal_handlers(loop)
    _LOGGER.info(
        "gateway serving",
        extra={"host": settings.server.host, "port": settings.server.port},
    )

    shutdown_wait = asyncio.create_task(lifecycle.shutdown_requested.wait())
    await asyncio.wait(
        {serve_task, shutdown_wait}, return_when=asyncio.FIRST_COMPLETED
    )
    shutdown_wait.cancel()

    if lifecycle.state is LifecycleState.READY:
        lifecycle.begin_drain(reason="server_exit")
    clean = await lifecycle.wait_for_idle(
        timeout_seconds=settings.server.drain_timeout_seconds
    )
    server.should_exit = True
    if not clean:
        server.force_exit = True
    try:
        await serve_task
    except Exception:  # noqa: BLE001
        _LOGGER.exception("HTTP server exited with an error")
        clean = False
    lifecycle.mark_stopped()
    _LOGGER.info("gateway stopped", extra={"clean_drain": clean})
    return 0 if clean else 1


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
