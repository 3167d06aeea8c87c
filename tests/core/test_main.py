"""Tests for the process entrypoint: validation, serving, and drain."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Iterator

import pytest

from packages.gateway_core.context import AppContext
from packages.gateway_core.lifecycle import LifecycleController, LifecycleState
from packages.gateway_core.main import run
from packages.gateway_core.startup import build_app_context
from packages.gateway_shared.config import GatewaySettings
from tests.core.helpers import FakeGenerator


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("GATEWAY_"):
            monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class _FakeServer:
    """Stands in for ``uvicorn.Server``; optionally exits on its own."""

    def __init__(self, *, exit_after_start: bool = False) -> None:
        self.started = False
        self.should_exit = False
        self.force_exit = False
        self.exit_after_start = exit_after_start
        self.build_kwargs: dict[str, Any] = {}

    async def serve(self) -> None:
        self.started = True
        while not self.should_exit and not self.exit_after_start:
            await asyncio.sleep(0.001)


class _Recorder:
    def __init__(self, server: _FakeServer) -> None:
        self.server = server
        self.calls = 0

    def __call__(self, app: object, **kwargs: Any) -> _FakeServer:
        self.calls += 1
        self.server.build_kwargs = kwargs
        return self.server


def _config(tmp_path: Path, *lines: str) -> Path:
    path = tmp_path / "gateway.yaml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _valid_config(tmp_path: Path) -> Path:
    return _config(
        tmp_path,
        "logging:",
        "  json_output: false",
        "server:",
        "  port: 9090",
        "  drain_timeout_seconds: 0.5",
        "store:",
        "  url: memory://",
        "generation:",
        "  api_key: test-key",
        "memory:",
        "  enabled: false",
    )


def test_missing_required_settings_exit_before_serving(tmp_path: Path) -> None:
    recorder = _Recorder(_FakeServer())

    code = run(
        config_path=_config(tmp_path, "server:", "  port: 9090"),
        server_factory=recorder,
        install_signals=False,
    )

    assert code == 1
    assert recorder.calls == 0


def test_invalid_configuration_exits_nonzero(tmp_path: Path) -> None:
    recorder = _Recorder(_FakeServer())

    code = run(
        config_path=_config(tmp_path, "server:", "  port: 0"),
        server_factory=recorder,
        install_signals=False,
    )

    assert code == 1
    assert recorder.calls == 0


def test_component_construction_failure_exits_nonzero(tmp_path: Path) -> None:
    recorder = _Recorder(_FakeServer())

    async def _broken(**_kwargs: Any) -> AppContext:
        raise ConnectionError("store unreachable")

    code = run(
        config_path=_valid_config(tmp_path),
        server_factory=recorder,
        context_factory=_broken,
        install_signals=False,
    )

    assert code == 1
    assert recorder.calls == 0


def test_shutdown_request_drains_and_stops_cleanly(tmp_path: Path) -> None:
    server = _FakeServer()
    recorder = _Recorder(server)
    seen: list[LifecycleController] = []

    async def _context(
        *, settings: GatewaySettings, lifecycle: LifecycleController
    ) -> AppContext:
        seen.append(lifecycle)
        context = await build_app_context(
            settings=settings, lifecycle=lifecycle, generator=FakeGenerator()
        )
        asyncio.get_running_loop().call_later(
            0.05, lifecycle.request_shutdown, "SIGTERM"
        )
        return context

    code = run(
        config_path=_valid_config(tmp_path),
        server_factory=recorder,
        context_factory=_context,
        install_signals=False,
    )

    assert code == 0
    assert recorder.calls == 1
    assert recorder.server.build_kwargs["port"] == 9090
    assert server.should_exit is True
    assert server.force_exit is False
    assert seen[0].state is LifecycleState.STOPPED


def test_server_exit_without_signal_still_stops(tmp_path: Path) -> None:
    server = _FakeServer(exit_after_start=True)
    seen: list[LifecycleController] = []

    async def _context(
        *, settings: GatewaySettings, lifecycle: LifecycleController
    ) -> AppContext:
        seen.append(lifecycle)
        return await build_app_context(
            settings=settings, lifecycle=lifecycle, generator=FakeGenerator()
        )

    code = run(
        config_path=_valid_config(tmp_path),
        server_factory=_Recorder(server),
        context_factory=_context,
        install_signals=False,
    )

    assert code == 0
    assert seen[0].state is LifecycleState.STOPPED
