"""Tests for lifecycle transitions, in-flight tracking, and fault handling."""

from __future__ import annotations

import asyncio

import pytest

from packages.gateway_core.lifecycle import (
    LifecycleController,
    LifecycleState,
    LifecycleTransitionError,
)


def _ready(*, is_production: bool = False) -> LifecycleController:
    lifecycle = LifecycleController(is_production=is_production)
    lifecycle.begin_validation()
    lifecycle.mark_ready()
    return lifecycle


def test_happy_path_transitions_in_order() -> None:
    lifecycle = LifecycleController()
    assert lifecycle.state is LifecycleState.STARTING
    assert lifecycle.is_admitting() is False

    lifecycle.begin_validation()
    lifecycle.mark_ready()
    assert lifecycle.is_admitting() is True

    assert lifecycle.begin_drain(reason="test") is True
    assert lifecycle.is_admitting() is False
    assert lifecycle.shutdown_requested.is_set()

    lifecycle.mark_stopped()
    assert lifecycle.state is LifecycleState.STOPPED


def test_lifecycle_never_moves_backwards() -> None:
    lifecycle = _ready()
    lifecycle.begin_drain(reason="test")

    with pytest.raises(LifecycleTransitionError) as exc_info:
        lifecycle.mark_ready()

    assert exc_info.value.current is LifecycleState.DRAINING
    assert exc_info.value.target is LifecycleState.READY


def test_second_drain_request_is_ignored() -> None:
    lifecycle = _ready()

    assert lifecycle.begin_drain(reason="signal:SIGTERM") is True
    assert lifecycle.begin_drain(reason="signal:SIGINT") is False
    assert lifecycle.state is LifecycleState.DRAINING


def test_fail_records_missing_settings_and_is_terminal() -> None:
    lifecycle = LifecycleController()
    lifecycle.begin_validation()

    lifecycle.fail(missing=["GATEWAY_STORE__URL"])

    assert lifecycle.state is LifecycleState.FAILED
    assert "GATEWAY_STORE__URL" in lifecycle.failure_detail
    with pytest.raises(LifecycleTransitionError):
        lifecycle.mark_ready()


def test_wait_for_idle_returns_once_tracked_requests_finish() -> None:
    lifecycle = _ready()

    async def _run() -> tuple[int, bool, int]:
        release = asyncio.Event()
        entered = asyncio.Event()

        async def _request() -> None:
            async with lifecycle.track_request():
                entered.set()
                await release.wait()

        task = asyncio.create_task(_request())
        await entered.wait()
        during = lifecycle.in_flight
        asyncio.get_running_loop().call_later(0.01, release.set)
        idle = await lifecycle.wait_for_idle(timeout_seconds=1.0)
        await task
        return during, idle, lifecycle.in_flight

    assert asyncio.run(_run()) == (1, True, 0)


def test_wait_for_idle_times_out_with_stuck_request() -> None:
    lifecycle = _ready()

    async def _run() -> bool:
        release = asyncio.Event()
        entered = asyncio.Event()

        async def _request() -> None:
            async with lifecycle.track_request():
                entered.set()
                await release.wait()

        task = asyncio.create_task(_request())
        await entered.wait()
        idle = await lifecycle.wait_for_idle(timeout_seconds=0.01)
        release.set()
        await task
        return idle

    assert asyncio.run(_run()) is False


def test_uncaught_fault_drains_outside_production() -> None:
    lifecycle = _ready()

    async def _run() -> None:
        lifecycle.handle_uncaught_fault(
            asyncio.get_running_loop(),
            {"message": "boom", "exception": RuntimeError("boom")},
        )

    asyncio.run(_run())

    assert lifecycle.state is LifecycleState.DRAINING


def test_uncaught_fault_is_logged_only_in_production() -> None:
    lifecycle = _ready(is_production=True)

    async def _run() -> None:
        lifecycle.handle_uncaught_fault(
            asyncio.get_running_loop(),
            {"message": "boom", "exception": RuntimeError("boom")},
        )

    asyncio.run(_run())

    assert lifecycle.state is LifecycleState.READY
    assert lifecycle.shutdown_requested.is_set() is False


def test_request_shutdown_drains_from_signal() -> None:
    lifecycle = _ready()

    lifecycle.request_shutdown("SIGTERM")
    lifecycle.request_shutdown("SIGTERM")

    assert lifecycle.state is LifecycleState.DRAINING
