"""Tests for composite health classification and readiness reporting."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from packages.gateway_core.health import CompositeStatus, composite_status
from packages.gateway_core.lifecycle import LifecycleState
from packages.gateway_core.memory import MemoryLevel
from resources.substrates.credential_store import StoreHealthStatus
from tests.core.helpers import FakeGenerator, build_context, gateway_settings


@pytest.mark.parametrize(
    ("state", "memory_level", "store_ready", "generation_ready", "expected"),
    [
        (LifecycleState.READY, MemoryLevel.HEALTHY, True, True, CompositeStatus.HEALTHY),
        (LifecycleState.READY, MemoryLevel.WARNING, True, True, CompositeStatus.DEGRADED),
        (LifecycleState.READY, MemoryLevel.HEALTHY, True, False, CompositeStatus.DEGRADED),
        (LifecycleState.DRAINING, MemoryLevel.HEALTHY, True, True, CompositeStatus.DEGRADED),
        (LifecycleState.READY, MemoryLevel.CRITICAL, True, True, CompositeStatus.UNHEALTHY),
        (LifecycleState.READY, MemoryLevel.MAX, True, True, CompositeStatus.UNHEALTHY),
        (LifecycleState.READY, MemoryLevel.HEALTHY, False, True, CompositeStatus.UNHEALTHY),
    ],
)
def test_composite_status(
    state: LifecycleState,
    memory_level: MemoryLevel,
    store_ready: bool,
    generation_ready: bool,
    expected: CompositeStatus,
) -> None:
    assert (
        composite_status(
            state=state,
            memory_level=memory_level,
            store_ready=store_ready,
            generation_ready=generation_ready,
        )
        is expected
    )


def test_readiness_follows_lifecycle(tmp_path: Path) -> None:
    context = build_context(gateway_settings(tmp_path))

    ready = asyncio.run(context.health.readiness())
    context.lifecycle.begin_drain(reason="test")
    draining = asyncio.run(context.health.readiness())

    assert ready.ready is True
    assert draining.ready is False
    assert draining.state is LifecycleState.DRAINING


def test_readiness_fails_when_store_is_down(tmp_path: Path) -> None:
    context = build_context(gateway_settings(tmp_path))
    asyncio.run(context.store.close())

    report = asyncio.run(context.health.readiness())

    assert report.ready is False
    assert report.detail == "store closed"


def test_readiness_fails_when_store_health_hangs(tmp_path: Path) -> None:
    context = build_context(
        gateway_settings(tmp_path, store={"url": "memory://", "health_timeout_seconds": 0.01})
    )

    async def _hang() -> StoreHealthStatus:
        await asyncio.sleep(1)
        return StoreHealthStatus(ready=True, detail="late")

    context.store.health = _hang  # type: ignore[method-assign]

    report = asyncio.run(context.health.readiness())

    assert report.ready is False
    assert "timed out" in report.detail


def test_detailed_report_degrades_on_generation_outage(tmp_path: Path) -> None:
    context = build_context(
        gateway_settings(tmp_path), generator=FakeGenerator(ready=False)
    )

    report = asyncio.run(context.health.detailed())

    assert report.status is CompositeStatus.DEGRADED
    assert report.dependencies["credential_store"].ready is True
    assert report.dependencies["credential_store"].critical is True
    assert report.dependencies["generation"].ready is False


def test_liveness_never_depends_on_lifecycle(tmp_path: Path) -> None:
    context = build_context(gateway_settings(tmp_path))
    context.lifecycle.begin_drain(reason="test")

    report = context.health.liveness()

    assert report.status == "alive"
    assert report.pid > 0
