"""Gateway liveness, readiness, and composite health evaluation."""

from __future__ import annotations

import asyncio
import os
import time
from datetime import UTC, datetime
from enum import StrEnum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from packages.gateway_core.lifecycle import LifecycleController, LifecycleState
from packages.gateway_core.memory import MemoryGuardian, MemoryLevel
from packages.gateway_shared.config import GatewaySettings
from packages.gateway_shared.logging import get_logger
from resources.adapters.generation import GenerationAdapter
from resources.substrates.credential_store import CredentialStore, StoreHealthStatus

_LOGGER = get_logger(__name__)


class CompositeStatus(StrEnum):
    """Aggregate process health classification."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """One dependency-level health result."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    critical: bool
    detail: str = ""


class MemoryReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: MemoryLevel
    used_mb: float
    total_mb: float
    percentage: float
    enabled: bool


class LivenessReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    status: str = "alive"
    uptime_seconds: float
    timestamp: datetime
    pid: int


class ReadinessReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    state: LifecycleState
    detail: str = ""


class BasicReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    status: str = "ok"
    version: str
    environment: str
    uptime_seconds: float
    timestamp: datetime
    memory: MemoryReport


class DetailedReport(BaseModel):
    """Composite health across lifecycle, memory, and dependencies."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: CompositeStatus
    state: LifecycleState
    version: str
    environment: str
    uptime_seconds: float
    timestamp: datetime
    memory: MemoryReport
    dependencies: dict[str, ComponentHealth] = Field(default_factory=dict)


def composite_status(
    *,
    state: LifecycleState,
    memory_level: MemoryLevel,
    store_ready: bool,
    generation_ready: bool,
) -> CompositeStatus:
    """Classify overall health; critical dependencies outrank degradations."""
    if not store_ready or memory_level in (MemoryLevel.CRITICAL, MemoryLevel.MAX):
        return CompositeStatus.UNHEALTHY
    if (
        memory_level is MemoryLevel.WARNING
        or not generation_ready
        or state is not LifecycleState.READY
    ):
        return CompositeStatus.DEGRADED
    return CompositeStatus.HEALTHY


class HealthReporter:
    """Answers liveness, readiness, basic, and detailed health queries."""

    def __init__(
        self,
        *,
        settings: GatewaySettings,
        lifecycle: LifecycleController,
        memory: MemoryGuardian,
        store: CredentialStore,
        generator: GenerationAdapter,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._lifecycle = lifecycle
        self._memory = memory
        self._store = store
        self._generator = generator
        self._monotonic = monotonic
        self._started = monotonic()

    def uptime_seconds(self) -> float:
        return round(self._monotonic() - self._started, 3)

    def liveness(self) -> LivenessReport:
        """Always alive; never touches dependencies."""
        return LivenessReport(
            uptime_seconds=self.uptime_seconds(),
            timestamp=datetime.now(UTC),
            pid=os.getpid(),
        )

    async def readiness(self) -> ReadinessReport:
        state = self._lifecycle.state
        if state is not LifecycleState.READY:
            return ReadinessReport(
                ready=False, state=state, detail=f"lifecycle is {state.value}"
            )
        store = await self._store_health()
        return ReadinessReport(ready=store.ready, state=state, detail=store.detail)

    def basic(self) -> BasicReport:
        return BasicReport(
            version=self._settings.server.version,
            environment=self._settings.server.environment,
            uptime_seconds=self.uptime_seconds(),
            timestamp=datetime.now(UTC),
            memory=self._memory_report(),
        )

    async def detailed(self) -> DetailedReport:
        state = self._lifecycle.state
        memory = self._memory_report()
        store = await self._store_health()
        generation = await self._generation_health()
        return DetailedReport(
            status=composite_status(
                state=state,
                memory_level=memory.level,
                store_ready=store.ready,
                generation_ready=generation.ready,
            ),
            state=state,
            version=self._settings.server.version,
            environment=self._settings.server.environment,
            uptime_seconds=self.uptime_seconds(),
            timestamp=datetime.now(UTC),
            memory=memory,
            dependencies={
                "credential_store": ComponentHealth(
                    ready=store.ready, critical=True, detail=store.detail
                ),
                "generation": generation,
            },
        )

    def _memory_report(self) -> MemoryReport:
        status = self._memory.current_status()
        return MemoryReport(
            level=status.level,
            used_mb=status.usage.used_mb,
            total_mb=status.usage.total_mb,
            percentage=status.usage.percentage,
            enabled=status.enabled,
        )

    async def _store_health(self) -> StoreHealthStatus:
        try:
            return await asyncio.wait_for(
                self._store.health(),
                timeout=self._settings.store.health_timeout_seconds,
            )
        except TimeoutError:
            return StoreHealthStatus(ready=False, detail="store health timed out")
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "store health probe failed: exception_type=%s", type(exc).__name__
            )
            return StoreHealthStatus(
                ready=False, detail=f"store health failed: {type(exc).__name__}"
            )

    async def _generation_health(self) -> ComponentHealth:
        try:
            result = await self._generator.health()
        except Exception as exc:  # noqa: BLE001
            return ComponentHealth(
                ready=False,
                critical=False,
                detail=f"generation health failed: {type(exc).__name__}",
            )
        return ComponentHealth(
            ready=result.adapter_ready, critical=False, detail=result.detail
        )
