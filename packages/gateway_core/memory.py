"""Periodic memory classification with one reclamation pass per breach."""

from __future__ import annotations

import asyncio
import gc
from enum import StrEnum
from typing import Callable

import psutil
from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.gateway_shared.config import MemorySettings
from packages.gateway_shared.logging import fields, get_logger

_LOGGER = get_logger(__name__)

_MB = 1024 * 1024


class MemoryLevel(StrEnum):
    """Memory pressure classification."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    MAX = "max"


_BREACH_LEVELS = frozenset({MemoryLevel.CRITICAL, MemoryLevel.MAX})


class MemoryThresholds(BaseModel):
    """Ascending byte thresholds for WARNING, CRITICAL and MAX."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    warning_bytes: int = Field(gt=0)
    critical_bytes: int = Field(gt=0)
    max_bytes: int = Field(gt=0)

    @model_validator(mode="after")
    def _require_ascending(self) -> "MemoryThresholds":
        if not self.warning_bytes < self.critical_bytes < self.max_bytes:
            raise ValueError("memory thresholds must be strictly ascending")
        return self

    @classmethod
    def from_settings(cls, settings: MemorySettings) -> "MemoryThresholds":
        return cls(
            warning_bytes=settings.warning_mb * _MB,
            critical_bytes=settings.critical_mb * _MB,
            max_bytes=settings.max_mb * _MB,
        )

    def classify(self, used_bytes: int) -> MemoryLevel:
        if used_bytes >= self.max_bytes:
            return MemoryLevel.MAX
        if used_bytes >= self.critical_bytes:
            return MemoryLevel.CRITICAL
        if used_bytes >= self.warning_bytes:
            return MemoryLevel.WARNING
        return MemoryLevel.HEALTHY


class MemoryUsage(BaseModel):
    """One memory sample: process resident bytes against host total."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    used_bytes: int = Field(ge=0)
    total_bytes: int = Field(ge=0)

    @property
    def used_mb(self) -> float:
        return round(self.used_bytes / _MB, 2)

    @property
    def total_mb(self) -> float:
        return round(self.total_bytes / _MB, 2)

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return round(self.used_bytes / self.total_bytes * 100.0, 2)


class MemoryStatus(BaseModel):
    """Latest classification reported by ``current_status``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: MemoryLevel
    usage: MemoryUsage
    enabled: bool = True


MemoryProbe = Callable[[], MemoryUsage]
Reclaimer = Callable[[], object]


def process_memory_usage() -> MemoryUsage:
    """Sample this process's resident set size and the host's total memory."""
    rss = psutil.Process().memory_info().rss
    total = psutil.virtual_memory().total
    return MemoryUsage(used_bytes=rss, total_bytes=total)


class MemoryGuardian:
    """Classify memory on an interval and request reclamation on breach.

    A breach is entering CRITICAL or MAX from below CRITICAL. Exactly one
    reclamation pass is requested per breach; the breach resets once usage
    falls back below CRITICAL.
    """

    def __init__(
        self,
        *,
        thresholds: MemoryThresholds,
        interval_seconds: float = 120.0,
        enabled: bool = True,
        probe: MemoryProbe | None = None,
        reclaim: Reclaimer | None = gc.collect,
    ) -> None:
        self._thresholds = thresholds
        self._interval_seconds = interval_seconds
        self._enabled = enabled
        self._probe = probe or process_memory_usage
        self._reclaim = reclaim
        self._in_breach = False
        self._reclaim_count = 0
        self._status = MemoryStatus(
            level=MemoryLevel.HEALTHY,
            usage=MemoryUsage(used_bytes=0, total_bytes=0),
            enabled=enabled,
        )
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: MemorySettings,
        *,
        probe: MemoryProbe | None = None,
        reclaim: Reclaimer | None = gc.collect,
    ) -> "MemoryGuardian":
        return cls(
            thresholds=MemoryThresholds.from_settings(settings),
            interval_seconds=settings.interval_seconds,
            enabled=settings.enabled,
            probe=probe,
            reclaim=reclaim,
        )

    @property
    def reclaim_count(self) -> int:
        return self._reclaim_count

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def current_status(self) -> MemoryStatus:
        """Return the last classification without sampling."""
        return self._status

    def tick(self) -> MemoryStatus:
        """Sample once, classify, and reclaim if this sample starts a breach."""
        if not self._enabled:
            return self._status

        usage = self._probe()
        level = self._thresholds.classify(usage.used_bytes)
        previous = self._status.level
        self._status = MemoryStatus(level=level, usage=usage, enabled=True)

        if level != previous:
            log = _LOGGER.info if level is MemoryLevel.HEALTHY else _LOGGER.warning
            log(
                "memory level changed",
                extra={
                    fields.MEMORY_LEVEL: level.value,
                    "previous_level": previous.value,
                    "used_mb": usage.used_mb,
                },
            )

        if level in _BREACH_LEVELS:
            if not self._in_breach:
                self._in_breach = True
                self._request_reclamation(level=level, usage=usage)
        else:
            self._in_breach = False
        return self._status

    def start(self) -> None:
        """Start the periodic sampling task on the running loop."""
        if not self._enabled:
            _LOGGER.info("memory guardian disabled")
            return
        if self.running:
            return
        try:
            self.tick()
        except Exception:  # noqa: BLE001
            _LOGGER.exception("initial memory sample failed")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                self.tick()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("memory sample failed")

    def _request_reclamation(self, *, level: MemoryLevel, usage: MemoryUsage) -> None:
        if self._reclaim is None:
            _LOGGER.warning(
                "memory breach but reclamation is unavailable",
                extra={fields.MEMORY_LEVEL: level.value, "used_mb": usage.used_mb},
            )
            return
        self._reclaim_count += 1
        collected = self._reclaim()
        _LOGGER.warning(
            "memory breach; reclamation requested",
            extra={
                fields.MEMORY_LEVEL: level.value,
                "used_mb": usage.used_mb,
                "collected": collected,
            },
        )
