"""HTTP adapter for gateway liveness, readiness, and composite health."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from packages.gateway_core.health import CompositeStatus, HealthReporter

_STATUS_CODES: dict[CompositeStatus, int] = {
    CompositeStatus.HEALTHY: 200,
    CompositeStatus.DEGRADED: 207,
    CompositeStatus.UNHEALTHY: 503,
}


def register_routes(*, router: APIRouter, reporter: HealthReporter) -> None:
    """Register ``/health`` routes backed by one health reporter."""

    @router.get("/health/live")
    async def live() -> dict[str, Any]:
        return reporter.liveness().model_dump(mode="json")

    @router.get("/health/ready")
    async def ready() -> JSONResponse:
        report = await reporter.readiness()
        if report.ready:
            return JSONResponse({"status": "ready", "state": report.state.value})
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "state": report.state.value,
                "detail": report.detail,
            },
        )

    @router.get("/health")
    async def basic() -> dict[str, Any]:
        return reporter.basic().model_dump(mode="json")

    @router.get("/health/detailed")
    async def detailed() -> JSONResponse:
        report = await reporter.detailed()
        return JSONResponse(
            status_code=_STATUS_CODES[report.status],
            content=report.model_dump(mode="json"),
        )
