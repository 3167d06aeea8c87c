"""Public API for gateway process lifecycle, health, and app assembly."""

from packages.gateway_core.app import create_gateway_app
from packages.gateway_core.context import AppContext
from packages.gateway_core.health import (
    CompositeStatus,
    HealthReporter,
    composite_status,
)
from packages.gateway_core.lifecycle import (
    LifecycleController,
    LifecycleState,
    LifecycleTransitionError,
)
from packages.gateway_core.memory import (
    MemoryGuardian,
    MemoryLevel,
    MemoryStatus,
    MemoryThresholds,
    MemoryUsage,
)
from packages.gateway_core.startup import build_app_context

__all__ = [
    "AppContext",
    "CompositeStatus",
    "HealthReporter",
    "LifecycleController",
    "LifecycleState",
    "LifecycleTransitionError",
    "MemoryGuardian",
    "MemoryLevel",
    "MemoryStatus",
    "MemoryThresholds",
    "MemoryUsage",
    "build_app_context",
    "composite_status",
    "create_gateway_app",
]
