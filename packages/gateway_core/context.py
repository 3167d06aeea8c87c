"""Process-scoped container for settings, lifecycle, and built components."""

from __future__ import annotations

from dataclasses import dataclass, field

import uvicorn

from packages.gateway_core.health import HealthReporter
from packages.gateway_core.lifecycle import LifecycleController
from packages.gateway_core.memory import MemoryGuardian
from packages.gateway_shared.config import GatewaySettings
from resources.adapters.generation import GenerationAdapter
from resources.substrates.credential_store import CredentialStore
from services.metering.auth_gate import AuthGate
from services.metering.credit_ledger import CreditLedger
from services.metering.request_audit import RequestAuditLog


@dataclass(slots=True)
class AppContext:
    """Everything a request handler or signal handler may reach.

    One instance exists per process; ``server`` is attached once uvicorn is
    built so shutdown sequencing can flip ``should_exit``.
    """

    settings: GatewaySettings
    lifecycle: LifecycleController
    memory: MemoryGuardian
    store: CredentialStore
    generator: GenerationAdapter
    auth_gate: AuthGate
    ledger: CreditLedger
    audit_log: RequestAuditLog
    health: HealthReporter
    server: uvicorn.Server | None = field(default=None)

    async def aclose(self) -> None:
        """Stop background work and release store and HTTP resources."""
        await self.memory.stop()
        await self.generator.aclose()
        await self.store.close()
