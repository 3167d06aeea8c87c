"""Gateway startup: build the store, the adapter, and the metering services."""

from __future__ import annotations

from collections.abc import Callable

from packages.gateway_core.context import AppContext
from packages.gateway_core.health import HealthReporter
from packages.gateway_core.lifecycle import LifecycleController
from packages.gateway_core.memory import MemoryGuardian
from packages.gateway_shared.config import GatewaySettings, GenerationSettings
from packages.gateway_shared.logging import get_logger
from resources.adapters.generation import GeminiGenerationAdapter, GenerationAdapter
from resources.substrates.credential_store import (
    CredentialStore,
    build_credential_store,
    prepare_credential_store,
)
from services.metering.auth_gate import build_auth_gate
from services.metering.credit_ledger import build_credit_ledger
from services.metering.request_audit import build_request_audit_log

_LOGGER = get_logger(__name__)


def _build_gemini_adapter(settings: GenerationSettings) -> GenerationAdapter:
    return GeminiGenerationAdapter(settings=settings)


async def build_app_context(
    *,
    settings: GatewaySettings,
    lifecycle: LifecycleController,
    store: CredentialStore | None = None,
    generator: GenerationAdapter | None = None,
    memory: MemoryGuardian | None = None,
    store_builder: Callable[..., CredentialStore] = build_credential_store,
    generator_builder: Callable[
        [GenerationSettings], GenerationAdapter
    ] = _build_gemini_adapter,
) -> AppContext:
    """Construct every component and move the lifecycle to READY.

    The lifecycle must already be VALIDATING. Explicit ``store``,
    ``generator`` and ``memory`` instances take precedence over the builders.
    """
    resolved_store = store if store is not None else store_builder(settings.store)
    await prepare_credential_store(resolved_store, settings.store)
    resolved_generator = (
        generator if generator is not None else generator_builder(settings.generation)
    )
    resolved_memory = (
        memory if memory is not None else MemoryGuardian.from_settings(settings.memory)
    )

    context = AppContext(
        settings=settings,
        lifecycle=lifecycle,
        memory=resolved_memory,
        store=resolved_store,
        generator=resolved_generator,
        auth_gate=build_auth_gate(
            settings=settings, store=resolved_store, admission=lifecycle
        ),
        ledger=build_credit_ledger(settings=settings, store=resolved_store),
        audit_log=build_request_audit_log(settings=settings, store=resolved_store),
        health=HealthReporter(
            settings=settings,
            lifecycle=lifecycle,
            memory=resolved_memory,
            store=resolved_store,
            generator=resolved_generator,
        ),
    )
    lifecycle.mark_ready()
    _LOGGER.info(
        "gateway components constructed",
        extra={
            "store": type(resolved_store).__name__,
            "generator": type(resolved_generator).__name__,
            "memory_guardian_enabled": settings.memory.enabled,
        },
    )
    return context
