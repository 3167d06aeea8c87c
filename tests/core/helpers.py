"""Shared fakes for gateway core tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from packages.gateway_core.context import AppContext
from packages.gateway_core.lifecycle import LifecycleController
from packages.gateway_core.memory import MemoryGuardian
from packages.gateway_core.startup import build_app_context
from packages.gateway_shared.config import GatewaySettings, load_settings
from resources.adapters.generation import (
    GenerationHealthResult,
    GenerationModelInfo,
    GenerationResult,
)
from resources.substrates.credential_store import Account, InMemoryCredentialStore

CREDENTIAL = "key-abcdef-123456"


class FakeGenerator:
    """Generation adapter double with scripted text, errors, and delay."""

    def __init__(
        self,
        *,
        text: str = "Hello back",
        error: Exception | None = None,
        delay_seconds: float = 0.0,
        ready: bool = True,
    ) -> None:
        self.text = text
        self.error = error
        self.delay_seconds = delay_seconds
        self.ready = ready
        self.prompts: list[str] = []
        self.closed = False

    async def generate(self, *, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.text, model="gemini-test", latency_ms=12)

    def model_info(self) -> GenerationModelInfo:
        return GenerationModelInfo(
            model="gemini-test",
            provider="google",
            temperature=0.7,
            top_k=40,
            top_p=0.95,
            max_output_tokens=2048,
            timeout_seconds=30.0,
        )

    async def health(self) -> GenerationHealthResult:
        return GenerationHealthResult(adapter_ready=self.ready, detail="fake")

    async def aclose(self) -> None:
        self.closed = True


def account(**overrides: object) -> Account:
    values: dict[str, object] = {
        "id": "acct-1",
        "credential": CREDENTIAL,
        "credits": 5,
        "email": "user@example.test",
    }
    values.update(overrides)
    return Account.model_validate(values)


def gateway_settings(tmp_path: Path, **sections: Any) -> GatewaySettings:
    params: dict[str, Any] = {
        "store": {"url": "memory://"},
        "generation": {"api_key": "test-key"},
        "memory": {"enabled": False},
    }
    params.update(sections)
    return load_settings(cli_params=params, config_path=tmp_path / "missing.yaml")


def build_context(
    settings: GatewaySettings,
    *,
    accounts: list[Account] | None = None,
    generator: FakeGenerator | None = None,
    store: InMemoryCredentialStore | None = None,
    memory: MemoryGuardian | None = None,
) -> AppContext:
    """Build a READY context over an in-memory store."""
    lifecycle = LifecycleController(is_production=settings.server.is_production)
    lifecycle.begin_validation()
    return asyncio.run(
        build_app_context(
            settings=settings,
            lifecycle=lifecycle,
            store=store
            or InMemoryCredentialStore(accounts if accounts is not None else [account()]),
            generator=generator or FakeGenerator(),
            memory=memory or MemoryGuardian.from_settings(settings.memory),
        )
    )
