"""Authoritative in-process Python API for Auth Gate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from packages.gateway_shared.config import GatewaySettings
from packages.gateway_shared.envelope import EnvelopeMeta, Result
from resources.substrates.credential_store import Account, CredentialStore


class AdmissionControl(Protocol):
    """Read-only view of whether the process admits new work."""

    def is_admitting(self) -> bool:
        """Return False once the process is draining or stopped."""


class AuthGate(ABC):
    """Public API resolving bearer credentials to admissible accounts."""

    @abstractmethod
    async def authenticate(
        self,
        *,
        meta: EnvelopeMeta,
        authorization: str | None,
        require_credits: bool = True,
    ) -> Result[Account]:
        """Resolve one ``Authorization`` header value to an account.

        Errors carry one of ``SERVICE_UNAVAILABLE``, ``MISSING_CREDENTIAL``,
        ``INVALID_CREDENTIAL``, ``ACCOUNT_SUSPENDED``,
        ``INSUFFICIENT_CREDITS`` or ``STORE_UNAVAILABLE``. The balance check
        is skipped when ``require_credits`` is False.
        """


def build_auth_gate(
    *,
    settings: GatewaySettings,
    store: CredentialStore,
    admission: AdmissionControl,
) -> AuthGate:
    """Build default Auth Gate implementation from typed settings."""
    from services.metering.auth_gate.config import resolve_auth_gate_settings
    from services.metering.auth_gate.implementation import DefaultAuthGate

    return DefaultAuthGate(
        settings=resolve_auth_gate_settings(settings),
        store=store,
        admission=admission,
    )
