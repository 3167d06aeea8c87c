"""Authoritative in-process Python API for Credit Ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.gateway_shared.config import GatewaySettings
from packages.gateway_shared.envelope import EnvelopeMeta, Result
from resources.substrates.credential_store import Account, CredentialStore


class CreditLedger(ABC):
    """Public API for the only mutating operation on accounts."""

    @abstractmethod
    async def debit(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        cost: int,
    ) -> Result[Account]:
        """Atomically charge ``cost`` credits and record one request.

        Decrements ``credits``, increments ``total_requests`` and stamps
        ``last_used_at`` together or not at all. Errors carry
        ``INSUFFICIENT_CREDITS``, ``ACCOUNT_NOT_FOUND`` or
        ``STORE_UNAVAILABLE``.
        """

    @abstractmethod
    async def balance(self, *, meta: EnvelopeMeta, account_id: str) -> Result[Account]:
        """Return the current account snapshot without mutation."""


def build_credit_ledger(
    *,
    settings: GatewaySettings,
    store: CredentialStore,
) -> CreditLedger:
    """Build default Credit Ledger implementation from typed settings."""
    from services.metering.credit_ledger.config import resolve_credit_ledger_settings
    from services.metering.credit_ledger.implementation import DefaultCreditLedger

    return DefaultCreditLedger(
        settings=resolve_credit_ledger_settings(settings),
        store=store,
    )
