"""Pydantic settings for Credit Ledger behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.gateway_shared.config import GatewaySettings


class CreditLedgerSettings(BaseModel):
    """Credit Ledger runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    transaction_timeout_seconds: float = Field(default=5.0, gt=0)


def resolve_credit_ledger_settings(settings: GatewaySettings) -> CreditLedgerSettings:
    """Resolve Credit Ledger settings from the ``store`` section."""
    return CreditLedgerSettings(
        transaction_timeout_seconds=settings.store.operation_timeout_seconds,
    )
