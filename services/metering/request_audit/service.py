"""Authoritative in-process Python API for Request Audit Log."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.gateway_shared.config import GatewaySettings
from packages.gateway_shared.envelope import EnvelopeMeta, Result
from resources.substrates.credential_store import CredentialStore, RequestRecord
from services.metering.request_audit.domain import AuditMetadata


class RequestAuditLog(ABC):
    """Public API for best-effort audit records of debited calls."""

    @abstractmethod
    async def record(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        metadata: AuditMetadata,
        record_id: str | None = None,
    ) -> str | None:
        """Write one audit record and return its id, or ``None`` on any failure.

        Never raises.
        """

    @abstractmethod
    def submit(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        metadata: AuditMetadata,
        record_id: str | None = None,
    ) -> None:
        """Schedule ``record`` in the background and return immediately."""

    @abstractmethod
    async def drain(self, *, timeout_seconds: float) -> int:
        """Wait for background writes; return how many were still pending."""

    @abstractmethod
    async def history(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        limit: int,
    ) -> Result[list[RequestRecord]]:
        """Return recent records for one account, newest first."""


def build_request_audit_log(
    *,
    settings: GatewaySettings,
    store: CredentialStore,
) -> RequestAuditLog:
    """Build default Request Audit Log implementation from typed settings."""
    from services.metering.request_audit.config import resolve_request_audit_settings
    from services.metering.request_audit.implementation import (
        DefaultRequestAuditLog,
    )

    return DefaultRequestAuditLog(
        settings=resolve_request_audit_settings(settings),
        store=store,
    )
