"""Credential store contract."""

from __future__ import annotations

from typing import Callable, Protocol

from pydantic import BaseModel, ConfigDict

from resources.substrates.credential_store.records import Account, RequestRecord

# Receives the current snapshot (``None`` when absent) and returns the new one.
# Raising inside the mutator aborts the transaction with no effects applied.
AccountMutator = Callable[[Account | None], Account]


class StoreHealthStatus(BaseModel):
    """Credential store readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class CredentialStore(Protocol):
    """Transactional persistence for accounts and request records.

    Implementations raise ``StoreError`` subclasses for infrastructure
    failures. Exceptions raised by an ``AccountMutator`` propagate unchanged.
    """

    async def find_by_credential(self, credential: str) -> Account | None:
        """Return the account whose credential matches exactly, if any."""

    async def get_account(self, account_id: str) -> Account | None:
        """Return one account snapshot by id, if present."""

    async def update_account(
        self, account_id: str, mutate: AccountMutator
    ) -> Account:
        """Atomically read, mutate, and write one account.

        Concurrent calls for the same account are serialized; the mutator
        always observes the latest committed snapshot.
        """

    async def append_request(self, record: RequestRecord) -> str:
        """Persist one request record and return its id."""

    async def list_requests(
        self, account_id: str, *, limit: int
    ) -> list[RequestRecord]:
        """Return the most recent request records for one account, newest first."""

    async def health(self) -> StoreHealthStatus:
        """Probe store reachability."""

    async def close(self) -> None:
        """Release connections and pools."""
