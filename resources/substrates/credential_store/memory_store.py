"""In-process credential store used for development and tests."""

from __future__ import annotations

import asyncio
from resources.substrates.credential_store.errors import StoreUnavailableError
from resources.substrates.credential_store.records import Account, RequestRecord
from resources.substrates.credential_store.store import (
    AccountMutator,
    CredentialStore,
    StoreHealthStatus,
)


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed store with per-account transactional isolation."""

    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._accounts: dict[str, Account] = {}
        self._requests: list[RequestRecord] = []
        # One lock per seeded account; unknown ids never allocate one.
        self._locks: dict[str, asyncio.Lock] = {}
        self._closed = False
        for account in accounts or ():
            self.add_account(account)

    def add_account(self, account: Account) -> None:
        """Seed one account; credentials must stay unique."""
        for existing in self._accounts.values():
            if existing.credential == account.credential and existing.id != account.id:
                raise ValueError("credential already assigned to another account")
        self._accounts[account.id] = account
        self._locks.setdefault(account.id, asyncio.Lock())

    def list_records(self) -> tuple[RequestRecord, ...]:
        """Expose immutable request records for tests and diagnostics."""
        return tuple(self._requests)

    def account_snapshot(self, account_id: str) -> Account | None:
        """Read one account synchronously, even after ``close()``."""
        return self._accounts.get(account_id)

    async def find_by_credential(self, credential: str) -> Account | None:
        self._require_open()
        for account in self._accounts.values():
            if account.credential == credential:
                return account
        return None

    async def get_account(self, account_id: str) -> Account | None:
        self._require_open()
        return self._accounts.get(account_id)

    async def update_account(self, account_id: str, mutate: AccountMutator) -> Account:
        self._require_open()
        async with self._locks.get(account_id) or asyncio.Lock():
            current = self._accounts.get(account_id)
            # Yield between read and write so unsynchronized callers would interleave.
            await asyncio.sleep(0)
            updated = mutate(current)
            if updated.id != account_id:
                raise ValueError("mutator must not change the account id")
            self._accounts[account_id] = updated
            return updated

    async def append_request(self, record: RequestRecord) -> str:
        self._require_open()
        self._requests.append(record)
        return record.id

    async def list_requests(self, account_id: str, *, limit: int) -> list[RequestRecord]:
        self._require_open()
        matching = [item for item in self._requests if item.account_id == account_id]
        matching.sort(key=lambda item: item.timestamp, reverse=True)
        return matching[: max(0, limit)]

    async def health(self) -> StoreHealthStatus:
        if self._closed:
            return StoreHealthStatus(ready=False, detail="store closed")
        return StoreHealthStatus(ready=True, detail="ok")

    async def close(self) -> None:
        self._closed = True

    def _require_open(self) -> None:
        if self._closed:
            raise StoreUnavailableError("credential store is closed")
