"""PostgreSQL credential store over SQLAlchemy asyncio and asyncpg."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from packages.gateway_shared.config import StoreSettings
from packages.gateway_shared.logging import get_logger
from resources.substrates.credential_store.errors import normalize_store_error
from resources.substrates.credential_store.records import (
    Account,
    AccountStatus,
    RequestRecord,
)
from resources.substrates.credential_store.schema import accounts, metadata, requests
from resources.substrates.credential_store.store import (
    AccountMutator,
    CredentialStore,
    StoreHealthStatus,
)

_LOGGER = get_logger(__name__)
_DRIVER_ERRORS = (SQLAlchemyError, OSError)
_ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"
_SYNC_PREFIXES = ("postgresql+psycopg://", "postgresql://", "postgres://")


def normalize_async_url(url: str) -> str:
    """Rewrite a PostgreSQL URL to use the asyncpg driver."""
    if url.startswith(_ASYNC_DRIVER_PREFIX):
        return url
    for prefix in _SYNC_PREFIXES:
        if url.startswith(prefix):
            return _ASYNC_DRIVER_PREFIX + url[len(prefix) :]
    raise ValueError(f"unsupported credential store URL scheme: {url.split(':', 1)[0]}")


def create_store_engine(settings: StoreSettings) -> AsyncEngine:
    """Construct a pooled async engine; no connection is opened here."""
    return create_async_engine(
        normalize_async_url(settings.url),
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout_seconds,
        pool_pre_ping=True,
        connect_args={
            "timeout": settings.connect_timeout_seconds,
            "command_timeout": settings.operation_timeout_seconds,
        },
    )


class PostgresCredentialStore(CredentialStore):
    """Credential store backed by ``gateway_accounts``/``gateway_requests``.

    Debits lock the account row with ``SELECT ... FOR UPDATE`` so concurrent
    transactions against one account serialize inside PostgreSQL.
    """

    def __init__(
        self,
        *,
        settings: StoreSettings,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._settings = settings
        self._engine = engine or create_store_engine(settings)

    @property
    def engine(self) -> AsyncEngine:
        """Return underlying SQLAlchemy async engine."""
        return self._engine

    async def create_schema(self) -> None:
        """Create gateway tables when absent."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except _DRIVER_ERRORS as exc:
            raise normalize_store_error(exc) from exc
        _LOGGER.info("credential store schema ensured")

    async def find_by_credential(self, credential: str) -> Account | None:
        row = await self._fetch_one(
            select(accounts).where(accounts.c.credential == credential)
        )
        return None if row is None else _account_from_row(row)

    async def get_account(self, account_id: str) -> Account | None:
        row = await self._fetch_one(select(accounts).where(accounts.c.id == account_id))
        return None if row is None else _account_from_row(row)

    async def update_account(self, account_id: str, mutate: AccountMutator) -> Account:
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    select(accounts)
                    .where(accounts.c.id == account_id)
                    .with_for_update()
                )
                row = result.mappings().first()
                current = None if row is None else _account_from_row(row)
                updated = mutate(current)
                if current is None or updated.id != account_id:
                    raise ValueError("mutator must return the locked account")
                await conn.execute(
                    update(accounts)
                    .where(accounts.c.id == account_id)
                    .values(
                        credits=updated.credits,
                        total_requests=updated.total_requests,
                        status=updated.status.value,
                        last_used_at=updated.last_used_at,
                    )
                )
                return updated
        except _DRIVER_ERRORS as exc:
            raise normalize_store_error(exc) from exc

    async def append_request(self, record: RequestRecord) -> str:
        try:
            async with self._engine.begin() as conn:
                await conn.execute(insert(requests).values(**record.model_dump()))
        except _DRIVER_ERRORS as exc:
            raise normalize_store_error(exc) from exc
        return record.id

    async def list_requests(self, account_id: str, *, limit: int) -> list[RequestRecord]:
        statement = (
            select(requests)
            .where(requests.c.account_id == account_id)
            .order_by(requests.c.timestamp.desc())
            .limit(max(0, limit))
        )
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(statement)
                rows = result.mappings().all()
        except _DRIVER_ERRORS as exc:
            raise normalize_store_error(exc) from exc
        return [RequestRecord.model_validate(dict(row)) for row in rows]

    async def health(self) -> StoreHealthStatus:
        """Return readiness from a bounded ``SELECT 1`` probe."""
        try:
            await asyncio.wait_for(
                self._ping(), timeout=self._settings.health_timeout_seconds
            )
        except TimeoutError:
            return StoreHealthStatus(ready=False, detail="credential store ping timed out")
        except Exception as exc:  # noqa: BLE001
            return StoreHealthStatus(
                ready=False,
                detail=f"credential store ping failed: {type(exc).__name__}",
            )
        return StoreHealthStatus(ready=True, detail="ok")

    async def close(self) -> None:
        await self._engine.dispose()

    async def _ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def _fetch_one(self, statement: Select[Any]) -> Mapping[str, Any] | None:
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(statement)
                return result.mappings().first()
        except _DRIVER_ERRORS as exc:
            raise normalize_store_error(exc) from exc


def _account_from_row(row: Mapping[str, Any]) -> Account:
    """Convert one ``gateway_accounts`` row into an ``Account`` snapshot."""
    return Account(
        id=row["id"],
        credential=row["credential"],
        credits=row["credits"],
        total_requests=row["total_requests"],
        status=AccountStatus(row["status"]),
        last_used_at=row["last_used_at"],
        email=row["email"],
        created_at=row["created_at"],
    )
