"""Concrete Request Audit Log implementation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Callable

from packages.gateway_shared.envelope import (
    EnvelopeMeta,
    Result,
    failure,
    success,
    validate_meta,
)
from packages.gateway_shared.errors import codes, dependency_error, validation_error
from packages.gateway_shared.ids import generate_ulid_str
from packages.gateway_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_logged,
)
from resources.substrates.credential_store import (
    CredentialStore,
    RequestRecord,
    StoreError,
)
from services.metering.request_audit.config import RequestAuditSettings
from services.metering.request_audit.domain import AuditMetadata
from services.metering.request_audit.service import RequestAuditLog

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "service_request_audit"


class DefaultRequestAuditLog(RequestAuditLog):
    """Audit log writing request records through the credential store."""

    def __init__(
        self,
        *,
        settings: RequestAuditSettings,
        store: CredentialStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._pending: set[asyncio.Task[str | None]] = set()

    @property
    def pending_count(self) -> int:
        """Return the number of background writes not yet finished."""
        return len(self._pending)

    async def record(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        metadata: AuditMetadata,
        record_id: str | None = None,
    ) -> str | None:
        """Persist one record; every failure is logged and becomes ``None``."""
        with log_context(
            {fields.ACCOUNT_ID: account_id, fields.TRACE_ID: meta.trace_id}
        ):
            try:
                record = RequestRecord(
                    id=record_id or generate_ulid_str(),
                    account_id=account_id,
                    timestamp=self._clock(),
                    prompt_length=len(metadata.prompt),
                    prompt_preview=metadata.prompt[: self._settings.prompt_preview_chars],
                    response_length=metadata.response_length,
                    latency_ms=metadata.latency_ms,
                    credits_charged=metadata.credits_charged,
                    model=metadata.model,
                )
                stored_id = await asyncio.wait_for(
                    self._store.append_request(record),
                    timeout=self._settings.write_timeout_seconds,
                )
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error(
                    "request audit write failed; debited request is unaudited",
                    extra={
                        "record_id": record_id,
                        "credits_charged": metadata.credits_charged,
                        "exception_type": type(exc).__name__,
                    },
                    exc_info=exc,
                )
                return None
            _LOGGER.debug("request audit record written", extra={"record_id": stored_id})
            return stored_id

    def submit(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        metadata: AuditMetadata,
        record_id: str | None = None,
    ) -> None:
        """Fire-and-forget: schedule the write and keep a strong task reference."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _LOGGER.error(
                "request audit submit outside an event loop; record dropped",
                extra={fields.ACCOUNT_ID: account_id, "record_id": record_id},
            )
            return
        task = loop.create_task(
            self.record(
                meta=meta,
                account_id=account_id,
                metadata=metadata,
                record_id=record_id,
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self, *, timeout_seconds: float) -> int:
        """Wait up to ``timeout_seconds`` for background writes to settle."""
        if not self._pending:
            return 0
        _, still_pending = await asyncio.wait(
            set(self._pending), timeout=timeout_seconds
        )
        if still_pending:
            _LOGGER.warning(
                "request audit drain timed out",
                extra={"pending_writes": len(still_pending)},
            )
        return len(still_pending)

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("account_id",),
    )
    async def history(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        limit: int,
    ) -> Result[list[RequestRecord]]:
        """Return at most ``history_max`` recent records for one account."""
        try:
            validate_meta(meta)
        except ValueError as exc:
            return failure(
                meta=meta,
                errors=[validation_error(str(exc), code=codes.INVALID_ARGUMENT)],
            )
        if limit < 1:
            return failure(
                meta=meta,
                errors=[
                    validation_error(
                        "limit: must be at least 1", code=codes.INVALID_ARGUMENT
                    )
                ],
            )

        bounded = min(limit, self._settings.history_max)
        try:
            records = await asyncio.wait_for(
                self._store.list_requests(account_id, limit=bounded),
                timeout=self._settings.write_timeout_seconds,
            )
        except (StoreError, TimeoutError) as exc:
            _LOGGER.warning(
                "request history read failed: exception_type=%s",
                type(exc).__name__,
                exc_info=exc,
            )
            return failure(
                meta=meta,
                errors=[
                    dependency_error(
                        "history failed",
                        code=codes.STORE_UNAVAILABLE,
                        metadata={"exception_type": type(exc).__name__},
                    )
                ],
            )
        return success(meta=meta, payload=records)
