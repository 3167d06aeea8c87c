"""Behavior tests for Request Audit Log implementation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from packages.gateway_shared.envelope import EnvelopeKind, EnvelopeMeta, new_meta
from packages.gateway_shared.errors import codes
from resources.substrates.credential_store import (
    InMemoryCredentialStore,
    RequestRecord,
    StoreUnavailableError,
)
from services.metering.request_audit.config import RequestAuditSettings
from services.metering.request_audit.domain import AuditMetadata
from services.metering.request_audit.implementation import DefaultRequestAuditLog

_BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


class _FakeStore(InMemoryCredentialStore):
    def __init__(self) -> None:
        super().__init__()
        self.raise_on_append: Exception | None = None
        self.append_delay_seconds = 0.0
        self.list_limits: list[int] = []

    async def append_request(self, record: RequestRecord) -> str:
        if self.append_delay_seconds:
            await asyncio.sleep(self.append_delay_seconds)
        if self.raise_on_append is not None:
            raise self.raise_on_append
        return await super().append_request(record)

    async def list_requests(self, account_id: str, *, limit: int) -> list[RequestRecord]:
        self.list_limits.append(limit)
        return await super().list_requests(account_id, limit=limit)


class _StepClock:
    def __init__(self) -> None:
        self._ticks = 0

    def __call__(self) -> datetime:
        self._ticks += 1
        return _BASE_TIME + timedelta(seconds=self._ticks)


def _audit(
    store: _FakeStore, **settings: object
) -> DefaultRequestAuditLog:
    return DefaultRequestAuditLog(
        settings=RequestAuditSettings.model_validate(settings),
        store=store,
        clock=_StepClock(),
    )


def _meta() -> EnvelopeMeta:
    return new_meta(kind=EnvelopeKind.COMMAND, source="test", principal="operator")


def _metadata(prompt: str = "hello") -> AuditMetadata:
    return AuditMetadata(
        prompt=prompt,
        response_length=42,
        latency_ms=120,
        credits_charged=1,
        model="gemini-1.5-flash",
    )


def test_record_persists_preview_and_true_prompt_length() -> None:
    store = _FakeStore()
    audit = _audit(store, prompt_preview_chars=5)

    record_id = asyncio.run(
        audit.record(
            meta=_meta(),
            account_id="acct-1",
            metadata=_metadata("abcdefghij"),
            record_id="req_01",
        )
    )

    assert record_id == "req_01"
    (record,) = store.list_records()
    assert record.prompt_preview == "abcde"
    assert record.prompt_length == 10
    assert record.credits_charged == 1
    assert record.account_id == "acct-1"


def test_record_generates_id_when_none_supplied() -> None:
    store = _FakeStore()

    record_id = asyncio.run(
        _audit(store).record(meta=_meta(), account_id="acct-1", metadata=_metadata())
    )

    assert record_id is not None
    assert len(record_id) == 26


def test_record_swallows_store_failures() -> None:
    store = _FakeStore()
    store.raise_on_append = StoreUnavailableError("down")

    record_id = asyncio.run(
        _audit(store).record(meta=_meta(), account_id="acct-1", metadata=_metadata())
    )

    assert record_id is None
    assert store.list_records() == ()


def test_record_times_out_instead_of_blocking() -> None:
    store = _FakeStore()
    store.append_delay_seconds = 0.5

    record_id = asyncio.run(
        _audit(store, write_timeout_seconds=0.01).record(
            meta=_meta(), account_id="acct-1", metadata=_metadata()
        )
    )

    assert record_id is None


def test_submit_returns_immediately_and_drain_waits_for_write() -> None:
    store = _FakeStore()
    audit = _audit(store)

    async def _run() -> tuple[int, int, int]:
        audit.submit(meta=_meta(), account_id="acct-1", metadata=_metadata())
        pending_before = audit.pending_count
        still_pending = await audit.drain(timeout_seconds=1.0)
        return pending_before, still_pending, audit.pending_count

    pending_before, still_pending, pending_after = asyncio.run(_run())

    assert pending_before == 1
    assert still_pending == 0
    assert pending_after == 0
    assert len(store.list_records()) == 1


def test_drain_reports_writes_still_pending_after_timeout() -> None:
    store = _FakeStore()
    store.append_delay_seconds = 0.5
    audit = _audit(store, write_timeout_seconds=1.0)

    async def _run() -> int:
        audit.submit(meta=_meta(), account_id="acct-1", metadata=_metadata())
        return await audit.drain(timeout_seconds=0.01)

    assert asyncio.run(_run()) == 1


def test_submit_outside_event_loop_drops_record_without_raising() -> None:
    store = _FakeStore()

    _audit(store).submit(meta=_meta(), account_id="acct-1", metadata=_metadata())

    assert store.list_records() == ()


def test_history_is_newest_first_and_capped() -> None:
    store = _FakeStore()
    audit = _audit(store, history_max=2)

    async def _run():
        for index in range(3):
            await audit.record(
                meta=_meta(),
                account_id="acct-1",
                metadata=_metadata(f"prompt {index}"),
                record_id=f"req_{index}",
            )
        return await audit.history(meta=_meta(), account_id="acct-1", limit=10)

    result = asyncio.run(_run())

    assert [item.id for item in result.unwrap()] == ["req_2", "req_1"]
    assert store.list_limits == [2]


@pytest.mark.parametrize("limit", [0, -3])
def test_history_rejects_non_positive_limit(limit: int) -> None:
    result = asyncio.run(
        _audit(_FakeStore()).history(meta=_meta(), account_id="acct-1", limit=limit)
    )

    assert result.errors[0].code == codes.INVALID_ARGUMENT
