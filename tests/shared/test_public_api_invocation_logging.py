"""Tests for structured JSON logging and public API invocation logging."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterator

import pytest

from packages.gateway_shared.envelope import (
    EnvelopeKind,
    EnvelopeMeta,
    Result,
    failure,
    new_meta,
    success,
)
from packages.gateway_shared.errors import codes, policy_error
from packages.gateway_shared.logging import (
    clear_context,
    configure_logging,
    fields,
    get_context,
    get_logger,
    log_context,
    public_api_logged,
)

_LOGGER = get_logger("tests.public_api")


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_context()


def _json_lines(output: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class _Component:
    @public_api_logged(
        logger=_LOGGER, component_id="service_test", id_fields=("account_id",)
    )
    async def charge(
        self, *, meta: EnvelopeMeta, account_id: str, refuse: bool = False
    ) -> Result[int]:
        if refuse:
            return failure(
                meta=meta,
                errors=[
                    policy_error("Insufficient credits", code=codes.INSUFFICIENT_CREDITS)
                ],
            )
        return success(meta=meta, payload=1)

    @public_api_logged(logger=_LOGGER, component_id="service_test")
    def explode(self, *, meta: EnvelopeMeta) -> Result[int]:
        raise RuntimeError("boom")


def _meta() -> EnvelopeMeta:
    return new_meta(
        kind=EnvelopeKind.COMMAND,
        source="test",
        principal="operator",
        trace_id="trace-123",
    )


def test_async_completion_logs_trace_outcome_and_reference_ids(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="DEBUG", json_output=True, service="metered-gateway")

    asyncio.run(_Component().charge(meta=_meta(), account_id="acct-1"))

    lines = _json_lines(capsys.readouterr().out)
    completion = [
        item
        for item in lines
        if item.get(fields.EVENT) == fields.PUBLIC_API_COMPLETION_EVENT
    ]
    assert len(completion) == 1
    assert completion[0][fields.TRACE_ID] == "trace-123"
    assert completion[0][fields.API_NAME] == "charge"
    assert completion[0][fields.SUCCESS] == "True"
    assert completion[0]["account_id"] == "acct-1"
    assert completion[0][fields.SERVICE] == "metered-gateway"
    assert completion[0][fields.LEVEL] == "INFO"


def test_failed_result_completion_logs_error_codes_as_warning(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", json_output=True)

    asyncio.run(_Component().charge(meta=_meta(), account_id="acct-1", refuse=True))

    (completion,) = [
        item
        for item in _json_lines(capsys.readouterr().out)
        if item.get(fields.EVENT) == fields.PUBLIC_API_COMPLETION_EVENT
    ]
    assert completion[fields.LEVEL] == "WARNING"
    assert codes.INSUFFICIENT_CREDITS in str(completion[fields.ERRORS])


def test_raised_exception_is_logged_and_propagated(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", json_output=True)

    with pytest.raises(RuntimeError):
        _Component().explode(meta=_meta())

    (completion,) = _json_lines(capsys.readouterr().out)
    assert completion[fields.LEVEL] == "ERROR"
    assert "RuntimeError: boom" in str(completion[fields.ERRORS])


def test_extra_fields_are_emitted_in_json_payload(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", json_output=True)

    _LOGGER.info("debit failed", extra={"credits_charged": 1})

    (line,) = _json_lines(capsys.readouterr().out)
    assert line[fields.MESSAGE] == "debit failed"
    assert line["credits_charged"] == 1


def test_log_context_is_scoped_to_block() -> None:
    with log_context({fields.REQUEST_ID: "req_1", "ignored": None}):
        assert get_context()[fields.REQUEST_ID] == "req_1"
        assert "ignored" not in get_context()

    assert fields.REQUEST_ID not in get_context()


def test_plain_output_appends_sorted_context(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", json_output=False)

    with log_context({fields.ACCOUNT_ID: "acct-9"}):
        _LOGGER.info("caller authenticated")

    output = capsys.readouterr().out
    assert "caller authenticated" in output
    assert "account_id=acct-9" in output
