"""Tests for structured error bodies and error-code HTTP status mapping."""

from __future__ import annotations

import json

import pytest

from packages.gateway_shared.errors import (
    ErrorCategory,
    ErrorDetail,
    authentication_error,
    codes,
    dependency_error,
    internal_error,
    policy_error,
    validation_error,
)
from packages.gateway_shared.http import error_body, error_response, status_for_error


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (authentication_error("missing", code=codes.MISSING_CREDENTIAL), 401),
        (authentication_error("bad"), 401),
        (policy_error("low", code=codes.INSUFFICIENT_CREDITS), 403),
        (policy_error("off", code=codes.ACCOUNT_SUSPENDED), 403),
        (dependency_error("slow", code=codes.UPSTREAM_TIMEOUT), 408),
        (dependency_error("down", code=codes.UPSTREAM_UNAVAILABLE), 503),
        (dependency_error("draining", code=codes.SERVICE_UNAVAILABLE), 503),
        (validation_error("empty"), 400),
        (internal_error("boom"), 500),
    ],
)
def test_status_for_error_maps_known_codes(error: ErrorDetail, status: int) -> None:
    assert status_for_error(error) == status


def test_unknown_code_falls_back_to_category() -> None:
    error = ErrorDetail(
        code="SOMETHING_NEW",
        message="x",
        category=ErrorCategory.NOT_FOUND,
    )

    assert status_for_error(error) == 404


def test_error_body_hides_details_unless_requested() -> None:
    error = internal_error("boom", metadata={"exception_type": "RuntimeError"})

    plain = error_body(error)
    assert plain["success"] is False
    assert plain["error"] == "boom"
    assert plain["code"] == codes.INTERNAL_ERROR
    assert "timestamp" in plain
    assert "details" not in plain
    assert "stack" not in plain


def test_error_body_includes_details_and_stack_when_requested() -> None:
    try:
        raise RuntimeError("kaboom")
    except RuntimeError as exc:
        body = error_body(
            internal_error("boom", metadata={"k": "v"}), include_details=True, exc=exc
        )

    assert body["details"] == {"k": "v"}
    assert "RuntimeError: kaboom" in body["stack"]


def test_error_response_renders_first_error() -> None:
    response = error_response(
        [
            policy_error("Insufficient credits", code=codes.INSUFFICIENT_CREDITS),
            internal_error("ignored"),
        ],
        headers={"X-Request-ID": "req_1"},
    )

    assert response.status_code == 403
    assert response.headers["X-Request-ID"] == "req_1"
    assert json.loads(response.body)["code"] == codes.INSUFFICIENT_CREDITS


def test_error_response_requires_an_error() -> None:
    with pytest.raises(ValueError):
        error_response([])
