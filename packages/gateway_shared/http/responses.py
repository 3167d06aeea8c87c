"""Structured JSON error bodies and error-code to HTTP status mapping."""

from __future__ import annotations

import traceback
from datetime import UTC, datetime
from typing import Any, Sequence

from fastapi.responses import JSONResponse

from packages.gateway_shared.errors import ErrorCategory, ErrorDetail, codes

_STATUS_BY_CODE: dict[str, int] = {
    codes.MISSING_CREDENTIAL: 401,
    codes.INVALID_CREDENTIAL: 401,
    codes.ACCOUNT_SUSPENDED: 403,
    codes.INSUFFICIENT_CREDITS: 403,
    codes.ACCOUNT_NOT_FOUND: 403,
    codes.SERVICE_UNAVAILABLE: 503,
    codes.STORE_UNAVAILABLE: 503,
    codes.UPSTREAM_TIMEOUT: 408,
    codes.UPSTREAM_REJECTED: 503,
    codes.UPSTREAM_UNAVAILABLE: 503,
    codes.VALIDATION_ERROR: 400,
    codes.INVALID_ARGUMENT: 400,
    codes.NOT_FOUND: 404,
    codes.INTERNAL_ERROR: 500,
}

_STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.POLICY: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.DEPENDENCY: 503,
    ErrorCategory.INTERNAL: 500,
    ErrorCategory.UNSPECIFIED: 500,
}


def status_for_error(error: ErrorDetail) -> int:
    """Return the HTTP status for one error, by code then by category."""
    status = _STATUS_BY_CODE.get(error.code)
    if status is not None:
        return status
    return _STATUS_BY_CATEGORY.get(error.category, 500)


def error_body(
    error: ErrorDetail,
    *,
    include_details: bool = False,
    exc: BaseException | None = None,
) -> dict[str, Any]:
    """Build ``{success, error, code, timestamp}`` with optional diagnostics."""
    body: dict[str, Any] = {
        "success": False,
        "error": error.message,
        "code": error.code,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if include_details:
        if error.metadata:
            body["details"] = dict(error.metadata)
        if exc is not None:
            body["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
    return body


def error_response(
    errors: Sequence[ErrorDetail],
    *,
    include_details: bool = False,
    exc: BaseException | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the first error of a failed result as a JSON response."""
    if not errors:
        raise ValueError("error_response requires at least one error")
    error = errors[0]
    return JSONResponse(
        status_code=status_for_error(error),
        content=error_body(error, include_details=include_details, exc=exc),
        headers=headers,
    )
