"""Constructors for ``ErrorDetail`` values, one per category."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail

Metadata = Mapping[str, str] | None


def _detail(
    category: ErrorCategory,
    code: str,
    message: str,
    metadata: Metadata,
    *,
    retryable: bool = False,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata=dict(metadata or {}),
    )


def validation_error(
    message: str, *, code: str = codes.VALIDATION_ERROR, metadata: Metadata = None
) -> ErrorDetail:
    """Caller input that cannot succeed as sent."""
    return _detail(ErrorCategory.VALIDATION, code, message, metadata)


def authentication_error(
    message: str, *, code: str = codes.INVALID_CREDENTIAL, metadata: Metadata = None
) -> ErrorDetail:
    """Missing or unrecognized credential."""
    return _detail(ErrorCategory.AUTHENTICATION, code, message, metadata)


def policy_error(message: str, *, code: str, metadata: Metadata = None) -> ErrorDetail:
    """A known caller refused by account state (suspended, out of credits)."""
    return _detail(ErrorCategory.POLICY, code, message, metadata)


def not_found_error(
    message: str, *, code: str = codes.NOT_FOUND, metadata: Metadata = None
) -> ErrorDetail:
    return _detail(ErrorCategory.NOT_FOUND, code, message, metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.STORE_UNAVAILABLE,
    retryable: bool = True,
    metadata: Metadata = None,
) -> ErrorDetail:
    """The store, the upstream generator, or the process itself is unavailable."""
    return _detail(
        ErrorCategory.DEPENDENCY, code, message, metadata, retryable=retryable
    )


def internal_error(
    message: str, *, code: str = codes.INTERNAL_ERROR, metadata: Metadata = None
) -> ErrorDetail:
    return _detail(ErrorCategory.INTERNAL, code, message, metadata)
