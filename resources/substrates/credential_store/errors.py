"""Credential store failure types and SQLAlchemy normalization."""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError

_UNAVAILABLE_TYPES = (
    OperationalError,
    InterfaceError,
    TimeoutError,
    ConnectionError,
    OSError,
)


class StoreError(Exception):
    """Base error for credential store failures."""


class StoreUnavailableError(StoreError):
    """The store could not be reached or did not answer in time."""


class StoreRequestError(StoreError):
    """The store rejected a request (schema or constraint problem)."""


def normalize_store_error(exc: Exception) -> StoreError:
    """Map low-level driver exceptions into credential store error types."""
    if isinstance(exc, StoreError):
        return exc
    name = type(exc).__name__
    if isinstance(exc, _UNAVAILABLE_TYPES):
        return StoreUnavailableError(f"credential store unavailable: {name}")
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreUnavailableError("credential store connection invalidated")
    if isinstance(exc, SQLAlchemyError):
        return StoreRequestError(f"credential store request failed: {name}")
    return StoreError(f"unexpected credential store failure: {name}")
