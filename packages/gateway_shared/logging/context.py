"""Per-task correlation fields attached to every log record.

Request middleware binds ``request_id``, method and path once; components
add ``account_id`` or an outcome for a narrower block. Bindings are scoped
with ``log_context`` and unwind when the block exits, including across
``await`` points in the same task.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_BOUND_FIELDS: ContextVar[Mapping[str, str]] = ContextVar(
    "gateway_bound_fields", default=_EMPTY
)


def get_context() -> dict[str, str]:
    """Return the fields bound for the current task."""
    return dict(_BOUND_FIELDS.get())


def clear_context() -> None:
    """Drop every bound field for the current task."""
    _BOUND_FIELDS.set(_EMPTY)


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind fields for the duration of a block; ``None`` values are skipped."""
    merged = dict(_BOUND_FIELDS.get())
    merged.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    token = _BOUND_FIELDS.set(MappingProxyType(merged))
    try:
        yield
    finally:
        _BOUND_FIELDS.reset(token)
