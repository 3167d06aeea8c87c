"""Entry and completion log lines around component operations.

Component methods take a keyword-only ``meta`` and return a ``Result``. The
``public_api_logged`` decorator logs one DEBUG line when the call starts and
one line when it ends: INFO for an ok result, WARNING for a failed result,
ERROR when the method raises. Both lines carry the trace and envelope ids
from ``meta`` plus any reference ids named in ``id_fields``.
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping

from . import fields
from .context import log_context

_META_ATTRS = (
    (fields.TRACE_ID, "trace_id"),
    (fields.ENVELOPE_ID, "envelope_id"),
    (fields.PRINCIPAL, "principal"),
)


class _Invocation:
    """One timed call of a decorated method."""

    def __init__(
        self,
        logger: logging.Logger,
        component_id: str,
        api_name: str,
        id_fields: tuple[str, ...],
        kwargs: Mapping[str, Any],
    ) -> None:
        self._logger = logger
        self._fields: dict[str, object] = {
            fields.COMPONENT_ID: component_id,
            fields.API_NAME: api_name,
        }
        meta = kwargs.get("meta")
        for field_name, attr in _META_ATTRS:
            value = getattr(meta, attr, None)
            if value:
                self._fields[field_name] = value
        for name in id_fields:
            value = kwargs.get(name)
            if value not in (None, ""):
                self._fields[name] = value
        self._started = perf_counter()

    def started(self) -> None:
        with log_context(
            {**self._fields, fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT}
        ):
            self._logger.debug("Public API invocation")

    def finished(self, result: object) -> None:
        ok, errors = _summarize(result)
        level = logging.INFO if ok else logging.WARNING
        self._complete(level, "Public API completion", ok, errors)

    def raised(self, exc: Exception) -> None:
        self._complete(
            logging.ERROR,
            "Public API completion raised",
            False,
            [f"{type(exc).__name__}: {exc}"],
        )

    def _complete(
        self, level: int, message: str, ok: bool, errors: list[str]
    ) -> None:
        elapsed_ms = round((perf_counter() - self._started) * 1000.0, 3)
        with log_context(
            {
                **self._fields,
                fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
                fields.SUCCESS: ok,
                fields.DURATION_MS: elapsed_ms,
                fields.ERRORS: errors,
            }
        ):
            self._logger.log(level, message)


def _summarize(result: object) -> tuple[bool, list[str]]:
    """Return ``(ok, ["CODE: message", ...])`` for a ``Result``-like value."""
    errors = [
        f"{item.code}: {item.message}" if getattr(item, "code", "") else str(item.message)
        for item in getattr(result, "errors", None) or []
        if getattr(item, "message", "")
    ]
    ok = getattr(result, "ok", None)
    return (ok if isinstance(ok, bool) else not errors), errors


def public_api_logged(
    *,
    logger: logging.Logger,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap a sync or async component method with entry/completion logging."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = api_name or func.__name__

        def begin(kwargs: Mapping[str, Any]) -> _Invocation:
            invocation = _Invocation(logger, component_id, name, id_fields, kwargs)
            invocation.started()
            return invocation

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                invocation = begin(kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    invocation.raised(exc)
                    raise
                invocation.finished(result)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = begin(kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                invocation.raised(exc)
                raise
            invocation.finished(result)
            return result

        return wrapper

    return decorator
