"""Stdout logging for the gateway process.

One stdout handler on the root logger. Records carry the process fields
(service, environment), the task-bound correlation fields, and any
``extra=`` attributes, rendered as one JSON object per line or as a plain
line with a sorted ``key=value`` suffix.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Mapping

from . import fields
from .context import get_context

# uvicorn attaches its own handlers; strip them so everything reaches root.
_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName", "bound_fields"}


class BoundFieldsFilter(logging.Filter):
    """Attach process fields and task-bound fields as ``record.bound_fields``."""

    def __init__(self, process_fields: Mapping[str, str] | None = None) -> None:
        super().__init__()
        self._process_fields = dict(process_fields or {})

    def filter(self, record: logging.LogRecord) -> bool:
        record.bound_fields = {**self._process_fields, **get_context()}
        return True


def _bound_fields(record: logging.LogRecord) -> dict[str, str]:
    value = getattr(record, "bound_fields", None)
    return value if isinstance(value, dict) else {}


def _extra_attributes(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_RECORD_ATTRS
    }


class JsonFormatter(logging.Formatter):
    """Render one record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(_bound_fields(record))
        for key, value in _extra_attributes(record).items():
            payload.setdefault(key, value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Local-development format: a readable line plus bound fields."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        bound = _bound_fields(record)
        if not bound:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in sorted(bound.items()))


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Install the single stdout handler, replacing any existing root handlers."""
    process_fields: dict[str, str] = {}
    if service:
        process_fields[fields.SERVICE] = service
    if environment:
        process_fields[fields.ENVIRONMENT] = environment

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(BoundFieldsFilter(process_fields))
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())
    root.addHandler(handler)

    for name in _FRAMEWORK_LOGGERS:
        framework_logger = logging.getLogger(name)
        framework_logger.handlers.clear()
        framework_logger.propagate = True


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
