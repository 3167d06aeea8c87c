"""Structured stdout logging with task-scoped correlation fields."""

from . import fields
from .config import configure_logging, get_logger
from .context import clear_context, get_context, log_context
from .public_api import public_api_logged

__all__ = [
    "clear_context",
    "configure_logging",
    "fields",
    "get_context",
    "get_logger",
    "log_context",
    "public_api_logged",
]
