"""Request payload validation for the metered HTTP API."""

from __future__ import annotations

import re
from typing import Any

_SUSPICIOUS_PATTERNS = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)

DEFAULT_USAGE_LIMIT = 10


def validate_message(body: Any, *, max_length: int) -> str:
    """Return the trimmed ``message`` from a chat body or raise ``ValueError``."""
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    message = body.get("message")
    if message is None:
        raise ValueError("Message is required")
    if not isinstance(message, str):
        raise ValueError("Message must be a string")
    trimmed = message.strip()
    if trimmed == "":
        raise ValueError("Message cannot be empty")
    if len(message) > max_length:
        raise ValueError(
            f"Message too long. Maximum {max_length:,} characters allowed."
        )
    for pattern in _SUSPICIOUS_PATTERNS:
        if pattern.search(message):
            raise ValueError("Message contains potentially harmful content")
    return trimmed


def parse_usage_limit(raw: str | None, *, maximum: int) -> int:
    """Parse ``?limit=`` leniently: junk falls back to the default, then cap."""
    if raw is None:
        return min(DEFAULT_USAGE_LIMIT, maximum)
    try:
        value = int(raw.strip())
    except ValueError:
        value = DEFAULT_USAGE_LIMIT
    if value < 1:
        value = DEFAULT_USAGE_LIMIT
    return min(value, maximum)
