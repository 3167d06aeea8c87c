"""Credential header parsing for Auth Gate."""

from __future__ import annotations


def parse_bearer_credential(
    header: str | None, *, scheme: str = "Bearer", min_length: int = 1
) -> str | None:
    """Return the credential from ``<scheme> <token>``, or ``None`` if malformed.

    The scheme match is exact and case-sensitive; the token must contain no
    whitespace and be at least ``min_length`` characters.
    """
    if header is None:
        return None
    prefix = f"{scheme} "
    if not header.startswith(prefix):
        return None
    token = header[len(prefix) :].strip()
    if len(token) < min_length or any(char.isspace() for char in token):
        return None
    return token
