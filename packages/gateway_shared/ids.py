"""Time-sortable request identifiers.

Ids are ULIDs: 48 bits of Unix milliseconds then 80 random bits, written as
26 Crockford Base32 characters. Lexical order follows creation time.
"""

from __future__ import annotations

import os
import time

REQUEST_ID_PREFIX = "req_"

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_MAX_TIMESTAMP_MS = (1 << 48) - 1


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Return a ULID for ``timestamp_ms`` (default: now); ``ValueError`` off range."""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    if not 0 <= timestamp_ms <= _MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp_ms {timestamp_ms} does not fit in 48 bits")

    value = (timestamp_ms << 80) | int.from_bytes(os.urandom(10), "big")
    # 130 bits of output for 128 bits of value: the top character is 0-7.
    return "".join(
        _CROCKFORD[(value >> shift) & 0x1F] for shift in range(125, -1, -5)
    )


def new_request_id() -> str:
    return REQUEST_ID_PREFIX + generate_ulid_str()
