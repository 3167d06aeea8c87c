"""Metadata attached to every component call.

The HTTP layer builds one ``EnvelopeMeta`` per request with the request id as
``trace_id``, so every component log line for that request correlates.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from packages.gateway_shared.ids import generate_ulid_str


class EnvelopeKind(StrEnum):
    UNSPECIFIED = "unspecified"
    COMMAND = "command"
    QUERY = "query"
    RESULT = "result"


class EnvelopeMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    envelope_id: str
    trace_id: str
    timestamp: datetime
    kind: EnvelopeKind
    source: str
    principal: str


_REQUIRED_TEXT_FIELDS = ("envelope_id", "trace_id", "source", "principal")


def new_meta(
    *,
    kind: EnvelopeKind,
    source: str,
    principal: str,
    trace_id: str | None = None,
    envelope_id: str | None = None,
    timestamp: datetime | None = None,
) -> EnvelopeMeta:
    """Build call metadata, generating ULID ids and a UTC timestamp as needed."""
    if timestamp is None:
        moment = datetime.now(UTC)
    elif timestamp.tzinfo is None:
        moment = timestamp.replace(tzinfo=UTC)
    else:
        moment = timestamp.astimezone(UTC)
    return EnvelopeMeta(
        envelope_id=envelope_id or generate_ulid_str(),
        trace_id=trace_id or generate_ulid_str(),
        timestamp=moment,
        kind=kind,
        source=source,
        principal=principal,
    )


def validate_meta(meta: EnvelopeMeta) -> None:
    """Raise ``ValueError`` when the kind is unspecified or an id field is blank."""
    if meta.kind is EnvelopeKind.UNSPECIFIED:
        raise ValueError("metadata.kind must be specified")
    for name in _REQUIRED_TEXT_FIELDS:
        if not str(getattr(meta, name)).strip():
            raise ValueError(f"metadata.{name} is required")
