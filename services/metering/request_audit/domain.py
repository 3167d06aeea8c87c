"""Domain contracts for Request Audit Log payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuditMetadata(BaseModel):
    """Facts about one debited call, supplied by the caller of ``record``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    prompt: str
    response_length: int = Field(ge=0)
    latency_ms: int = Field(ge=0)
    credits_charged: int = Field(ge=0)
    model: str = ""
