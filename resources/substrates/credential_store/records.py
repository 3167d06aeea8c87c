"""Persistent record shapes owned by the credential store."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class AccountStatus(StrEnum):
    """Account admission status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class Account(BaseModel):
    """One metered caller's balance and status record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    credential: str = Field(min_length=1, repr=False)
    credits: int = Field(ge=0)
    total_requests: int = Field(default=0, ge=0)
    status: AccountStatus = AccountStatus.ACTIVE
    last_used_at: datetime | None = None
    email: str | None = None
    created_at: datetime | None = None


class RequestRecord(BaseModel):
    """Append-only audit entry for one debited call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    timestamp: datetime
    prompt_length: int = Field(ge=0)
    prompt_preview: str = ""
    response_length: int = Field(ge=0)
    latency_ms: int = Field(ge=0)
    credits_charged: int = Field(ge=0)
    model: str = ""
