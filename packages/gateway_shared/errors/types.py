"""Error values carried by failed ``Result`` objects.

Components never raise across their public boundary for expected failures;
they return one or more ``ErrorDetail`` values. The category decides the
HTTP status when a code has no explicit mapping.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(StrEnum):
    """Coarse failure classes used for status fallback and log filtering."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    POLICY = "policy"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


class ErrorDetail(BaseModel):
    """One failure: stable ``code``, caller-facing ``message``, and category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: str = Field(min_length=1)
    message: str
    category: ErrorCategory = ErrorCategory.UNSPECIFIED
    retryable: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)
