"""Pydantic settings for Request Audit Log behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.gateway_shared.config import GatewaySettings


class RequestAuditSettings(BaseModel):
    """Request Audit Log runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    prompt_preview_chars: int = Field(default=500, ge=0, le=2048)
    write_timeout_seconds: float = Field(default=5.0, gt=0)
    history_max: int = Field(default=50, gt=0)


def resolve_request_audit_settings(settings: GatewaySettings) -> RequestAuditSettings:
    """Resolve Request Audit settings from ``metering`` and ``store`` sections."""
    return RequestAuditSettings(
        prompt_preview_chars=settings.metering.prompt_preview_chars,
        write_timeout_seconds=settings.store.operation_timeout_seconds,
        history_max=settings.metering.usage_history_max,
    )
