"""Pydantic settings for Auth Gate behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.gateway_shared.config import GatewaySettings


class AuthGateSettings(BaseModel):
    """Auth Gate runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    scheme: str = "Bearer"
    min_credential_length: int = Field(default=10, gt=0)
    lookup_timeout_seconds: float = Field(default=5.0, gt=0)


def resolve_auth_gate_settings(settings: GatewaySettings) -> AuthGateSettings:
    """Resolve Auth Gate settings from ``metering`` and ``store`` sections."""
    return AuthGateSettings(
        min_credential_length=settings.metering.min_credential_length,
        lookup_timeout_seconds=settings.store.operation_timeout_seconds,
    )
