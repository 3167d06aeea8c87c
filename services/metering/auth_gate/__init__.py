"""Auth Gate: bearer credential resolution and admission preconditions."""

from services.metering.auth_gate.service import (
    AdmissionControl,
    AuthGate,
    build_auth_gate,
)

__all__ = ["AdmissionControl", "AuthGate", "build_auth_gate"]
