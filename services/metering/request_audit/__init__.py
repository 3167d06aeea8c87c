"""Request Audit Log: best-effort, non-blocking records of debited calls."""

from services.metering.request_audit.domain import AuditMetadata
from services.metering.request_audit.service import (
    RequestAuditLog,
    build_request_audit_log,
)

__all__ = ["AuditMetadata", "RequestAuditLog", "build_request_audit_log"]
