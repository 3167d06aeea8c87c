"""Table models for the PostgreSQL credential store."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    func,
)

metadata = MetaData()

accounts = Table(
    "gateway_accounts",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("credential", String(256), nullable=False, unique=True),
    Column("credits", Integer, nullable=False),
    Column("total_requests", Integer, nullable=False, server_default="0"),
    Column("status", String(16), nullable=False, server_default="active"),
    Column("last_used_at", DateTime(timezone=True), nullable=True),
    Column("email", String(254), nullable=True),
    Column(
        "created_at", DateTime(timezone=True), nullable=False, server_default=func.now()
    ),
    CheckConstraint("credits >= 0", name="ck_gateway_accounts_credits_non_negative"),
    CheckConstraint(
        "total_requests >= 0", name="ck_gateway_accounts_total_requests_non_negative"
    ),
)

requests = Table(
    "gateway_requests",
    metadata,
    Column("id", String(32), primary_key=True),
    # Relation only; records are neither owned by nor cascaded from accounts.
    Column("account_id", String(64), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("prompt_length", Integer, nullable=False),
    Column("prompt_preview", String(2048), nullable=False, server_default=""),
    Column("response_length", Integer, nullable=False),
    Column("latency_ms", Integer, nullable=False),
    Column("credits_charged", Integer, nullable=False),
    Column("model", String(128), nullable=False, server_default=""),
    Index("ix_gateway_requests_account_timestamp", "account_id", "timestamp"),
)
