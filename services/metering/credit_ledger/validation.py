"""Request validation models for Credit Ledger public API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _AccountRequest(BaseModel):
    """Base request carrying one account identifier."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    account_id: str = Field(min_length=1)

    @field_validator("account_id", mode="before")
    @classmethod
    def _strip_account_id(cls, value: object) -> object:
        """Normalize surrounding whitespace for account ids."""
        if isinstance(value, str):
            return value.strip()
        return value


class DebitRequest(_AccountRequest):
    """Validate one debit request payload."""

    cost: int = Field(gt=0)


class BalanceRequest(_AccountRequest):
    """Validate one balance request payload."""
