"""Concrete Credit Ledger implementation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from packages.gateway_shared.envelope import (
    EnvelopeMeta,
    Result,
    failure,
    success,
    validate_meta,
)
from packages.gateway_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    not_found_error,
    policy_error,
    validation_error,
)
from packages.gateway_shared.logging import get_logger, public_api_logged
from resources.substrates.credential_store import Account, CredentialStore, StoreError
from services.metering.credit_ledger.config import CreditLedgerSettings
from services.metering.credit_ledger.service import CreditLedger
from services.metering.credit_ledger.validation import BalanceRequest, DebitRequest

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "service_credit_ledger"


class _AccountMissing(Exception):
    """Raised inside the debit transaction when the account is gone."""


class _BalanceTooLow(Exception):
    """Raised inside the debit transaction when credits cannot cover cost."""

    def __init__(self, available: int) -> None:
        super().__init__(f"available={available}")
        self.available = available


class DefaultCreditLedger(CreditLedger):
    """Default Credit Ledger executing debits as store transactions."""

    def __init__(
        self,
        *,
        settings: CreditLedgerSettings,
        store: CredentialStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("account_id",),
    )
    async def debit(
        self,
        *,
        meta: EnvelopeMeta,
        account_id: str,
        cost: int,
    ) -> Result[Account]:
        """Charge one account inside a single store transaction."""
        request, errors = self._validate_request(
            meta=meta,
            model=DebitRequest,
            payload={"account_id": account_id, "cost": cost},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, DebitRequest)

        used_at = self._clock()

        def _apply(current: Account | None) -> Account:
            if current is None:
                raise _AccountMissing()
            if current.credits < request.cost:
                raise _BalanceTooLow(current.credits)
            return current.model_copy(
                update={
                    "credits": current.credits - request.cost,
                    "total_requests": current.total_requests + 1,
                    "last_used_at": used_at,
                }
            )

        try:
            updated = await asyncio.wait_for(
                self._store.update_account(request.account_id, _apply),
                timeout=self._settings.transaction_timeout_seconds,
            )
        except _AccountMissing:
            return failure(
                meta=meta,
                errors=[
                    not_found_error(
                        "Account not found",
                        code=codes.ACCOUNT_NOT_FOUND,
                        metadata={"account_id": request.account_id},
                    )
                ],
            )
        except _BalanceTooLow as exc:
            return failure(
                meta=meta,
                errors=[
                    policy_error(
                        "Insufficient credits",
                        code=codes.INSUFFICIENT_CREDITS,
                        metadata={"credits_remaining": str(exc.available)},
                    )
                ],
            )
        except (StoreError, TimeoutError) as exc:
            return self._dependency_failure(meta=meta, operation="debit", exc=exc)

        return success(meta=meta, payload=updated)

    @public_api_logged(
        logger=_LOGGER,
        component_id=_COMPONENT_ID,
        id_fields=("account_id",),
    )
    async def balance(self, *, meta: EnvelopeMeta, account_id: str) -> Result[Account]:
        """Read the current account snapshot."""
        request, errors = self._validate_request(
            meta=meta,
            model=BalanceRequest,
            payload={"account_id": account_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, BalanceRequest)

        try:
            account = await asyncio.wait_for(
                self._store.get_account(request.account_id),
                timeout=self._settings.transaction_timeout_seconds,
            )
        except (StoreError, TimeoutError) as exc:
            return self._dependency_failure(meta=meta, operation="balance", exc=exc)

        if account is None:
            return failure(
                meta=meta,
                errors=[not_found_error("Account not found", code=codes.ACCOUNT_NOT_FOUND)],
            )
        return success(meta=meta, payload=account)

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, Any],
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Return the parsed request, or one INVALID_ARGUMENT error naming the field."""
        try:
            validate_meta(meta)
            return model.model_validate(payload), []
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(map(str, first["loc"])) or "payload"
            reason = f"{location}: {first['msg']}"
        except ValueError as exc:
            reason = str(exc)
        return None, [validation_error(reason, code=codes.INVALID_ARGUMENT)]

    def _dependency_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Result[Account]:
        """Map store exceptions into dependency-category results."""
        _LOGGER.warning(
            "ledger operation failed due to store error: operation=%s exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        return failure(
            meta=meta,
            errors=[
                dependency_error(
                    f"{operation} failed",
                    code=codes.STORE_UNAVAILABLE,
                    metadata={"exception_type": type(exc).__name__},
                )
            ],
        )
