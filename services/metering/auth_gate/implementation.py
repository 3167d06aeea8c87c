"""Concrete Auth Gate implementation."""

from __future__ import annotations

import asyncio

from packages.gateway_shared.envelope import (
    EnvelopeMeta,
    Result,
    failure,
    success,
    validate_meta,
)
from packages.gateway_shared.errors import (
    ErrorDetail,
    authentication_error,
    codes,
    dependency_error,
    policy_error,
    validation_error,
)
from packages.gateway_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_logged,
)
from resources.substrates.credential_store import (
    Account,
    AccountStatus,
    CredentialStore,
    StoreError,
)
from services.metering.auth_gate.config import AuthGateSettings
from services.metering.auth_gate.service import AdmissionControl, AuthGate
from services.metering.auth_gate.validation import parse_bearer_credential

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "service_auth_gate"


class DefaultAuthGate(AuthGate):
    """Default Auth Gate backed by the credential store substrate."""

    def __init__(
        self,
        *,
        settings: AuthGateSettings,
        store: CredentialStore,
        admission: AdmissionControl,
    ) -> None:
        self._settings = settings
        self._store = store
        self._admission = admission

    @public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID)
    async def authenticate(
        self,
        *,
        meta: EnvelopeMeta,
        authorization: str | None,
        require_credits: bool = True,
    ) -> Result[Account]:
        """Admit one caller; reads the store at most once and never mutates it."""
        try:
            validate_meta(meta)
        except ValueError as exc:
            return failure(
                meta=meta,
                errors=[validation_error(str(exc), code=codes.INVALID_ARGUMENT)],
            )

        if not self._admission.is_admitting():
            return self._deny(
                meta,
                dependency_error(
                    "Service is shutting down",
                    code=codes.SERVICE_UNAVAILABLE,
                ),
            )

        credential = parse_bearer_credential(
            authorization,
            scheme=self._settings.scheme,
            min_length=self._settings.min_credential_length,
        )
        if credential is None:
            return self._deny(
                meta,
                authentication_error(
                    f"Authorization header must be '{self._settings.scheme} <api key>'",
                    code=codes.MISSING_CREDENTIAL,
                ),
            )

        try:
            account = await asyncio.wait_for(
                self._store.find_by_credential(credential),
                timeout=self._settings.lookup_timeout_seconds,
            )
        except (StoreError, TimeoutError) as exc:
            _LOGGER.warning(
                "credential lookup failed: exception_type=%s",
                type(exc).__name__,
                exc_info=exc,
            )
            return failure(
                meta=meta,
                errors=[
                    dependency_error(
                        "Authentication service temporarily unavailable",
                        code=codes.STORE_UNAVAILABLE,
                        metadata={"exception_type": type(exc).__name__},
                    )
                ],
            )

        if account is None:
            return self._deny(
                meta,
                authentication_error("Invalid API key", code=codes.INVALID_CREDENTIAL),
            )

        if account.status == AccountStatus.SUSPENDED:
            return self._deny(
                meta,
                policy_error("Account is suspended", code=codes.ACCOUNT_SUSPENDED),
                account_id=account.id,
            )

        if require_credits and account.credits <= 0:
            return self._deny(
                meta,
                policy_error(
                    "Insufficient credits",
                    code=codes.INSUFFICIENT_CREDITS,
                    metadata={"credits_remaining": "0"},
                ),
                account_id=account.id,
            )

        with log_context({fields.ACCOUNT_ID: account.id, fields.OUTCOME: "admitted"}):
            _LOGGER.info("caller authenticated")
        return success(meta=meta, payload=account)

    def _deny(
        self,
        meta: EnvelopeMeta,
        error: ErrorDetail,
        *,
        account_id: str | None = None,
    ) -> Result[Account]:
        with log_context({fields.ACCOUNT_ID: account_id, fields.OUTCOME: error.code}):
            _LOGGER.info("caller denied")
        return failure(meta=meta, errors=[error])
