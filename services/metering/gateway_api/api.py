"""HTTP routes for the metered chat and account statistics endpoints."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from packages.gateway_core.context import AppContext
from packages.gateway_shared.envelope import EnvelopeKind, EnvelopeMeta, new_meta
from packages.gateway_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    validation_error,
)
from packages.gateway_shared.http import (
    InvalidJsonBodyError,
    error_response,
    get_header,
    read_json_body,
)
from packages.gateway_shared.ids import new_request_id
from packages.gateway_shared.logging import fields, get_logger, log_context
from resources.adapters.generation import (
    GenerationError,
    GenerationRejectedError,
    GenerationTimeoutError,
)
from resources.substrates.credential_store import Account, RequestRecord
from services.metering.gateway_api.validation import (
    parse_usage_limit,
    validate_message,
)
from services.metering.request_audit import AuditMetadata

_LOGGER = get_logger(__name__)
_SOURCE = "gateway_api"
_MESSAGE_PREVIEW_CHARS = 100


def register_routes(*, router: APIRouter, context: AppContext) -> None:
    """Register metered chat and statistics routes on one router."""
    settings = context.settings
    include_details = not settings.server.is_production

    def _fail(errors: list[ErrorDetail]) -> JSONResponse:
        return error_response(errors, include_details=include_details)

    async def _authenticate(
        request: Request, meta: EnvelopeMeta, *, require_credits: bool
    ) -> Account | JSONResponse:
        result = await context.auth_gate.authenticate(
            meta=meta,
            authorization=get_header(request, "Authorization"),
            require_credits=require_credits,
        )
        if not result.ok:
            return _fail(result.errors)
        return result.unwrap()

    @router.post("/api/chat")
    async def chat(request: Request) -> JSONResponse:
        started = time.monotonic()
        request_id = _request_id(request)
        meta = _meta(request_id, EnvelopeKind.COMMAND)

        account = await _authenticate(request, meta, require_credits=True)
        if isinstance(account, JSONResponse):
            return account

        with log_context({fields.ACCOUNT_ID: account.id}):
            try:
                body = await read_json_body(request)
            except InvalidJsonBodyError as exc:
                return _fail([validation_error(str(exc))])
            try:
                prompt = validate_message(
                    body, max_length=settings.metering.max_message_length
                )
            except ValueError as exc:
                return _fail([validation_error(str(exc))])

            try:
                generated = await context.generator.generate(prompt=prompt)
            except GenerationError as exc:
                _LOGGER.warning(
                    "generation failed; nothing charged: exception_type=%s",
                    type(exc).__name__,
                )
                return _fail([_upstream_error(exc)])

            cost = settings.metering.cost_per_request
            debit = await context.ledger.debit(
                meta=meta, account_id=account.id, cost=cost
            )
            if not debit.ok:
                _LOGGER.warning(
                    "debit failed after generation; response withheld, call unbilled",
                    extra={
                        fields.OUTCOME: debit.errors[0].code,
                        "model": generated.model,
                        "latency_ms": generated.latency_ms,
                    },
                )
                return _fail(debit.errors)
            updated = debit.unwrap()

            context.audit_log.submit(
                meta=meta,
                account_id=account.id,
                metadata=AuditMetadata(
                    prompt=prompt,
                    response_length=len(generated.text),
                    latency_ms=generated.latency_ms,
                    credits_charged=cost,
                    model=generated.model,
                ),
                record_id=request_id,
            )

            total_ms = int((time.monotonic() - started) * 1000)
            _LOGGER.info(
                "chat request completed",
                extra={
                    "credits_remaining": updated.credits,
                    "total_time_ms": total_ms,
                },
            )
            return JSONResponse(
                {
                    "success": True,
                    "response": generated.text,
                    "credits_remaining": updated.credits,
                    "request_id": request_id,
                    "model": generated.model,
                    "response_time_ms": generated.latency_ms,
                    "total_time_ms": total_ms,
                    "timestamp": _now(),
                }
            )

    @router.get("/api/chat/models")
    async def models() -> dict[str, Any]:
        info = context.generator.model_info()
        return {
            "success": True,
            "models": [
                {
                    "id": info.model,
                    "provider": info.provider,
                    "max_tokens": info.max_output_tokens,
                    "temperature": info.temperature,
                    "top_k": info.top_k,
                    "top_p": info.top_p,
                    "timeout_seconds": info.timeout_seconds,
                    "cost_per_request": settings.metering.cost_per_request,
                }
            ],
            "default_model": info.model,
        }

    @router.get("/api/stats")
    async def stats(request: Request) -> JSONResponse:
        meta = _meta(_request_id(request), EnvelopeKind.QUERY)
        account = await _authenticate(request, meta, require_credits=False)
        if isinstance(account, JSONResponse):
            return account
        return JSONResponse({"success": True, **_account_body(account)})

    @router.get("/api/stats/summary")
    async def stats_summary(request: Request) -> JSONResponse:
        meta = _meta(_request_id(request), EnvelopeKind.QUERY)
        account = await _authenticate(request, meta, require_credits=False)
        if isinstance(account, JSONResponse):
            return account
        return JSONResponse(
            {
                "success": True,
                "credits_remaining": account.credits,
                "total_requests": account.total_requests,
                "account_status": account.status.value,
                "last_used": _iso(account.last_used_at),
            }
        )

    @router.get("/api/stats/usage")
    async def stats_usage(request: Request) -> JSONResponse:
        meta = _meta(_request_id(request), EnvelopeKind.QUERY)
        account = await _authenticate(request, meta, require_credits=False)
        if isinstance(account, JSONResponse):
            return account

        limit = parse_usage_limit(
            request.query_params.get("limit"),
            maximum=settings.metering.usage_history_max,
        )
        history = await context.audit_log.history(
            meta=meta, account_id=account.id, limit=limit
        )
        if not history.ok:
            return _fail(history.errors)
        records = history.payload or []
        avg_latency = (
            round(sum(item.latency_ms for item in records) / len(records))
            if records
            else 0
        )
        return JSONResponse(
            {
                "success": True,
                "account": _account_body(account),
                "usage": {
                    "recent_requests": len(records),
                    "avg_response_time_ms": avg_latency,
                    "request_history": [_record_body(item) for item in records],
                },
                "limits": {
                    "max_message_length": settings.metering.max_message_length,
                    "cost_per_request": settings.metering.cost_per_request,
                    "usage_history_max": settings.metering.usage_history_max,
                },
            }
        )


def _upstream_error(exc: GenerationError) -> ErrorDetail:
    if isinstance(exc, GenerationTimeoutError):
        return dependency_error(
            "AI service request timed out", code=codes.UPSTREAM_TIMEOUT
        )
    if isinstance(exc, GenerationRejectedError):
        return dependency_error(
            "AI service rejected the request",
            code=codes.UPSTREAM_REJECTED,
            retryable=False,
        )
    return dependency_error(
        "AI service temporarily unavailable", code=codes.UPSTREAM_UNAVAILABLE
    )


def _request_id(request: Request) -> str:
    value = getattr(request.state, "request_id", None)
    return value if isinstance(value, str) and value else new_request_id()


def _meta(request_id: str, kind: EnvelopeKind) -> EnvelopeMeta:
    return new_meta(
        kind=kind, source=_SOURCE, principal="api_client", trace_id=request_id
    )


def _account_body(account: Account) -> dict[str, Any]:
    return {
        "credits_remaining": account.credits,
        "total_requests": account.total_requests,
        "email": account.email,
        "created_at": _iso(account.created_at),
        "last_used": _iso(account.last_used_at),
        "account_status": account.status.value,
    }


def _record_body(record: RequestRecord) -> dict[str, Any]:
    preview = record.prompt_preview[:_MESSAGE_PREVIEW_CHARS]
    if record.prompt_length > _MESSAGE_PREVIEW_CHARS:
        preview += "..."
    return {
        "request_id": record.id,
        "timestamp": _iso(record.timestamp),
        "message_preview": preview,
        "response_length": record.response_length,
        "response_time_ms": record.latency_ms,
        "credits_used": record.credits_charged,
        "model": record.model,
    }


def _iso(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _now() -> str:
    return datetime.now(UTC).isoformat()
