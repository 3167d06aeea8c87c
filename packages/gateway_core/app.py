"""FastAPI application assembly: middleware, error handlers, and routes."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from packages.gateway_core.context import AppContext
from packages.gateway_core.health_api import register_routes as register_health_routes
from packages.gateway_shared.errors import (
    ErrorCategory,
    ErrorDetail,
    codes,
    internal_error,
    not_found_error,
    validation_error,
)
from packages.gateway_shared.http import create_app, error_body, error_response
from packages.gateway_shared.ids import new_request_id
from packages.gateway_shared.logging import fields, get_logger, log_context
from services.metering.gateway_api.api import register_routes as register_api_routes

_LOGGER = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}
_CORS_METHODS = ["GET", "POST", "OPTIONS"]
_CORS_HEADERS = ["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"]
_TRACKED_PREFIX = "/api/"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, bind log context, and log request completion.

    Unhandled exceptions become a structured 500 here, so outer middleware
    still decorates the response.
    """

    def __init__(self, app: ASGIApp, *, context: AppContext) -> None:
        super().__init__(app)
        self._context = context

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()
        path = request.url.path
        with log_context(
            {
                fields.REQUEST_ID: request_id,
                fields.HTTP_METHOD: request.method,
                fields.HTTP_PATH: path,
            }
        ):
            try:
                if path.startswith(_TRACKED_PREFIX):
                    async with self._context.lifecycle.track_request():
                        response = await call_next(request)
                else:
                    response = await call_next(request)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.exception("unhandled exception while serving request")
                response = error_response(
                    [internal_error("Internal server error")],
                    include_details=not self._context.settings.server.is_production,
                    exc=exc,
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            _LOGGER.info(
                "http request completed",
                extra={
                    fields.HTTP_STATUS: response.status_code,
                    fields.DURATION_MS: round(
                        (time.perf_counter() - started) * 1000, 3
                    ),
                },
            )
            return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def create_gateway_app(context: AppContext) -> FastAPI:
    """Build the gateway FastAPI app bound to one process context."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        context.memory.start()
        try:
            yield
        finally:
            pending = await context.audit_log.drain(
                timeout_seconds=context.settings.server.drain_timeout_seconds
            )
            if pending:
                _LOGGER.error(
                    "audit writes abandoned at shutdown",
                    extra={"pending_writes": pending},
                )
            await context.aclose()

    settings = context.settings
    app = create_app(
        title="metered-gateway",
        version=settings.server.version,
        lifespan=lifespan,
    )
    include_details = not settings.server.is_production

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            error = not_found_error("Route not found")
        else:
            error = ErrorDetail(
                code=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
                category=ErrorCategory.VALIDATION,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(error, include_details=include_details),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            [validation_error(str(exc), code=codes.VALIDATION_ERROR)],
            include_details=include_details,
        )

    router = APIRouter()
    register_health_routes(router=router, reporter=context.health)
    register_api_routes(router=router, context=context)
    app.include_router(router)

    # Last added runs outermost.
    app.add_middleware(RequestContextMiddleware, context=context)
    app.add_middleware(SecurityHeadersMiddleware)
    if settings.server.cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.server.cors_allowed_origins),
            allow_credentials=True,
            allow_methods=_CORS_METHODS,
            allow_headers=_CORS_HEADERS,
            expose_headers=[REQUEST_ID_HEADER],
            max_age=86400,
        )
    return app
