"""Middleware and error handlers for the API.

Middleware Stack:
    1. StructuredLoggingMiddleware: Logs all HTTP requests
    2. CORSMiddleware: Handles cross-origin requests and preflights
    3. Rate Limiting: Per-endpoint limits via @limiter.limit decorator

Error Envelope:
    Every error response, including unknown routes and rate limiting, has the
    OpenAI shape ``{"error": {"message", "type", "code"}}``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from inkeep_gateway.api.dependencies import get_request_context
from inkeep_gateway.api.http_errors import (
    INTERNAL_ERROR_MESSAGE,
    error_detail,
    not_found_error,
    rate_limit_error,
)
from inkeep_gateway.core.config import get_settings
from inkeep_gateway.telemetry.structured_logging import log_request_event

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

NOT_FOUND_STATUSES = (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED)


def chat_rate_limit() -> str:
    return get_settings().api.chat_rate_limit


def error_response(
    status_code: int,
    detail: Mapping[str, object],
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": dict(detail)},
        headers=dict(headers) if headers else None,
    )


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emits one ``http_request`` event per HTTP request, even on failure.

    For streamed responses the latency covers time to response headers.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start_time = time.perf_counter()
        status_code: int | None = None
        error_type: str | None = None
        error_message: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as exc:
            status_code = getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
            error_type = type(exc).__name__
            error_message = str(exc)
            raise
        finally:
            ctx = get_request_context(request)
            event: dict[str, object] = {
                "event": "http_request",
                "request_id": ctx.request_id,
                "client_ip": ctx.client_ip,
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "latency_ms": round((time.perf_counter() - start_time) * 1000, 3),
            }
            if error_type:
                event["error_type"] = error_type
                event["error_message"] = error_message
            log_request_event(event)


def setup_middleware(app: FastAPI) -> None:
    """Configure logging, rate limiting and CORS for the application."""
    settings = get_settings()

    app.add_middleware(StructuredLoggingMiddleware)

    app.state.limiter = limiter

    cors_origins = settings.api.cors_origins
    allow_origins = (
        [origin.strip() for origin in cors_origins.split(",")] if cors_origins != "*" else ["*"]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render every error as an OpenAI error envelope.

    Registers handlers for:
    - HTTPException (including unknown routes and wrong methods -> 404)
    - RequestValidationError (400)
    - RateLimitExceeded (429)
    - Exception (500 catch-all)
    """

    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code in NOT_FOUND_STATUSES and not isinstance(exc.detail, Mapping):
            exc = not_found_error(request.method, request.url.path)

        if isinstance(exc.detail, Mapping):
            detail = exc.detail
        elif exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            detail = error_detail(str(exc.detail), "server_error", "internal_error")
        else:
            detail = error_detail(str(exc.detail), "invalid_request_error", "invalid_parameter")
        return error_response(exc.status_code, detail, exc.headers)

    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        ctx = get_request_context(request)
        errors = exc.errors()
        logger.warning("validation_error: request_id=%s, errors=%s", ctx.request_id, errors)
        message = (
            f"Invalid request: {errors[0].get('msg', 'validation failed')}"
            if errors
            else "Invalid request parameters"
        )
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            error_detail(message, "invalid_request_error", "invalid_parameter"),
        )

    async def rate_limit_exception_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        ctx = get_request_context(request)
        logger.warning(
            "rate_limit_exceeded: request_id=%s, client_ip=%s", ctx.request_id, ctx.client_ip
        )
        error = rate_limit_error()
        return error_response(error.status_code, error.detail, error.headers)

    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        ctx = get_request_context(request)
        logger.exception(
            "unhandled_exception: request_id=%s, error_type=%s, error=%s",
            ctx.request_id,
            type(exc).__name__,
            exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_detail(INTERNAL_ERROR_MESSAGE, "server_error", "internal_error"),
        )

    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(RateLimitExceeded)(rate_limit_exception_handler)
    app.exception_handler(Exception)(global_exception_handler)


__all__ = [
    "StructuredLoggingMiddleware",
    "chat_rate_limit",
    "error_response",
    "limiter",
    "setup_exception_handlers",
    "setup_middleware",
]
