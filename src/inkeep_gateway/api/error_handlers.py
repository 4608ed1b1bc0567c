"""Shared error handling for route handlers.

Error Handling Strategy:
    - InvalidRequestError -> 400 ``invalid_request_error``/``invalid_parameter``
    - NoTokensAvailableError -> 500 "No valid tokens available"
    - Any other GatewayError -> 500 ``server_error``/``internal_error``
    - Unknown errors -> 500 ``server_error``/``internal_error`` with traceback

Upstream error details are logged but never echoed to the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import NoReturn

from fastapi import HTTPException, status

from inkeep_gateway.api.http_errors import (
    NO_TOKENS_MESSAGE,
    internal_error,
    invalid_request_error,
)
from inkeep_gateway.api.models import RequestContext
from inkeep_gateway.domain.exceptions import (
    GatewayError,
    InvalidRequestError,
    NoTokensAvailableError,
    UpstreamCallError,
)
from inkeep_gateway.telemetry.structured_logging import log_request_event

logger = logging.getLogger(__name__)


def handle_route_errors(
    ctx: RequestContext,
    operation_name: str,
    *,
    start_time: float | None = None,
) -> Callable[[Exception], NoReturn]:
    """Create an error handler that turns exceptions into OpenAI error responses.

    Example:
        >>> error_handler = handle_route_errors(ctx, "chat")
        >>> try:
        ...     result = await use_case.execute(...)
        ... except Exception as exc:
        ...     error_handler(exc)
    """

    def _log_event(exc: Exception, http_status: int, **extra: object) -> None:
        event: dict[str, object] = {
            "event": "api_request",
            "operation": operation_name,
            "status": "error",
            "request_id": ctx.request_id,
            "client_ip": ctx.client_ip,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "http_status": http_status,
        }
        if start_time is not None:
            event["latency_ms"] = round((time.perf_counter() - start_time) * 1000, 3)
        event.update({k: v for k, v in extra.items() if v is not None})
        log_request_event(event)

    def handle_error(exc: Exception) -> NoReturn:
        match exc:
            case HTTPException():
                raise exc

            case InvalidRequestError():
                logger.warning(
                    f"{operation_name}_validation_error: request_id=%s, error=%s",
                    ctx.request_id,
                    exc,
                )
                _log_event(exc, status.HTTP_400_BAD_REQUEST)
                raise invalid_request_error(str(exc)) from exc

            case NoTokensAvailableError():
                logger.error(f"{operation_name}_no_tokens: request_id=%s", ctx.request_id)
                _log_event(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
                raise internal_error(NO_TOKENS_MESSAGE) from exc

            case UpstreamCallError(status_code=upstream_status):
                logger.error(
                    f"{operation_name}_upstream_error: request_id=%s, upstream_status=%s, error=%s",
                    ctx.request_id,
                    upstream_status,
                    exc,
                )
                _log_event(
                    exc, status.HTTP_500_INTERNAL_SERVER_ERROR, upstream_status=upstream_status
                )
                raise internal_error() from exc

            case GatewayError():
                logger.error(
                    f"{operation_name}_gateway_error: request_id=%s, error_type=%s, error=%s",
                    ctx.request_id,
                    type(exc).__name__,
                    exc,
                )
                _log_event(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
                raise internal_error() from exc

            case _:
                logger.exception(
                    f"unexpected_error_{operation_name}: request_id=%s, error_type=%s",
                    ctx.request_id,
                    type(exc).__name__,
                )
                _log_event(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
                raise internal_error() from exc

    return handle_error


__all__ = ["handle_route_errors"]
