"""Reusable HTTPException builders producing OpenAI error envelopes.

Every builder sets ``detail`` to ``{"message", "type", "code"}``; the global
HTTPException handler wraps it as ``{"error": detail}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

INTERNAL_ERROR_MESSAGE = "Internal server error"
NO_TOKENS_MESSAGE = "Internal server error: No valid tokens available"


def error_detail(message: str, error_type: str, code: str) -> dict[str, Any]:
    return {"message": message, "type": error_type, "code": code}


def openai_error(
    status_code: int,
    message: str,
    error_type: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=error_detail(message, error_type, code),
        headers=headers,
    )


def invalid_request_error(message: str) -> HTTPException:
    return openai_error(
        status.HTTP_400_BAD_REQUEST, message, "invalid_request_error", "invalid_parameter"
    )


def internal_error(message: str = INTERNAL_ERROR_MESSAGE) -> HTTPException:
    return openai_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, message, "server_error", "internal_error"
    )


def not_found_error(method: str, path: str) -> HTTPException:
    return openai_error(
        status.HTTP_404_NOT_FOUND,
        f"Unknown request URL: {method} {path}",
        "invalid_request_error",
        "not_found",
    )


def service_unavailable_error(message: str) -> HTTPException:
    return openai_error(
        status.HTTP_503_SERVICE_UNAVAILABLE, message, "server_error", "service_unavailable"
    )


def rate_limit_error(retry_after: int = 60) -> HTTPException:
    return openai_error(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Rate limit exceeded. Please try again later.",
        "rate_limit_error",
        "rate_limit_exceeded",
        headers={"Retry-After": str(retry_after)},
    )


__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "NO_TOKENS_MESSAGE",
    "error_detail",
    "internal_error",
    "invalid_request_error",
    "not_found_error",
    "openai_error",
    "rate_limit_error",
    "service_unavailable_error",
]
