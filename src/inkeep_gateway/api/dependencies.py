"""Dependency injection for FastAPI endpoints.

Dependency Flow:
    1. Lifespan startup builds the upstream client, solver and use case
    2. set_dependencies() stores the use case
    3. get_*() functions retrieve it (503 if not initialized)
    4. FastAPI Depends() wires everything together; tests swap pieces out
       with ``app.dependency_overrides``

Token Resolution:
    The bearer token presented upstream comes from the caller's
    Authorization header when usable, otherwise from the configured default
    pool. See ``resolve_auth_token``.
"""

from __future__ import annotations

import json
import logging
import random
import uuid
from collections.abc import Sequence

from fastapi import Request
from pydantic import ValidationError
from slowapi.util import get_remote_address

from inkeep_gateway.api.http_errors import service_unavailable_error
from inkeep_gateway.api.models import ChatCompletionRequest, RequestContext
from inkeep_gateway.application.use_cases import EMPTY_MESSAGES_ERROR, ChatCompletionUseCase
from inkeep_gateway.core.config import Settings, get_settings
from inkeep_gateway.domain.exceptions import InvalidRequestError, NoTokensAvailableError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
DEFAULT_TOKEN_SENTINELS = frozenset({"false", "null", "none"})

# Global instance (initialized in lifespan)
_chat_use_case: ChatCompletionUseCase | None = None


def set_dependencies(chat_use_case: ChatCompletionUseCase | None) -> None:
    """Set global dependencies (called during lifespan startup and shutdown)."""
    global _chat_use_case
    _chat_use_case = chat_use_case


def get_chat_use_case() -> ChatCompletionUseCase:
    """Get the chat completion use case.

    Raises:
        HTTPException: 503 if the lifespan has not initialized it.
    """
    if _chat_use_case is None:
        raise service_unavailable_error("Chat completion service not initialized")
    return _chat_use_case


def get_app_settings() -> Settings:
    return get_settings()


def get_request_context(request: Request) -> RequestContext:
    """Extract (or reuse) the request context stored on ``request.state``.

    The same context instance is reused for the lifetime of one request, so
    middleware, dependencies and route handlers share one request_id.
    """
    ctx: RequestContext | None = getattr(request.state, "request_context", None)
    if ctx is None:
        ctx = RequestContext(
            request_id=str(uuid.uuid4()),
            client_ip=get_remote_address(request),
            user_agent=request.headers.get("user-agent"),
        )
        request.state.request_context = ctx
    return ctx


# ============================================================================
# Token Resolution
# ============================================================================


def pick_default_token(default_tokens: Sequence[str]) -> str:
    """Pick one token at random from the default pool.

    Raises:
        NoTokensAvailableError: If the pool is empty.
    """
    if not default_tokens:
        raise NoTokensAvailableError("No default tokens configured")
    return random.choice(default_tokens)


def resolve_auth_token(authorization: str | None, default_tokens: Sequence[str]) -> str:
    """Choose the bearer token to present upstream.

    Rules:
        - Missing header, or not a ``Bearer`` header -> random default token
        - ``false``/``null``/``none`` (any case) -> random default token
        - Comma-separated list -> random non-empty member
        - Otherwise the token itself, or a default token if it is empty

    Raises:
        NoTokensAvailableError: If a default token is needed and the pool is
            empty.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return pick_default_token(default_tokens)

    tokens = authorization[len(BEARER_PREFIX) :].strip()
    if tokens.lower() in DEFAULT_TOKEN_SENTINELS:
        return pick_default_token(default_tokens)

    if "," in tokens:
        candidates = [t.strip() for t in tokens.split(",") if t.strip()]
        if candidates:
            return random.choice(candidates)

    return tokens or pick_default_token(default_tokens)


# ============================================================================
# Request Parsing & Validation Helpers
# ============================================================================


async def parse_chat_request(request: Request) -> ChatCompletionRequest:
    """Parse and validate a chat completion body.

    Raises:
        InvalidRequestError: If the body is not a JSON object, ``messages`` is
            missing, not a list or empty, or any field fails validation.
    """
    body_bytes = await request.body()
    try:
        body = json.loads(body_bytes) if body_bytes else None
    except ValueError as exc:
        raise InvalidRequestError(f"Invalid JSON in request body: {exc!s}") from exc

    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InvalidRequestError(EMPTY_MESSAGES_ERROR)

    try:
        return ChatCompletionRequest.model_validate(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidRequestError(
            f"Invalid request: {first.get('msg', 'validation failed')} at {location}"
        ) from exc


__all__ = [
    "get_app_settings",
    "get_chat_use_case",
    "get_request_context",
    "parse_chat_request",
    "pick_default_token",
    "resolve_auth_token",
    "set_dependencies",
]
