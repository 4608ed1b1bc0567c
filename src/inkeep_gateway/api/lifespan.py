"""Application lifespan management.

Lifespan Responsibilities:
    - Startup:
        1. Load settings
        2. Create the shared httpx.AsyncClient (pooled, keep-alive)
        3. Build the Inkeep client, the challenge solver and the use case
        4. Store them for FastAPI Depends via set_dependencies()
    - Shutdown:
        1. Clear dependencies
        2. Close the HTTP client
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx

from inkeep_gateway.api.dependencies import set_dependencies
from inkeep_gateway.application.use_cases import ChatCompletionUseCase
from inkeep_gateway.client.upstream import InkeepClient
from inkeep_gateway.core.challenge import ChallengeSolver
from inkeep_gateway.core.config import Settings, get_settings
from inkeep_gateway.infrastructure.adapters import MetricsCollectorAdapter, RequestLoggerAdapter

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the pooled HTTP client shared by all upstream calls."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.client.timeout, connect=settings.client.connect_timeout),
        limits=httpx.Limits(
            max_connections=settings.client.max_connections,
            max_keepalive_connections=settings.client.max_keepalive_connections,
        ),
    )


def build_chat_use_case(
    settings: Settings, http_client: httpx.AsyncClient
) -> ChatCompletionUseCase:
    """Wire the upstream client, solver and telemetry adapters together."""
    inkeep_client = InkeepClient(
        http_client,
        settings.inkeep,
        challenge_timeout=settings.challenge.timeout,
    )
    solver = ChallengeSolver(
        inkeep_client,
        batch_size=settings.challenge.batch_size,
        workers=settings.challenge.workers,
    )
    return ChatCompletionUseCase(
        client=inkeep_client,
        solver=solver,
        config=settings.inkeep,
        logger=RequestLoggerAdapter(),
        metrics=MetricsCollectorAdapter(),
    )


@asynccontextmanager
async def lifespan_context(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown."""
    settings = get_settings()
    logger.info(
        "gateway_starting: chat_url=%s, models=%d, default_tokens=%d",
        settings.inkeep.chat_url,
        len(settings.inkeep.model_mapping),
        len(settings.auth.default_tokens),
    )
    if not settings.auth.default_tokens:
        logger.warning("no_default_tokens: requests without a bearer token will fail")

    http_client = build_http_client(settings)
    set_dependencies(build_chat_use_case(settings, http_client))
    try:
        yield
    finally:
        set_dependencies(None)
        await http_client.aclose()
        logger.info("gateway_stopped")


__all__ = ["build_chat_use_case", "build_http_client", "lifespan_context"]
