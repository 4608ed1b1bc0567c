"""FastAPI application for the Inkeep Gateway.

Exposes an OpenAI-compatible surface in front of the Inkeep chat API:
each chat completion solves a fresh proof-of-work challenge, forwards the
merged conversation upstream, and re-frames the reply.

Endpoints:
    - POST /v1/chat/completions - Chat completion (JSON or SSE)
    - GET /v1/models - Caller-facing model list
    - GET /health - Liveness check
    - GET /metrics - In-memory request metrics
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from inkeep_gateway.api.lifespan import lifespan_context
from inkeep_gateway.api.middleware import setup_exception_handlers, setup_middleware
from inkeep_gateway.api.routes import chat_router, system_router
from inkeep_gateway.core.config import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title=settings.api.title,
        description="OpenAI-compatible gateway for the Inkeep chat API",
        version=settings.api.version,
        lifespan=lifespan_context,
    )
    setup_middleware(application)
    setup_exception_handlers(application)
    application.include_router(system_router)
    application.include_router(chat_router)
    return application


app = create_app()

__all__ = ["app", "create_app"]
