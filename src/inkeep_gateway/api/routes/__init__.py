"""API routes for the Inkeep Gateway."""

from inkeep_gateway.api.routes.chat import router as chat_router
from inkeep_gateway.api.routes.system import router as system_router

__all__ = ["chat_router", "system_router"]
