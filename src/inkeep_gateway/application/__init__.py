"""Application layer: use cases and the interfaces they depend on."""

from inkeep_gateway.application.interfaces import (
    ChallengeSolverInterface,
    MetricsCollectorInterface,
    RequestLoggerInterface,
    UpstreamClientInterface,
    UpstreamStreamInterface,
)
from inkeep_gateway.application.use_cases import ChatCompletionUseCase

__all__ = [
    "ChallengeSolverInterface",
    "ChatCompletionUseCase",
    "MetricsCollectorInterface",
    "RequestLoggerInterface",
    "UpstreamClientInterface",
    "UpstreamStreamInterface",
]
