"""Interfaces (Protocols) for application layer dependencies.

The chat completion use case depends on these protocols rather than on the
concrete httpx client, solver, logger or metrics store, so each can be
replaced by a fake in tests.

Key Interfaces:
    - UpstreamClientInterface: Non-streamed and streamed upstream chat calls
    - ChallengeSolverInterface: Produces a fresh proof-of-work solution token
    - RequestLoggerInterface: Structured request logging
    - MetricsCollectorInterface: Basic metrics collection

Note:
    Implementations don't need to inherit from these protocols; they only
    need to provide the methods.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol


class UpstreamStreamInterface(Protocol):
    """Open upstream response body: iterable raw bytes that can be closed."""

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class UpstreamClientInterface(Protocol):
    """Protocol for the upstream chat API client."""

    async def chat(self, payload: dict[str, Any], *, token: str, solution: str) -> dict[str, Any]:
        """Send a non-streamed chat request and return the decoded JSON body.

        Raises:
            UpstreamCallError: On transport failure or non-success status.
        """
        ...

    async def open_chat_stream(
        self, payload: dict[str, Any], *, token: str, solution: str
    ) -> UpstreamStreamInterface:
        """Open a streamed chat request after checking the upstream status.

        Raises:
            UpstreamCallError: On transport failure or non-success status.
        """
        ...


class ChallengeSolverInterface(Protocol):
    """Protocol for proof-of-work solvers."""

    async def fetch_and_solve(self) -> str:
        """Fetch a fresh challenge and return the encoded solution token.

        Raises:
            ChallengeFetchError: If the challenge cannot be retrieved.
            UnsupportedAlgorithmError: If the challenge names an unknown hash.
            ChallengeUnsolvableError: If no number in range matches.
        """
        ...


class RequestLoggerInterface(Protocol):
    """Protocol for structured request logging."""

    def log_request(self, data: dict[str, Any]) -> None:
        """Log one request event.

        Args:
            data: Event payload with at least ``event``, ``status``,
                ``request_id`` and ``operation``.
        """
        ...


class MetricsCollectorInterface(Protocol):
    """Protocol for request metrics collection."""

    def record_request(
        self,
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None: ...


__all__ = [
    "ChallengeSolverInterface",
    "MetricsCollectorInterface",
    "RequestLoggerInterface",
    "UpstreamClientInterface",
    "UpstreamStreamInterface",
]
