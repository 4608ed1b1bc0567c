"""Infrastructure adapters implementing application layer interfaces.

Key Adapters:
    - RequestLoggerAdapter: Wraps structured logging for RequestLoggerInterface
    - MetricsCollectorAdapter: Wraps MetricsCollector for MetricsCollectorInterface

The upstream client and the challenge solver already satisfy their
protocols directly and need no adapter.
"""

from __future__ import annotations

from typing import Any

from inkeep_gateway.telemetry.metrics import MetricsCollector
from inkeep_gateway.telemetry.structured_logging import log_request_event


class RequestLoggerAdapter:
    """Delegates request logging to the global JSONL request log."""

    @staticmethod
    def log_request(data: dict[str, Any]) -> None:
        log_request_event(data)


class MetricsCollectorAdapter:
    """Delegates metrics recording to the process-wide MetricsCollector."""

    @staticmethod
    def record_request(
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        MetricsCollector.record_request(
            model=model,
            operation=operation,
            latency_ms=latency_ms,
            success=success,
            error=error,
        )


__all__ = ["MetricsCollectorAdapter", "RequestLoggerAdapter"]
