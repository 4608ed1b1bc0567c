"""In-memory request metrics for the Inkeep Gateway.

Key behaviors:
    - Keeps the most recent 10,000 request records
    - Aggregates counts per model, per operation and per error type
    - Computes average and p50/p95/p99 latencies
    - Optional time window filtering

Operations recorded by the gateway:
    - ``challenge``: Fetch and solve one proof-of-work challenge
    - ``chat``: Non-streamed chat completion
    - ``chat_stream``: Streamed chat completion (latency to first byte)
"""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar, Self

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RequestMetrics:
    """One recorded request.

    Attributes:
        model: Caller-facing model name.
        operation: Operation name (see module docstring).
        latency_ms: Latency in milliseconds.
        success: Whether the request succeeded.
        error: Error type name if it failed.
        timestamp: UTC time the record was made.
    """

    model: str
    operation: str
    latency_ms: float
    success: bool
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(slots=True)
class ServiceMetrics:
    """Aggregated view over a set of RequestMetrics."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    requests_by_model: dict[str, int] = field(default_factory=dict)
    requests_by_operation: dict[str, int] = field(default_factory=dict)
    errors_by_type: dict[str, int] = field(default_factory=dict)
    average_latency_ms: float = 0.0
    p50_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    p99_latency_ms: float = 0.0
    first_request_time: datetime | None = None
    last_request_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "requests_by_model": self.requests_by_model,
            "requests_by_operation": self.requests_by_operation,
            "errors_by_type": self.errors_by_type,
            "average_latency_ms": round(self.average_latency_ms, 2),
            "p50_latency_ms": round(self.p50_latency_ms, 2),
            "p95_latency_ms": round(self.p95_latency_ms, 2),
            "p99_latency_ms": round(self.p99_latency_ms, 2),
            "first_request_time": (
                self.first_request_time.isoformat() if self.first_request_time else None
            ),
            "last_request_time": (
                self.last_request_time.isoformat() if self.last_request_time else None
            ),
        }


def _percentiles(latencies: list[float]) -> tuple[float, float, float]:
    match len(latencies):
        case 0:
            return 0.0, 0.0, 0.0
        case 1:
            return latencies[0], latencies[0], latencies[0]
        case _:
            cuts = statistics.quantiles(latencies, n=100)
            return cuts[49], cuts[94], cuts[98]


class MetricsCollector:
    """Class-level metrics store shared by the whole process.

    Records are only appended from the event loop thread, so no locking is
    needed.
    """

    _metrics: ClassVar[list[RequestMetrics]] = []
    _max_metrics: ClassVar[int] = 10_000

    @classmethod
    def record_request(
        cls,
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        cls._metrics.append(
            RequestMetrics(
                model=model,
                operation=operation,
                latency_ms=latency_ms,
                success=success,
                error=error,
            )
        )
        if len(cls._metrics) > cls._max_metrics:
            cls._metrics = cls._metrics[-cls._max_metrics :]
        logger.debug(
            "metric_recorded: operation=%s, model=%s, latency_ms=%.2f", operation, model, latency_ms
        )

    @classmethod
    def get_metrics(cls, window_minutes: int | None = None) -> ServiceMetrics:
        """Aggregate recorded metrics.

        Args:
            window_minutes: Only include records from the last N minutes.
                None aggregates everything; zero or negative yields nothing.
        """
        match window_minutes:
            case None:
                metrics = list(cls._metrics)
            case minutes if minutes > 0:
                cutoff = datetime.now(UTC) - timedelta(minutes=minutes)
                metrics = [m for m in cls._metrics if m.timestamp >= cutoff]
            case _:
                metrics = []

        if not metrics:
            return ServiceMetrics()

        latencies = sorted(m.latency_ms for m in metrics)
        p50, p95, p99 = _percentiles(latencies)
        successful = sum(1 for m in metrics if m.success)
        return ServiceMetrics(
            total_requests=len(metrics),
            successful_requests=successful,
            failed_requests=len(metrics) - successful,
            requests_by_model=dict(Counter(m.model for m in metrics)),
            requests_by_operation=dict(Counter(m.operation for m in metrics)),
            errors_by_type=dict(Counter(m.error for m in metrics if m.error)),
            average_latency_ms=sum(latencies) / len(latencies),
            p50_latency_ms=p50,
            p95_latency_ms=p95,
            p99_latency_ms=p99,
            first_request_time=min(m.timestamp for m in metrics),
            last_request_time=max(m.timestamp for m in metrics),
        )

    @classmethod
    def get_metrics_json(cls, window_minutes: int | None = None) -> dict[str, Any]:
        return cls.get_metrics(window_minutes).to_dict()

    @classmethod
    def reset(cls) -> Self:
        cls._metrics = []
        return cls


__all__ = ["MetricsCollector", "RequestMetrics", "ServiceMetrics"]
