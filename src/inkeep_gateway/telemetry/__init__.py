"""Telemetry utilities (metrics and structured logging)."""

from inkeep_gateway.telemetry.metrics import MetricsCollector, RequestMetrics, ServiceMetrics
from inkeep_gateway.telemetry.structured_logging import log_request_event

__all__ = ["MetricsCollector", "RequestMetrics", "ServiceMetrics", "log_request_event"]
