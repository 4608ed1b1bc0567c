"""Infrastructure adapters for the Inkeep Gateway."""

from inkeep_gateway.infrastructure.adapters import MetricsCollectorAdapter, RequestLoggerAdapter

__all__ = ["MetricsCollectorAdapter", "RequestLoggerAdapter"]
