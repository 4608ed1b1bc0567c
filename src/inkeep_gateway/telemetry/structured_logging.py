"""Structured request logging for the Inkeep Gateway.

Every upstream call and every API request is written as one JSON object per
line to ``logs/requests.jsonl`` under the project root. The logger does not
propagate, so these events never show up twice on the console.

Event Schema:
    - event: Event type (``api_request``, ``upstream_request``, ...)
    - timestamp: ISO 8601 UTC timestamp (injected when missing)
    - Additional fields: request_id, operation, status, model, latency_ms,
      error_type, error_message, http_status
"""

from __future__ import annotations

import functools
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

REQUEST_LOGGER_NAME = "inkeep_gateway.requests"


@functools.cache
def _get_logs_dir() -> Path:
    """Return the project ``logs`` directory, creating it on first use."""
    logs_dir = Path(__file__).resolve().parents[3] / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


LOGS_DIR = _get_logs_dir()

REQUEST_LOGGER = logging.getLogger(REQUEST_LOGGER_NAME)
if not REQUEST_LOGGER.handlers:
    REQUEST_LOGGER.setLevel(logging.INFO)
    handler = logging.FileHandler(LOGS_DIR / "requests.jsonl", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    REQUEST_LOGGER.addHandler(handler)
    REQUEST_LOGGER.propagate = False


def _json_default(value: Any) -> Any:
    match value:
        case datetime():
            return TypeAdapter(datetime).dump_python(value, mode="json")
        case _:
            return str(value)


def log_request_event(event: dict[str, Any]) -> None:
    """Emit one structured event to the request log.

    Args:
        event: Event payload. A ``timestamp`` is added in place when missing.

    Example:
        >>> log_request_event({
        ...     "event": "upstream_request",
        ...     "operation": "challenge",
        ...     "status": "success",
        ...     "latency_ms": 41.7,
        ... })
    """
    event.setdefault("timestamp", datetime.now(UTC).isoformat())
    REQUEST_LOGGER.info(json.dumps(event, default=_json_default, ensure_ascii=False))


__all__ = ["LOGS_DIR", "REQUEST_LOGGER_NAME", "log_request_event"]
