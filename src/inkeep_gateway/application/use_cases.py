"""Use cases for the Inkeep Gateway.

Design Principles:
    - Dependency Inversion: Depend on interfaces (Protocols), not implementations
    - Orchestration: Coordinate core logic, logging, metrics, and client calls
    - Framework-agnostic: No FastAPI or Pydantic dependencies

Key Use Cases:
    - ChatCompletionUseCase: merge -> translate -> solve challenge -> call
      upstream -> transcode (streamed) or translate back (non-streamed)
"""

from __future__ import annotations

import functools
import time
from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Any

from inkeep_gateway.core.merger import merge_messages
from inkeep_gateway.core.transcoder import StreamOutcome, StreamTranscoder
from inkeep_gateway.core.translator import from_upstream, to_upstream
from inkeep_gateway.domain.entities import Message, SamplingParams
from inkeep_gateway.domain.exceptions import InvalidRequestError

if TYPE_CHECKING:
    from inkeep_gateway.application.interfaces import (
        ChallengeSolverInterface,
        MetricsCollectorInterface,
        RequestLoggerInterface,
        UpstreamClientInterface,
    )
    from inkeep_gateway.core.config import InkeepConfig

EMPTY_MESSAGES_ERROR = "Messages array is required and cannot be empty"


class ChatCompletionUseCase:
    """Serves one OpenAI-style chat completion through the upstream.

    Every call fetches and solves a fresh challenge; nothing is cached
    between requests and nothing is retried.

    Attributes:
        _client: Upstream chat client.
        _solver: Proof-of-work solver bound to the challenge endpoint.
        _config: Upstream configuration (model mapping, default model).
        _logger: Structured request logger.
        _metrics: Metrics collector.
    """

    def __init__(
        self,
        client: UpstreamClientInterface,
        solver: ChallengeSolverInterface,
        config: InkeepConfig,
        logger: RequestLoggerInterface,
        metrics: MetricsCollectorInterface,
    ) -> None:
        self._client = client
        self._solver = solver
        self._config = config
        self._logger = logger
        self._metrics = metrics

    async def execute(
        self,
        messages: Sequence[Message],
        params: SamplingParams,
        *,
        token: str,
        request_id: str,
        client_ip: str | None = None,
    ) -> dict[str, Any] | AsyncIterator[bytes]:
        """Run a chat completion.

        Args:
            messages: Caller conversation, in order. Must not be empty.
            params: Caller sampling parameters; None fields take defaults.
            token: Bearer token to present upstream.
            request_id: Identifier used in logs.
            client_ip: Caller address for logs.

        Returns:
            If ``params.stream`` is falsy: an OpenAI ``chat.completion`` dict.
            Otherwise: a ``FrameStream`` of encoded SSE frames. The upstream
            status has already been checked when it is returned. A streamed
            request is logged and counted when the stream ends, with its
            outcome (success, error or cancelled).

        Raises:
            InvalidRequestError: If ``messages`` is empty.
            GatewayError: Any core failure before the first byte (challenge
                fetch, unsolvable challenge, upstream error).
        """
        caller_model = params.model or self._config.default_caller_model
        stream = bool(params.stream)
        start_time = time.perf_counter()
        event: dict[str, Any] = {
            "event": "api_request",
            "operation": "chat_stream" if stream else "chat",
            "model": caller_model,
            "stream": stream,
            "request_id": request_id,
            "client_ip": client_ip,
            "messages_count": len(messages),
        }

        try:
            if not messages:
                raise InvalidRequestError(EMPTY_MESSAGES_ERROR)

            merged = merge_messages(messages)
            upstream_request = to_upstream(
                merged, params, upstream_model=self._config.resolve_model(caller_model)
            )
            event["upstream_model"] = upstream_request.model
            event["merged_messages_count"] = len(merged)
            solution = await self._solve_challenge(caller_model)

            if stream:
                upstream = await self._client.open_chat_stream(
                    upstream_request.to_payload(), token=token, solution=solution
                )
                transcoder = StreamTranscoder(
                    caller_model,
                    on_finish=functools.partial(self._finish_stream, event, start_time),
                )
                return transcoder.transcode(upstream)

            data = await self._client.chat(
                upstream_request.to_payload(), token=token, solution=solution
            )
            result = from_upstream(data, caller_model)
        except Exception as exc:
            self._record(event, start_time, status="error", error=exc)
            raise

        self._record(event, start_time, status="success")
        return result

    def _finish_stream(
        self,
        event: dict[str, Any],
        start_time: float,
        outcome: StreamOutcome,
        error: Exception | None,
    ) -> None:
        match outcome:
            case StreamOutcome.COMPLETED:
                self._record(event, start_time, status="success")
            case StreamOutcome.FAILED:
                self._record(event, start_time, status="error", error=error)
            case _:
                self._record(event, start_time, status="cancelled")

    def _record(
        self,
        event: dict[str, Any],
        start_time: float,
        *,
        status: str,
        error: Exception | None = None,
    ) -> None:
        """Write the request log event and the metrics record for one request."""
        latency_ms = (time.perf_counter() - start_time) * 1000
        entry = {**event, "status": status, "latency_ms": round(latency_ms, 3)}
        if error is not None:
            entry["error_type"] = type(error).__name__
            entry["error_message"] = str(error)
        self._logger.log_request(entry)

        success = status == "success"
        self._metrics.record_request(
            model=event["model"],
            operation=event["operation"],
            latency_ms=latency_ms,
            success=success,
            error=type(error).__name__ if error is not None else (None if success else status),
        )

    async def _solve_challenge(self, caller_model: str) -> str:
        start_time = time.perf_counter()
        try:
            solution = await self._solver.fetch_and_solve()
        except Exception as exc:
            self._metrics.record_request(
                model=caller_model,
                operation="challenge",
                latency_ms=(time.perf_counter() - start_time) * 1000,
                success=False,
                error=type(exc).__name__,
            )
            raise
        self._metrics.record_request(
            model=caller_model,
            operation="challenge",
            latency_ms=(time.perf_counter() - start_time) * 1000,
            success=True,
        )
        return solution


__all__ = ["EMPTY_MESSAGES_ERROR", "ChatCompletionUseCase"]
