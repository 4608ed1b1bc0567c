"""Asynchronous client for the upstream Inkeep API.

This module wraps a shared ``httpx.AsyncClient`` with the three calls the
gateway makes upstream: fetching a proof-of-work challenge, a non-streamed
chat completion, and a streamed chat completion.

Key behaviors:
    - Every call carries browser-like headers (User-Agent, origin, referer)
    - Chat calls add the bearer token and the challenge solution header
    - Non-success responses are turned into domain errors with the upstream
      status and body text in the message
    - Every call is written to the structured request log

Streaming:
    ``open_chat_stream`` returns only after the upstream status has been
    checked, so a failing upstream surfaces as an exception before any bytes
    are relayed to the caller. The returned ``UpstreamStream`` must be closed
    by whoever consumes it; the stream transcoder does so automatically.

Concurrency:
    Instances hold no per-request state and are safe to share between
    concurrent requests.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import AsyncIterator
from typing import Any

import httpx

from inkeep_gateway.core.config import InkeepConfig
from inkeep_gateway.domain.entities import ChallengeDescriptor
from inkeep_gateway.domain.exceptions import ChallengeFetchError, UpstreamCallError
from inkeep_gateway.telemetry.structured_logging import log_request_event

logger = logging.getLogger(__name__)

CHALLENGE_SOLUTION_HEADER = "x-inkeep-challenge-solution"


class UpstreamStream:
    """Byte stream of an open upstream chat response.

    Iterating yields raw body chunks. ``aclose`` releases the connection and
    may be called more than once.
    """

    __slots__ = ("_response",)

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def aclose(self) -> None:
        await self._response.aclose()


class InkeepClient:
    """HTTP client for the Inkeep challenge and chat endpoints.

    Attributes:
        config: Upstream endpoints and header values.
        challenge_timeout: Timeout in seconds for the challenge request.
    """

    __slots__ = ("_client", "challenge_timeout", "config")

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: InkeepConfig,
        *,
        challenge_timeout: float = 15.0,
    ) -> None:
        self._client = client
        self.config = config
        self.challenge_timeout = challenge_timeout

    def _browser_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "origin": self.config.origin,
            "referer": self.config.referer,
        }

    def _chat_headers(self, token: str, solution: str) -> dict[str, str]:
        return {
            **self._browser_headers(),
            "Accept": "application/json",
            "Content-Type": "application/json",
            "accept-language": self.config.accept_language,
            "authorization": f"Bearer {token}",
            "cache-control": "no-cache",
            "pragma": "no-cache",
            CHALLENGE_SOLUTION_HEADER: solution,
        }

    def _log_call(
        self,
        operation: str,
        request_id: str,
        start_time: float,
        *,
        status_code: int | None = None,
        error: Exception | None = None,
    ) -> None:
        latency_ms = (time.perf_counter() - start_time) * 1000
        event: dict[str, Any] = {
            "event": "upstream_request",
            "operation": operation,
            "status": "error" if error else "success",
            "request_id": request_id,
            "latency_ms": round(latency_ms, 3),
        }
        if status_code is not None:
            event["http_status"] = status_code
        if error is not None:
            event["error_type"] = type(error).__name__
            event["error_message"] = str(error)
        log_request_event(event)

    async def fetch_challenge(self) -> ChallengeDescriptor:
        """Fetch a fresh proof-of-work challenge.

        Raises:
            ChallengeFetchError: On transport failure, non-success status, or a
                body that is not a valid challenge descriptor.
        """
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        status_code: int | None = None
        try:
            response = await self._client.get(
                self.config.challenge_url,
                headers=self._browser_headers(),
                timeout=self.challenge_timeout,
            )
            status_code = response.status_code
            if response.is_error:
                msg = f"Challenge request failed: {response.status_code} {response.reason_phrase}"
                raise ChallengeFetchError(msg)
            payload = response.json()
            if not isinstance(payload, dict):
                msg = f"Expected JSON object from challenge endpoint, got {type(payload).__name__}"
                raise ChallengeFetchError(msg)
            descriptor = ChallengeDescriptor.from_payload(payload)
        except ChallengeFetchError as exc:
            self._log_call("challenge", request_id, start_time, status_code=status_code, error=exc)
            logger.error("challenge_fetch_failed: request_id=%s, error=%s", request_id, exc)
            raise
        except (httpx.HTTPError, ValueError) as exc:
            self._log_call("challenge", request_id, start_time, status_code=status_code, error=exc)
            logger.error("challenge_fetch_failed: request_id=%s, error=%s", request_id, exc)
            raise ChallengeFetchError(f"Challenge request failed: {exc}") from exc

        self._log_call("challenge", request_id, start_time, status_code=status_code)
        return descriptor

    async def chat(self, payload: dict[str, Any], *, token: str, solution: str) -> dict[str, Any]:
        """Send a non-streamed chat completion and return the decoded body.

        Raises:
            UpstreamCallError: On transport failure, non-success status, or a
                body that is not a JSON object.
        """
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        status_code: int | None = None
        try:
            response = await self._client.post(
                self.config.chat_url,
                json=payload,
                headers=self._chat_headers(token, solution),
            )
            status_code = response.status_code
            if response.is_error:
                raise UpstreamCallError(
                    f"Inkeep API error: {response.status_code} {response.reason_phrase} "
                    f"{response.text}",
                    status_code=response.status_code,
                )
            data = response.json()
            if not isinstance(data, dict):
                msg = f"Expected JSON object from chat endpoint, got {type(data).__name__}"
                raise UpstreamCallError(msg, status_code=status_code)
        except UpstreamCallError as exc:
            self._log_call("chat", request_id, start_time, status_code=status_code, error=exc)
            logger.error("upstream_chat_failed: request_id=%s, error=%s", request_id, exc)
            raise
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            self._log_call("chat", request_id, start_time, status_code=status_code, error=exc)
            logger.error("upstream_chat_failed: request_id=%s, error=%s", request_id, exc)
            raise UpstreamCallError(
                f"Inkeep API error: {exc}", status_code=status_code
            ) from exc

        self._log_call("chat", request_id, start_time, status_code=status_code)
        return data

    async def open_chat_stream(
        self, payload: dict[str, Any], *, token: str, solution: str
    ) -> UpstreamStream:
        """Start a streamed chat completion.

        Returns:
            Open stream over the response body. The caller owns it and must
            close it.

        Raises:
            UpstreamCallError: On transport failure or non-success status. The
                response is closed before raising.
        """
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        request = self._client.build_request(
            "POST",
            self.config.chat_url,
            json=payload,
            headers=self._chat_headers(token, solution),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            self._log_call("chat_stream", request_id, start_time, error=exc)
            logger.error("upstream_chat_failed: request_id=%s, error=%s", request_id, exc)
            raise UpstreamCallError(f"Inkeep API error: {exc}") from exc

        if response.is_error:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = ""
            finally:
                await response.aclose()
            error = UpstreamCallError(
                f"Inkeep API error: {response.status_code} {response.reason_phrase} {body}",
                status_code=response.status_code,
            )
            self._log_call(
                "chat_stream", request_id, start_time, status_code=response.status_code, error=error
            )
            logger.error("upstream_chat_failed: request_id=%s, error=%s", request_id, error)
            raise error

        self._log_call("chat_stream", request_id, start_time, status_code=response.status_code)
        return UpstreamStream(response)


__all__ = ["CHALLENGE_SOLUTION_HEADER", "InkeepClient", "UpstreamStream"]
