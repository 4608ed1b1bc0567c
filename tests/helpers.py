"""Reusable test utilities and fakes for Inkeep Gateway tests."""

from __future__ import annotations

import hashlib
import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

from fastapi import FastAPI

from inkeep_gateway.api.dependencies import get_app_settings, get_chat_use_case
from inkeep_gateway.core.config import Settings
from inkeep_gateway.domain.entities import ChallengeDescriptor


def make_challenge_payload(
    number: int,
    *,
    salt: str = "salt-7f3a",
    algorithm: str = "SHA-256",
    maxnumber: int = 5_000,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a challenge body whose answer is ``number``."""
    hash_name = algorithm.lower().replace("-", "")
    challenge = hashlib.new(hash_name, f"{salt}{number}".encode()).hexdigest()
    payload: dict[str, Any] = {
        "algorithm": algorithm,
        "challenge": challenge,
        "maxnumber": maxnumber,
        "salt": salt,
    }
    if extra:
        payload.update(extra)
    return payload


def make_descriptor(number: int, **kwargs: Any) -> ChallengeDescriptor:
    return ChallengeDescriptor.from_payload(make_challenge_payload(number, **kwargs))


def sse_data(payload: dict[str, Any] | str) -> bytes:
    """Encode one upstream SSE line."""
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n\n".encode()


def parse_sse(body: bytes) -> list[Any]:
    """Split an SSE body into decoded ``data:`` payloads ("[DONE]" stays a string)."""
    events: list[Any] = []
    for block in body.decode("utf-8").split("\n\n"):
        if not block.startswith("data: "):
            continue
        data = block[len("data: ") :]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


async def collect(iterator: AsyncIterator[bytes]) -> bytes:
    return b"".join([chunk async for chunk in iterator])


class FakeStream:
    """Upstream byte stream that records whether it was closed."""

    def __init__(self, chunks: Iterable[bytes], error: Exception | None = None) -> None:
        self._chunks = list(chunks)
        self._error = error
        self.closed = False
        self.consumed = 0

    async def _iterate(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            self.consumed += 1
            yield chunk
        if self._error is not None:
            raise self._error

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def aclose(self) -> None:
        self.closed = True


class FakeSolver:
    def __init__(self, token: str = "solution-token", error: Exception | None = None) -> None:
        self.token = token
        self.error = error
        self.calls = 0

    async def fetch_and_solve(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


class FakeUpstreamClient:
    """Records upstream calls and replays canned responses."""

    def __init__(
        self,
        response: dict[str, Any] | None = None,
        stream: FakeStream | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response = response or {}
        self.stream = stream
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def chat(self, payload: dict[str, Any], *, token: str, solution: str) -> dict[str, Any]:
        self.calls.append({"payload": payload, "token": token, "solution": solution})
        if self.error is not None:
            raise self.error
        return self.response

    async def open_chat_stream(
        self, payload: dict[str, Any], *, token: str, solution: str
    ) -> FakeStream:
        self.calls.append({"payload": payload, "token": token, "solution": solution})
        if self.error is not None:
            raise self.error
        assert self.stream is not None
        return self.stream


class RecordingLogger:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def log_request(self, data: dict[str, Any]) -> None:
        self.events.append(data)


class RecordingMetrics:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []

    def record_request(
        self,
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        self.records.append(
            {
                "model": model,
                "operation": operation,
                "latency_ms": latency_ms,
                "success": success,
                "error": error,
            }
        )


def setup_dependency_overrides(
    app: FastAPI, chat_use_case: Any, settings: Settings | None = None
) -> None:
    """Point the app's dependencies at test doubles."""
    app.dependency_overrides[get_chat_use_case] = lambda: chat_use_case
    if settings is not None:
        app.dependency_overrides[get_app_settings] = lambda: settings


def cleanup_dependency_overrides(app: FastAPI) -> None:
    app.dependency_overrides.clear()


def assert_error_envelope(response: Any, status_code: int, error_type: str, code: str) -> dict:
    """Assert an OpenAI error envelope and return its ``error`` object."""
    assert response.status_code == status_code
    error = response.json()["error"]
    assert error["type"] == error_type
    assert error["code"] == code
    assert isinstance(error["message"], str)
    return error
