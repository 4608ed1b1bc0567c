"""Streaming response transcoder.

Re-frames the upstream's Server-Sent Events body into OpenAI
``chat.completion.chunk`` events. The transcoder is a pure byte-to-byte
re-framer: it pulls raw bytes from an async source and yields encoded SSE
frames, one line at a time.

Protocol:
    Input and output are both ``data: <json>\\n\\n`` frames. Only lines that
    start with ``data: `` are considered; everything else is ignored.

Frame Policy:
    - Non-empty ``choices[0].delta.content`` -> content chunk
    - Otherwise a ``choices[0].finish_reason`` -> terminal chunk
    - Anything else, including JSON that fails to parse -> dropped silently
    - ``[DONE]`` from upstream is not forwarded in place; exactly one
      ``[DONE]`` frame is emitted as the last frame on normal close
    - A read error emits one error frame and ends the stream without ``[DONE]``

Resource Handling:
    ``transcode`` returns a ``FrameStream`` that owns the source. The source
    is closed when the stream ends or fails, or when the consumer closes the
    stream, even before the first frame was pulled. The optional
    ``on_finish`` callback then receives the outcome (completed, failed or
    cancelled).
"""

from __future__ import annotations

import codecs
import json
import logging
import time
from collections.abc import AsyncGenerator, AsyncIterable, Awaitable, Callable
from enum import StrEnum
from typing import Any, TypeAlias

from inkeep_gateway.core.translator import first_choice, new_completion_id
from inkeep_gateway.domain.exceptions import TranscodeError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
DONE_FRAME = b"data: [DONE]\n\n"


class StreamState(StrEnum):
    STREAMING = "streaming"
    DONE = "done"


class StreamOutcome(StrEnum):
    """How one transcoded stream ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


StreamFinishCallback: TypeAlias = Callable[[StreamOutcome, Exception | None], None]


def encode_frame(payload: dict[str, Any]) -> bytes:
    """Encode one SSE ``data:`` frame."""
    return f"{DATA_PREFIX}{json.dumps(payload, ensure_ascii=False)}\n\n".encode()


def error_frame(message: str) -> bytes:
    return encode_frame({"error": {"message": message, "type": "server_error"}})


class StreamTranscoder:
    """Converts one upstream SSE response into OpenAI chunk frames.

    All chunks produced by one instance share ``response_id`` and ``created``.

    Attributes:
        model: Caller-facing model name echoed in every chunk.
        response_id: Stable ``chatcmpl-`` identifier for this response.
        created: UNIX timestamp shared by all chunks.
        state: STREAMING until the output stream has been closed.
        on_finish: Called once with the outcome when the stream ends.
    """

    __slots__ = ("created", "model", "on_finish", "response_id", "state")

    def __init__(
        self,
        model: str,
        *,
        response_id: str | None = None,
        created: int | None = None,
        on_finish: StreamFinishCallback | None = None,
    ) -> None:
        self.model = model
        self.response_id = response_id or new_completion_id()
        self.created = created if created is not None else int(time.time())
        self.state = StreamState.STREAMING
        self.on_finish = on_finish

    def _chunk(self, delta: dict[str, Any], finish_reason: str | None) -> dict[str, Any]:
        return {
            "id": self.response_id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }

    def transcode_line(self, line: str) -> bytes | None:
        """Translate one upstream line; None means nothing to emit.

        ``[DONE]`` also returns None because it is emitted once at close.
        """
        stripped = line.strip()
        if not stripped.startswith(DATA_PREFIX):
            return None
        data = stripped[len(DATA_PREFIX) :]
        if data == DONE_SENTINEL:
            return None

        try:
            payload = json.loads(data)
        except ValueError:
            logger.debug("stream_line_dropped: reason=invalid_json, line=%r", data[:200])
            return None

        choice = first_choice(payload)
        if choice is None:
            return None

        delta = choice.get("delta")
        content = delta.get("content") if isinstance(delta, dict) else None
        if isinstance(content, str) and content:
            return encode_frame(self._chunk({"content": content}, None))

        finish_reason = choice.get("finish_reason")
        if finish_reason:
            return encode_frame(self._chunk({}, finish_reason))
        return None

    def transcode(self, source: AsyncIterable[bytes]) -> FrameStream:
        """Return the caller-schema SSE frames for an upstream SSE byte stream.

        Args:
            source: Upstream response body as raw byte chunks. Closed (if it
                has ``aclose``) when the returned stream finishes or is closed,
                including when it is closed before the first frame is pulled.

        Returns:
            Async iterator of encoded SSE frames, ending with ``data: [DONE]``
            on normal close, or with a single error frame if reading the
            source fails.
        """
        return FrameStream(self, source)

    async def _frames(
        self,
        source: AsyncIterable[bytes],
        finish: Callable[[StreamOutcome, Exception | None], Awaitable[None]],
    ) -> AsyncGenerator[bytes, None]:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        outcome = StreamOutcome.CANCELLED
        error: Exception | None = None
        try:
            try:
                async for chunk in source:
                    buffer += decoder.decode(chunk)
                    *lines, buffer = buffer.split("\n")
                    for line in lines:
                        frame = self.transcode_line(line)
                        if frame is not None:
                            yield frame
                buffer += decoder.decode(b"", final=True)
            except Exception as exc:
                error = TranscodeError(str(exc) or type(exc).__name__)
                outcome = StreamOutcome.FAILED
                logger.error(
                    "stream_transcode_error: response_id=%s, error_type=%s, error=%s",
                    self.response_id,
                    type(exc).__name__,
                    error,
                )
                yield error_frame(str(error))
                return

            if buffer:
                frame = self.transcode_line(buffer)
                if frame is not None:
                    yield frame
            outcome = StreamOutcome.COMPLETED
            yield DONE_FRAME
        finally:
            await finish(outcome, error)


class FrameStream:
    """Transcoded frames of one response. Owns the upstream source.

    The source is released exactly once: when the frames run out, when
    reading fails, or when ``aclose`` is called. ``aclose`` works whether or
    not iteration has started.
    """

    __slots__ = ("_finished", "_frames", "_source", "_transcoder")

    def __init__(self, transcoder: StreamTranscoder, source: AsyncIterable[bytes]) -> None:
        self._transcoder = transcoder
        self._source = source
        self._finished = False
        self._frames = transcoder._frames(source, self._finish)

    def __aiter__(self) -> FrameStream:
        return self

    async def __anext__(self) -> bytes:
        return await self._frames.__anext__()

    async def aclose(self) -> None:
        try:
            await self._frames.aclose()
        finally:
            await self._finish(StreamOutcome.CANCELLED, None)

    async def _finish(self, outcome: StreamOutcome, error: Exception | None) -> None:
        if self._finished:
            return
        self._finished = True
        self._transcoder.state = StreamState.DONE
        try:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._transcoder.on_finish is not None:
                self._transcoder.on_finish(outcome, error)


__all__ = [
    "DONE_FRAME",
    "FrameStream",
    "StreamFinishCallback",
    "StreamOutcome",
    "StreamState",
    "StreamTranscoder",
    "encode_frame",
    "error_frame",
]
