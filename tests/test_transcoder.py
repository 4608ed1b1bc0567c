"""Tests for the streaming SSE transcoder."""

import pytest

from inkeep_gateway.core.transcoder import (
    DONE_FRAME,
    StreamOutcome,
    StreamState,
    StreamTranscoder,
)
from inkeep_gateway.domain.exceptions import TranscodeError
from tests.helpers import FakeStream, collect, parse_sse, sse_data

CONTENT_HI = {"choices": [{"delta": {"content": "Hi"}}]}
FINISH_STOP = {"choices": [{"finish_reason": "stop"}]}


def transcoder():
    return StreamTranscoder("claude-3-7-sonnet-20250219", response_id="chatcmpl-test", created=1700)


@pytest.mark.asyncio
class TestTranscode:
    async def test_content_finish_done_in_order(self):
        source = FakeStream([sse_data(CONTENT_HI), sse_data(FINISH_STOP), sse_data("[DONE]")])
        events = parse_sse(await collect(transcoder().transcode(source)))

        assert len(events) == 3
        content, terminal, done = events
        assert content == {
            "id": "chatcmpl-test",
            "object": "chat.completion.chunk",
            "created": 1700,
            "model": "claude-3-7-sonnet-20250219",
            "choices": [{"index": 0, "delta": {"content": "Hi"}, "finish_reason": None}],
        }
        assert terminal["choices"] == [{"index": 0, "delta": {}, "finish_reason": "stop"}]
        assert terminal["id"] == content["id"]
        assert done == "[DONE]"

    async def test_done_emitted_when_upstream_sends_none(self):
        body = await collect(transcoder().transcode(FakeStream([sse_data(CONTENT_HI)])))
        assert body.endswith(DONE_FRAME)
        assert body.count(b"[DONE]") == 1

    async def test_done_is_always_last(self):
        source = FakeStream([sse_data("[DONE]"), sse_data(CONTENT_HI)])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events[-1] == "[DONE]"
        assert events.count("[DONE]") == 1

    async def test_malformed_line_dropped(self):
        source = FakeStream([b"data: {not json\n\n", sse_data(CONTENT_HI)])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert [e for e in events if e != "[DONE]"][0]["choices"][0]["delta"] == {"content": "Hi"}
        assert len(events) == 2

    async def test_uninteresting_lines_dropped(self):
        source = FakeStream(
            [
                b": keep-alive comment\n\n",
                b"event: ping\n",
                sse_data({"choices": [{"delta": {"role": "assistant"}}]}),
                sse_data({"choices": [{"delta": {"content": ""}}]}),
                sse_data({"usage": {"total_tokens": 1}}),
            ]
        )
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events == ["[DONE]"]

    async def test_lines_split_across_chunks(self):
        frame = sse_data(CONTENT_HI)
        source = FakeStream([frame[:7], frame[7:20], frame[20:]])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events[0]["choices"][0]["delta"]["content"] == "Hi"

    async def test_multibyte_character_split_across_reads(self):
        frame = sse_data({"choices": [{"delta": {"content": "héllo 🙂"}}]})
        split_at = frame.index("🙂".encode()) + 2
        source = FakeStream([frame[:split_at], frame[split_at:]])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events[0]["choices"][0]["delta"]["content"] == "héllo 🙂"

    async def test_trailing_line_without_newline(self):
        source = FakeStream([b'data: {"choices":[{"delta":{"content":"tail"}}]}'])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events[0]["choices"][0]["delta"]["content"] == "tail"
        assert events[-1] == "[DONE]"

    async def test_crlf_line_endings(self):
        source = FakeStream([b'data: {"choices":[{"delta":{"content":"x"}}]}\r\n\r\n'])
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert events[0]["choices"][0]["delta"]["content"] == "x"

    async def test_read_error_emits_error_frame_without_done(self):
        source = FakeStream([sse_data(CONTENT_HI)], error=ConnectionResetError("peer reset"))
        events = parse_sse(await collect(transcoder().transcode(source)))
        assert len(events) == 2
        assert events[1] == {"error": {"message": "peer reset", "type": "server_error"}}
        assert "[DONE]" not in events
        assert source.closed

    async def test_source_closed_and_state_done_after_normal_end(self):
        source = FakeStream([sse_data(CONTENT_HI)])
        tc = transcoder()
        assert tc.state is StreamState.STREAMING
        await collect(tc.transcode(source))
        assert source.closed
        assert tc.state is StreamState.DONE

    async def test_source_closed_when_consumer_stops(self):
        source = FakeStream([sse_data(CONTENT_HI), sse_data(CONTENT_HI), sse_data(CONTENT_HI)])
        frames = transcoder().transcode(source)
        first = await frames.__anext__()
        assert b"Hi" in first
        await frames.aclose()
        assert source.closed
        assert source.consumed < 3

    async def test_close_before_first_frame_releases_source(self):
        source = FakeStream([sse_data(CONTENT_HI)])
        tc = transcoder()
        frames = tc.transcode(source)
        await frames.aclose()
        assert source.closed
        assert source.consumed == 0
        assert tc.state is StreamState.DONE

    async def test_close_twice_releases_source_once(self):
        closes = []
        source = FakeStream([sse_data(CONTENT_HI)])
        original = source.aclose

        async def counting_close():
            closes.append(1)
            await original()

        source.aclose = counting_close
        frames = transcoder().transcode(source)
        await collect(frames)
        await frames.aclose()
        await frames.aclose()
        assert closes == [1]


@pytest.mark.asyncio
class TestStreamOutcome:
    @staticmethod
    def recorded():
        outcomes = []

        def on_finish(outcome, error):
            outcomes.append((outcome, error))

        tc = StreamTranscoder("m", on_finish=on_finish)
        return tc, outcomes

    async def test_completed_on_normal_end(self):
        tc, outcomes = self.recorded()
        await collect(tc.transcode(FakeStream([sse_data(CONTENT_HI)])))
        assert outcomes == [(StreamOutcome.COMPLETED, None)]

    async def test_failed_on_read_error(self):
        tc, outcomes = self.recorded()
        source = FakeStream([sse_data(CONTENT_HI)], error=ConnectionResetError("peer reset"))
        await collect(tc.transcode(source))
        assert len(outcomes) == 1
        outcome, error = outcomes[0]
        assert outcome is StreamOutcome.FAILED
        assert isinstance(error, TranscodeError)
        assert str(error) == "peer reset"

    async def test_cancelled_when_closed_before_first_frame(self):
        tc, outcomes = self.recorded()
        await tc.transcode(FakeStream([sse_data(CONTENT_HI)])).aclose()
        assert outcomes == [(StreamOutcome.CANCELLED, None)]

    async def test_cancelled_when_closed_mid_stream(self):
        tc, outcomes = self.recorded()
        frames = tc.transcode(FakeStream([sse_data(CONTENT_HI), sse_data(CONTENT_HI)]))
        await frames.__anext__()
        await frames.aclose()
        assert outcomes == [(StreamOutcome.CANCELLED, None)]


class TestTranscodeLine:
    def test_done_returns_none(self):
        assert transcoder().transcode_line("data: [DONE]") is None

    def test_non_data_line(self):
        assert transcoder().transcode_line('{"choices":[]}') is None

    def test_unicode_kept_unescaped(self):
        frame = transcoder().transcode_line('data: {"choices":[{"delta":{"content":"你好"}}]}')
        assert "你好".encode() in frame

    def test_default_ids(self):
        tc = StreamTranscoder("m")
        assert tc.response_id.startswith("chatcmpl-")
        assert isinstance(tc.created, int)
