"""Tests for request/response translation."""

import json

from inkeep_gateway.core.translator import (
    NO_RESPONSE_CONTENT,
    first_choice,
    from_upstream,
    new_completion_id,
    to_upstream,
    unwrap_content,
)
from inkeep_gateway.domain.entities import Message, Role, SamplingParams

CONVERSATION = [Message(role=Role.USER, content="Hi")]


class TestToUpstream:
    def test_defaults(self):
        request = to_upstream(CONVERSATION, SamplingParams(), upstream_model="inkeep-context-expert")
        assert request.to_payload() == {
            "model": "inkeep-context-expert",
            "messages": [{"role": "user", "content": "Hi"}],
            "temperature": 0.7,
            "top_p": 1,
            "max_tokens": 2048,
            "frequency_penalty": 0,
            "presence_penalty": 0,
            "stream": False,
        }

    def test_caller_values_win(self):
        params = SamplingParams(
            temperature=1.2,
            top_p=0.5,
            max_tokens=10,
            frequency_penalty=0.3,
            presence_penalty=-0.4,
            stream=True,
        )
        payload = to_upstream(CONVERSATION, params, upstream_model="m").to_payload()
        assert payload["temperature"] == 1.2
        assert payload["top_p"] == 0.5
        assert payload["max_tokens"] == 10
        assert payload["frequency_penalty"] == 0.3
        assert payload["presence_penalty"] == -0.4
        assert payload["stream"] is True

    def test_explicit_zero_is_kept(self):
        params = SamplingParams(temperature=0.0, top_p=0.0)
        payload = to_upstream(CONVERSATION, params, upstream_model="m").to_payload()
        assert payload["temperature"] == 0.0
        assert payload["top_p"] == 0.0

    def test_conversation_not_modified(self):
        conversation = list(CONVERSATION)
        to_upstream(conversation, SamplingParams(), upstream_model="m")
        assert conversation == CONVERSATION

    def test_model_mapping(self, inkeep_config):
        assert inkeep_config.resolve_model("claude-3-7-sonnet-20250219") == "inkeep-context-expert"
        assert inkeep_config.resolve_model("gpt-4o") == "inkeep-context-expert"


class TestUnwrapContent:
    def test_json_envelope_unwrapped(self):
        assert unwrap_content(json.dumps({"content": "inner"})) == "inner"

    def test_plain_text_kept(self):
        assert unwrap_content("just text") == "just text"

    def test_envelope_without_content_kept(self):
        raw = json.dumps({"other": 1})
        assert unwrap_content(raw) == raw

    def test_empty_inner_content_kept(self):
        raw = json.dumps({"content": ""})
        assert unwrap_content(raw) == raw

    def test_non_object_json_kept(self):
        assert unwrap_content("42") == "42"
        assert unwrap_content('["a"]') == '["a"]'


class TestFromUpstream:
    def test_basic_response(self):
        response = {
            "choices": [{"message": {"content": "Hello!"}, "finish_reason": "length"}],
            "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
        }
        result = from_upstream(response, "claude-3-7-sonnet-20250219")
        assert result["object"] == "chat.completion"
        assert result["model"] == "claude-3-7-sonnet-20250219"
        assert result["id"].startswith("chatcmpl-")
        assert isinstance(result["created"], int)
        assert result["choices"] == [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello!"},
                "finish_reason": "length",
            }
        ]
        assert result["usage"] == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}

    def test_double_encoded_content(self):
        response = {"choices": [{"message": {"content": json.dumps({"content": "Unwrapped"})}}]}
        assert from_upstream(response, "m")["choices"][0]["message"]["content"] == "Unwrapped"

    def test_defaults_when_fields_missing(self):
        result = from_upstream({}, "m")
        assert result["choices"][0]["message"]["content"] == NO_RESPONSE_CONTENT
        assert result["choices"][0]["finish_reason"] == "stop"
        assert result["usage"] == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def test_partial_usage(self):
        response = {"choices": [{"message": {"content": "x"}}], "usage": {"prompt_tokens": 7}}
        usage = from_upstream(response, "m")["usage"]
        assert usage == {"prompt_tokens": 7, "completion_tokens": 0, "total_tokens": 0}


class TestHelpers:
    def test_first_choice(self):
        assert first_choice({"choices": [{"a": 1}]}) == {"a": 1}
        assert first_choice({"choices": []}) is None
        assert first_choice({"choices": ["x"]}) is None
        assert first_choice([1, 2]) is None

    def test_completion_ids_are_unique(self):
        ids = {new_completion_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("chatcmpl-") for i in ids)
