"""Request/response translation between the OpenAI schema and Inkeep's.

Upstream Quirk:
    The upstream sometimes double-encodes the assistant message: the
    ``content`` string is itself a JSON object with an inner ``content``
    field. ``from_upstream`` unwraps that on a best-effort basis and falls
    back to the raw string when it is not such an envelope.
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from inkeep_gateway.domain.entities import Message, SamplingParams, UpstreamRequest

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 1
DEFAULT_MAX_TOKENS = 2048
DEFAULT_FREQUENCY_PENALTY = 0
DEFAULT_PRESENCE_PENALTY = 0
NO_RESPONSE_CONTENT = "No response"


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def to_upstream(
    conversation: Sequence[Message],
    params: SamplingParams,
    *,
    upstream_model: str,
) -> UpstreamRequest:
    """Wrap a merged conversation with the upstream model and sampling values.

    Args:
        conversation: Already merged conversation. Not modified.
        params: Caller-supplied parameters; None fields take defaults.
        upstream_model: Model identifier resolved from the mapping table.
    """
    return UpstreamRequest(
        model=upstream_model,
        messages=tuple(conversation),
        temperature=_or_default(params.temperature, DEFAULT_TEMPERATURE),
        top_p=_or_default(params.top_p, DEFAULT_TOP_P),
        max_tokens=_or_default(params.max_tokens, DEFAULT_MAX_TOKENS),
        frequency_penalty=_or_default(params.frequency_penalty, DEFAULT_FREQUENCY_PENALTY),
        presence_penalty=_or_default(params.presence_penalty, DEFAULT_PRESENCE_PENALTY),
        stream=bool(params.stream),
    )


def first_choice(payload: Any) -> Mapping[str, Any] | None:
    """Return ``payload["choices"][0]`` if it is a mapping, else None."""
    if not isinstance(payload, Mapping):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    return choice if isinstance(choice, Mapping) else None


def unwrap_content(raw: str) -> str:
    """Return the inner ``content`` of a JSON-encoded envelope, else ``raw``."""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(parsed, Mapping):
        inner = parsed.get("content")
        if inner:
            return inner if isinstance(inner, str) else json.dumps(inner)
    return raw


def _usage_count(usage: Any, key: str) -> int:
    if not isinstance(usage, Mapping):
        return 0
    value = usage.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def from_upstream(response: Mapping[str, Any], caller_model: str) -> dict[str, Any]:
    """Convert an upstream non-streamed response to an OpenAI chat completion.

    Args:
        response: Decoded upstream JSON body.
        caller_model: Model name the caller asked for, echoed back.
    """
    choice = first_choice(response) or {}
    message = choice.get("message")
    raw_content = message.get("content") if isinstance(message, Mapping) else None

    if isinstance(raw_content, str) and raw_content:
        content = unwrap_content(raw_content)
    else:
        content = NO_RESPONSE_CONTENT

    usage = response.get("usage")
    return {
        "id": new_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": caller_model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": choice.get("finish_reason") or "stop",
            }
        ],
        "usage": {
            "prompt_tokens": _usage_count(usage, "prompt_tokens"),
            "completion_tokens": _usage_count(usage, "completion_tokens"),
            "total_tokens": _usage_count(usage, "total_tokens"),
        },
    }


__all__ = [
    "DEFAULT_FREQUENCY_PENALTY",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_PRESENCE_PENALTY",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_TOP_P",
    "NO_RESPONSE_CONTENT",
    "first_choice",
    "from_upstream",
    "new_completion_id",
    "to_upstream",
    "unwrap_content",
]
