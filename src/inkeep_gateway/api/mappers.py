"""Mappers between API models and domain entities.

Design Principles:
    - Unidirectional: API -> Domain for requests
    - Isolated: All mapping logic centralized in this module
    - Content shape preserved: a bare string stays a string, a part list
      becomes a tuple of domain content parts
"""

from __future__ import annotations

from inkeep_gateway.api.models import (
    ChatCompletionRequest,
    ChatMessage as APIChatMessage,
    ContentPartModel,
    ImagePartModel,
    TextPartModel,
)
from inkeep_gateway.domain.entities import Message, Role, SamplingParams
from inkeep_gateway.domain.value_objects import Content, ContentPart, ImagePart, TextPart


def api_to_domain_part(part: ContentPartModel) -> ContentPart:
    """Convert one API content part to its domain value object."""
    match part:
        case TextPartModel(text=text):
            return TextPart(text=text)
        case ImagePartModel(image_url=str() as url):
            return ImagePart(url=url)
        case ImagePartModel(image_url=image_url):
            return ImagePart(url=image_url.url, detail=image_url.detail)
        case _:
            raise TypeError(f"Unsupported content part: {type(part).__name__}")


def api_to_domain_message(message: APIChatMessage) -> Message:
    content: Content
    if isinstance(message.content, str):
        content = message.content
    else:
        content = tuple(api_to_domain_part(part) for part in message.content)
    return Message(role=Role(message.role), content=content)


def api_to_domain_messages(api_req: ChatCompletionRequest) -> list[Message]:
    return [api_to_domain_message(message) for message in api_req.messages]


def api_to_domain_params(api_req: ChatCompletionRequest) -> SamplingParams:
    """Extract sampling parameters; omitted fields stay None."""
    return SamplingParams(
        model=api_req.model,
        stream=api_req.stream,
        temperature=api_req.temperature,
        top_p=api_req.top_p,
        max_tokens=api_req.max_tokens,
        frequency_penalty=api_req.frequency_penalty,
        presence_penalty=api_req.presence_penalty,
    )


__all__ = [
    "api_to_domain_message",
    "api_to_domain_messages",
    "api_to_domain_params",
    "api_to_domain_part",
]
