"""Request and response models for the REST API.

This module defines Pydantic v2 models for the OpenAI-compatible surface of
the gateway.

Key Behaviors:
    - Request models allow extra fields, since OpenAI clients routinely send
      parameters (``n``, ``user``, ``stop``...) the upstream does not use
    - Content parts are a discriminated union on ``type``
    - Numeric sampling fields carry range constraints
    - Response models mirror the OpenAI list/model and error envelopes

Key Models:
    - Request Models: ChatCompletionRequest, ChatMessage, TextPartModel,
      ImagePartModel
    - Response Models: ModelListResponse, ModelCard, ModelPermission,
      HealthResponse, ErrorResponse
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Request Models
# ============================================================================


class ImageURL(BaseModel):
    """Image location inside an ``image_url`` content part."""

    model_config = ConfigDict(extra="allow")

    url: str = Field(..., description="http(s) or data URL of the image")
    detail: str | None = Field(None, description="Fidelity hint (low, high, auto)")


class TextPartModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["text"]
    text: str


class ImagePartModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["image_url"]
    image_url: ImageURL | str


ContentPartModel = Annotated[TextPartModel | ImagePartModel, Field(discriminator="type")]


class ChatMessage(BaseModel):
    """One OpenAI chat message.

    Attributes:
        role: Speaker role.
        content: Bare string or list of typed content parts.
    """

    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"] = Field(..., description="Message role")
    content: str | list[ContentPartModel] = Field(..., description="Message content")


class ChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request.

    Attributes:
        messages: Conversation, oldest first. Must not be empty.
        model: Caller-facing model name. Defaults to the configured caller
            model when omitted.
        stream: Whether to stream the response as SSE.
        temperature: Sampling temperature. Upstream default when omitted.
        top_p: Nucleus sampling parameter.
        max_tokens: Maximum tokens to generate.
        frequency_penalty: Frequency penalty.
        presence_penalty: Presence penalty.
    """

    model_config = ConfigDict(extra="allow")

    messages: list[ChatMessage] = Field(..., description="Conversation messages")
    model: str | None = Field(None, description="Model name")
    stream: bool = Field(False, description="Whether to stream the response")
    temperature: float | None = Field(None, ge=0.0, le=2.0, description="Sampling temperature")
    top_p: float | None = Field(None, ge=0.0, le=1.0, description="Top-p sampling parameter")
    max_tokens: int | None = Field(None, ge=1, description="Maximum tokens to generate")
    frequency_penalty: float | None = Field(
        None, ge=-2.0, le=2.0, description="Frequency penalty"
    )
    presence_penalty: float | None = Field(None, ge=-2.0, le=2.0, description="Presence penalty")


# ============================================================================
# Response Models
# ============================================================================


def _permission_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "modelperm-" + "".join(secrets.choice(alphabet) for _ in range(9))


class ModelPermission(BaseModel):
    id: str = Field(default_factory=_permission_id)
    object: Literal["model_permission"] = "model_permission"
    created: int = Field(default_factory=lambda: int(time.time()))
    allow_create_engine: bool = False
    allow_sampling: bool = True
    allow_logprobs: bool = True
    allow_search_indices: bool = False
    allow_view: bool = True
    allow_fine_tuning: bool = False
    organization: str = "*"
    group: str | None = None
    is_blocking: bool = False


class ModelCard(BaseModel):
    """One entry of the ``/v1/models`` listing."""

    id: str
    object: Literal["model"] = "model"
    created: int = Field(default_factory=lambda: int(time.time()))
    owned_by: str = "inkeep"
    permission: list[ModelPermission] = Field(default_factory=lambda: [ModelPermission()])
    root: str
    parent: str | None = None

    @classmethod
    def for_model(cls, model_id: str) -> ModelCard:
        return cls(id=model_id, root=model_id)


class ModelListResponse(BaseModel):
    object: Literal["list"] = "list"
    data: list[ModelCard]


class HealthResponse(BaseModel):
    """Response model for the health endpoint.

    Attributes:
        status: Always "ok" while the process is serving.
        timestamp: ISO 8601 UTC time of the check.
        models: Number of caller-facing models in the mapping table.
        service: Service name.
    """

    status: str = Field("ok", description="Service status")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    models: int = Field(..., ge=0, description="Number of mapped models")
    service: str = Field("Inkeep API Proxy", description="Service name")


class MetricsResponse(BaseModel):
    """Aggregated in-memory request metrics."""

    total_requests: int = Field(..., ge=0)
    successful_requests: int = Field(..., ge=0)
    failed_requests: int = Field(..., ge=0)
    requests_by_model: dict[str, int] = Field(default_factory=dict)
    requests_by_operation: dict[str, int] = Field(default_factory=dict)
    errors_by_type: dict[str, int] = Field(default_factory=dict)
    average_latency_ms: float = Field(..., ge=0.0)
    p50_latency_ms: float = Field(..., ge=0.0)
    p95_latency_ms: float = Field(..., ge=0.0)
    p99_latency_ms: float = Field(..., ge=0.0)
    first_request_time: str | None = None
    last_request_time: str | None = None


class ErrorDetail(BaseModel):
    message: str
    type: str
    code: str


class ErrorResponse(BaseModel):
    """OpenAI error envelope: ``{"error": {"message", "type", "code"}}``."""

    model_config = ConfigDict(extra="forbid")

    error: ErrorDetail


# ============================================================================
# Request Context
# ============================================================================


@dataclass(slots=True, frozen=True)
class RequestContext:
    """Context for tracking API requests.

    Attributes:
        request_id: Unique request identifier (UUID string).
        client_ip: Client IP address extracted from request.
        user_agent: User-Agent header value. None if not present.
    """

    request_id: str
    client_ip: str
    user_agent: str | None = None


__all__ = [
    "ChatCompletionRequest",
    "ChatMessage",
    "ContentPartModel",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "ImagePartModel",
    "ImageURL",
    "MetricsResponse",
    "ModelCard",
    "ModelListResponse",
    "ModelPermission",
    "RequestContext",
    "TextPartModel",
]
