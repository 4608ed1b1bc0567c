"""Domain layer for the Inkeep Gateway.

This package contains pure domain models, value objects, and exceptions with
no dependencies on frameworks, infrastructure, or external libraries.
"""

from inkeep_gateway.domain.entities import (
    ChallengeDescriptor,
    Message,
    Role,
    SamplingParams,
    UpstreamRequest,
)
from inkeep_gateway.domain.exceptions import (
    ChallengeFetchError,
    ChallengeUnsolvableError,
    GatewayError,
    InvalidRequestError,
    NoTokensAvailableError,
    TranscodeError,
    UnsupportedAlgorithmError,
    UpstreamCallError,
)
from inkeep_gateway.domain.value_objects import (
    Content,
    ContentPart,
    ImagePart,
    TextPart,
    denormalize_content,
    normalize_content,
)

__all__ = [
    "ChallengeDescriptor",
    "ChallengeFetchError",
    "ChallengeUnsolvableError",
    "Content",
    "ContentPart",
    "GatewayError",
    "ImagePart",
    "InvalidRequestError",
    "Message",
    "NoTokensAvailableError",
    "Role",
    "SamplingParams",
    "TextPart",
    "TranscodeError",
    "UnsupportedAlgorithmError",
    "UpstreamCallError",
    "UpstreamRequest",
    "denormalize_content",
    "normalize_content",
]
