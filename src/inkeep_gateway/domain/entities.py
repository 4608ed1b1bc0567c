"""Domain entities for the Inkeep Gateway.

This module defines pure domain models for conversations, proof-of-work
challenges and upstream requests. Entities have no I/O and no framework
dependencies.

Key Entities:
    - Role: Conversation roles accepted from callers
    - Message: One conversation turn
    - ChallengeDescriptor: Proof-of-work puzzle issued by the upstream
    - SamplingParams: Caller-supplied generation parameters (all optional)
    - UpstreamRequest: Fully resolved request body for the upstream chat API
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from inkeep_gateway.domain.value_objects import Content, content_to_wire

CHALLENGE_REQUIRED_FIELDS = ("algorithm", "challenge", "maxnumber", "salt")
"""Fields every challenge descriptor must carry."""


class Role(StrEnum):
    """Conversation roles accepted from callers."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True, frozen=True)
class Message:
    """One conversation turn.

    Attributes:
        role: Speaker role.
        content: Bare string, or a tuple of content parts.
    """

    role: Role
    content: Content

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": content_to_wire(self.content)}


@dataclass(slots=True, frozen=True)
class ChallengeDescriptor:
    """Proof-of-work challenge as issued by the upstream.

    Attributes:
        algorithm: Hash algorithm name as sent by the server (e.g. "SHA-256").
        challenge: Target digest, hex encoded.
        maxnumber: Inclusive upper bound of the search range.
        salt: String prepended to the candidate number before hashing.
        raw: The complete payload as received. Fields beyond the four above
            (such as a server signature) are echoed back in the solution.

    Raises:
        ValueError: If maxnumber is negative.
    """

    algorithm: str
    challenge: str
    maxnumber: int
    salt: str
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.maxnumber < 0:
            raise ValueError("maxnumber must be non-negative")
        # Freeze a private copy so the descriptor cannot change after fetch.
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ChallengeDescriptor:
        """Build a descriptor from a decoded challenge response body.

        Raises:
            ValueError: If a required field is missing or has the wrong type.
        """
        missing = [name for name in CHALLENGE_REQUIRED_FIELDS if name not in payload]
        if missing:
            raise ValueError(f"Challenge payload missing fields: {', '.join(missing)}")

        maxnumber = payload["maxnumber"]
        if isinstance(maxnumber, bool) or not isinstance(maxnumber, int):
            raise ValueError("Challenge 'maxnumber' must be an integer")
        for name in ("algorithm", "challenge", "salt"):
            if not isinstance(payload[name], str):
                raise ValueError(f"Challenge '{name}' must be a string")

        return cls(
            algorithm=payload["algorithm"],
            challenge=payload["challenge"],
            maxnumber=maxnumber,
            salt=payload["salt"],
            raw=payload,
        )

    def solution_payload(self, number: int) -> dict[str, Any]:
        """Merge the solved number with the descriptor fields, number first."""
        base = dict(self.raw) if self.raw else {
            "algorithm": self.algorithm,
            "challenge": self.challenge,
            "maxnumber": self.maxnumber,
            "salt": self.salt,
        }
        return {"number": number, **base}


@dataclass(slots=True, frozen=True)
class SamplingParams:
    """Caller-supplied sampling parameters. None means "not supplied"."""

    model: str | None = None
    stream: bool | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


@dataclass(slots=True, frozen=True)
class UpstreamRequest:
    """Resolved request for the upstream chat endpoint."""

    model: str
    messages: tuple[Message, ...]
    temperature: float
    top_p: float
    max_tokens: int
    frequency_penalty: float
    presence_penalty: float
    stream: bool

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [message.to_wire() for message in self.messages],
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            "stream": self.stream,
        }


__all__ = [
    "CHALLENGE_REQUIRED_FIELDS",
    "ChallengeDescriptor",
    "Message",
    "Role",
    "SamplingParams",
    "UpstreamRequest",
]
