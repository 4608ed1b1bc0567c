"""Value objects for message content.

Message content arrives in two wire forms: a bare string, or a list of typed
parts. Inside the gateway it is always a tuple of ``ContentPart`` values; the
conversion happens exactly once in each direction through
``normalize_content`` and ``denormalize_content``.

Design Principles:
    - Immutability: All value objects are frozen dataclasses (slots=True)
    - Tagged union: ``ContentPart`` is ``TextPart | ImagePart``
    - Boundary conversion: Runtime type checks live only in normalize()
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias


@dataclass(slots=True, frozen=True)
class TextPart:
    """A text fragment of message content."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(slots=True, frozen=True)
class ImagePart:
    """A reference to an image by URL (http(s) or data URL).

    Attributes:
        url: Image location.
        detail: Optional fidelity hint ("low", "high", "auto"). Omitted from
            the wire form when None.
    """

    url: str
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        image_url: dict[str, Any] = {"url": self.url}
        if self.detail is not None:
            image_url["detail"] = self.detail
        return {"type": "image_url", "image_url": image_url}


ContentPart: TypeAlias = TextPart | ImagePart
Content: TypeAlias = str | tuple[ContentPart, ...]


def normalize_content(content: str | Sequence[ContentPart]) -> tuple[ContentPart, ...]:
    """Convert either content form to a tuple of parts.

    A bare string becomes a single ``TextPart``; a part sequence is copied
    into a tuple unchanged.
    """
    if isinstance(content, str):
        return (TextPart(text=content),)
    return tuple(content)


def is_single_text(parts: Sequence[ContentPart]) -> bool:
    """Whether ``parts`` is exactly one text part."""
    return len(parts) == 1 and isinstance(parts[0], TextPart)


def denormalize_content(parts: Sequence[ContentPart]) -> Content:
    """Collapse a single text part back to a bare string.

    Any other shape (several parts, or an image) is kept as a tuple.
    """
    if is_single_text(parts):
        return parts[0].text  # type: ignore[union-attr]
    return tuple(parts)


def content_to_wire(content: Content) -> str | list[dict[str, Any]]:
    """Serialize content for a JSON request body."""
    if isinstance(content, str):
        return content
    return [part.to_dict() for part in content]


__all__ = [
    "Content",
    "ContentPart",
    "ImagePart",
    "TextPart",
    "content_to_wire",
    "denormalize_content",
    "is_single_text",
    "normalize_content",
]
