"""Conversation history normalization and merge.

The upstream rejects ``system`` messages and consecutive turns from the same
role. ``merge_messages`` rewrites ``system`` to ``user`` and collapses runs of
same-role turns into one, without reordering or dropping anything.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from inkeep_gateway.domain.entities import Message, Role
from inkeep_gateway.domain.value_objects import (
    ContentPart,
    TextPart,
    denormalize_content,
    is_single_text,
    normalize_content,
)


def merge_content(
    first: Sequence[ContentPart], second: Sequence[ContentPart]
) -> tuple[ContentPart, ...]:
    """Merge the contents of two same-role turns.

    Two single-text contents are joined into one text with a newline. Anything
    else (images, multi-part content) is concatenated in order.
    """
    if is_single_text(first) and is_single_text(second):
        return (TextPart(text=f"{first[0].text}\n{second[0].text}"),)  # type: ignore[union-attr]
    return (*first, *second)


def _upstream_role(role: Role) -> Role:
    return Role.USER if role is Role.SYSTEM else role


def merge_messages(messages: Iterable[Message]) -> list[Message]:
    """Collapse consecutive same-role messages.

    Args:
        messages: Conversation in order.

    Returns:
        New list where no two adjacent messages share a role and no message
        has the ``system`` role. A merged message whose content ends up as a
        single text part is emitted as a bare string.
    """
    merged: list[Message] = []
    current_role: Role | None = None
    current_parts: tuple[ContentPart, ...] = ()

    for message in messages:
        role = _upstream_role(message.role)
        parts = normalize_content(message.content)

        if current_role is None:
            current_role, current_parts = role, parts
        elif role is current_role:
            current_parts = merge_content(current_parts, parts)
        else:
            merged.append(Message(role=current_role, content=denormalize_content(current_parts)))
            current_role, current_parts = role, parts

    if current_role is not None:
        merged.append(Message(role=current_role, content=denormalize_content(current_parts)))
    return merged


__all__ = ["merge_content", "merge_messages"]
