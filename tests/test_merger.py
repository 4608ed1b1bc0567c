"""Tests for conversation merging and content normalization."""

import pytest

from inkeep_gateway.core.merger import merge_content, merge_messages
from inkeep_gateway.domain.entities import Message, Role
from inkeep_gateway.domain.value_objects import (
    ImagePart,
    TextPart,
    denormalize_content,
    normalize_content,
)

IMAGE = ImagePart(url="https://example.com/cat.png")


def user(content):
    return Message(role=Role.USER, content=content)


def assistant(content):
    return Message(role=Role.ASSISTANT, content=content)


def system(content):
    return Message(role=Role.SYSTEM, content=content)


class TestMergeMessages:
    def test_empty(self):
        assert merge_messages([]) == []

    def test_single_message_unchanged(self):
        assert merge_messages([user("Hi")]) == [user("Hi")]

    def test_single_system_becomes_user(self):
        assert merge_messages([system("Be brief")]) == [user("Be brief")]

    def test_same_role_texts_joined_with_newline(self):
        assert merge_messages([user("a"), user("b")]) == [user("a\nb")]

    def test_hi_there(self):
        merged = merge_messages([user("Hi"), user("there")])
        assert merged == [user("Hi\nthere")]
        assert merged[0].to_wire() == {"role": "user", "content": "Hi\nthere"}

    def test_system_merges_into_following_user(self):
        merged = merge_messages([system("rules"), user("question")])
        assert merged == [user("rules\nquestion")]

    def test_alternating_roles_kept(self):
        messages = [user("q1"), assistant("a1"), user("q2")]
        assert merge_messages(messages) == messages

    def test_runs_collapse_in_order(self):
        merged = merge_messages(
            [user("1"), user("2"), assistant("3"), assistant("4"), user("5")]
        )
        assert merged == [user("1\n2"), assistant("3\n4"), user("5")]

    def test_no_adjacent_same_role_and_no_system(self):
        merged = merge_messages(
            [system("s"), system("t"), user("u"), assistant("a"), system("x"), user("y")]
        )
        assert all(m.role is not Role.SYSTEM for m in merged)
        assert all(a.role is not b.role for a, b in zip(merged, merged[1:], strict=False))

    def test_image_parts_concatenated_in_order(self):
        first = user((TextPart("look"), IMAGE))
        second = user("what is it?")
        merged = merge_messages([first, second])
        assert merged == [user((TextPart("look"), IMAGE, TextPart("what is it?")))]

    def test_image_only_message_kept_as_parts(self):
        merged = merge_messages([user((IMAGE,))])
        assert merged == [user((IMAGE,))]

    def test_single_text_part_list_collapses_to_string(self):
        assert merge_messages([user((TextPart("hello"),))]) == [user("hello")]

    def test_input_not_modified(self):
        messages = [user("a"), user("b")]
        merge_messages(messages)
        assert messages == [user("a"), user("b")]


class TestMergeContent:
    def test_two_single_texts(self):
        assert merge_content((TextPart("a"),), (TextPart("b"),)) == (TextPart("a\nb"),)

    def test_multi_part_text_is_concatenated(self):
        first = (TextPart("a"), TextPart("b"))
        second = (TextPart("c"),)
        assert merge_content(first, second) == (TextPart("a"), TextPart("b"), TextPart("c"))

    def test_image_is_concatenated(self):
        assert merge_content((TextPart("a"),), (IMAGE,)) == (TextPart("a"), IMAGE)


class TestNormalization:
    @pytest.mark.parametrize("text", ["", "plain", "multi\nline", "ünïcødé 🙂"])
    def test_string_round_trip(self, text):
        assert denormalize_content(normalize_content(text)) == text

    def test_parts_kept_as_tuple(self):
        parts = (TextPart("a"), IMAGE)
        assert denormalize_content(normalize_content(parts)) == parts

    def test_image_part_wire_form(self):
        assert ImagePart(url="u", detail="low").to_dict() == {
            "type": "image_url",
            "image_url": {"url": "u", "detail": "low"},
        }
        assert IMAGE.to_dict() == {"type": "image_url", "image_url": {"url": IMAGE.url}}
