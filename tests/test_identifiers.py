from __future__ import annotations

import pytest

from core.errors import InvalidArgument
from core.identifiers import build_message_key, require, split_message_key


def test_build_and_split_message_key() -> None:
    key = build_message_key("-1001234", 42)
    assert key == "-1001234:42"
    assert split_message_key(key) == ("-1001234", 42)


def test_same_message_id_in_two_chats_gives_distinct_keys() -> None:
    assert build_message_key("-100", 1) != build_message_key("-200", 1)


@pytest.mark.parametrize("key", ["plain", ":5", "-100:abc", ""])
def test_split_without_numeric_message_id(key: str) -> None:
    assert split_message_key(key) == (key, None)


def test_require_strips_value() -> None:
    assert require("  42 ", "sender_id") == "42"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_require_rejects_empty(value) -> None:
    with pytest.raises(InvalidArgument, match="chat_id is required"):
        require(value, "chat_id")
