"""Helpers for working with lorekeeper identifiers."""

from __future__ import annotations

from typing import Optional, Tuple

from core.errors import InvalidArgument

MESSAGE_KEY_SEPARATOR = ":"


def build_message_key(chat_id: str, message_id: int) -> str:
    """Return a log-wide unique key; Telegram message ids are only unique per chat."""

    return f"{chat_id}{MESSAGE_KEY_SEPARATOR}{message_id}"


def split_message_key(message_key: str) -> Tuple[str, Optional[int]]:
    """Split a message key into (chat_id, message_id)."""

    # Chat ids can be negative (-100...), so split on the last separator only.
    chat_id, sep, message_part = message_key.rpartition(MESSAGE_KEY_SEPARATOR)
    if not sep or not chat_id:
        return message_key, None
    try:
        return chat_id, int(message_part)
    except ValueError:
        return message_key, None


def require(value: Optional[str], name: str) -> str:
    """Strip an identifier or required value, rejecting empty input."""

    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidArgument(f"{name} is required")
    return cleaned
