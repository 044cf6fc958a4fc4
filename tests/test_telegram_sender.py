from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from adapters.telegram_sender import TelegramSender


class FakeClient:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[Tuple[int, str, Dict[str, Any]]] = []

    async def send_message(self, entity: int, message: str, **kwargs: Any) -> None:
        if self.fail:
            raise ConnectionError("not connected")
        self.sent.append((entity, message, kwargs))


class RawMessage:
    def __init__(self, message_id: int) -> None:
        self.id = message_id


def test_send_text_targets_numeric_chat() -> None:
    client = FakeClient()

    assert asyncio.run(TelegramSender(client).send_text("-100123", "hello")) is True
    assert client.sent == [(-100123, "hello", {})]


def test_send_reply_quotes_message_from_key() -> None:
    client = FakeClient()

    ok = asyncio.run(TelegramSender(client).send_reply("-100123", "-100123:77", "42", None, "Alias has been saved."))

    assert ok is True
    assert client.sent == [(-100123, "Alias has been saved.", {"reply_to": 77})]


def test_send_reply_falls_back_to_raw_message_id() -> None:
    client = FakeClient()

    asyncio.run(TelegramSender(client).send_reply("-100123", "unparsable", "42", RawMessage(5), "ok"))

    assert client.sent[0][2] == {"reply_to": 5}


def test_send_failures_return_false() -> None:
    sender = TelegramSender(FakeClient(fail=True))

    assert asyncio.run(sender.send_text("-100123", "hello")) is False
    assert asyncio.run(sender.send_reply("-100123", "-100123:1", "42", None, "hi")) is False


def test_invalid_chat_id_returns_false() -> None:
    client = FakeClient()

    assert asyncio.run(TelegramSender(client).send_text("not-a-chat", "hello")) is False
    assert client.sent == []
