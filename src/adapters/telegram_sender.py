"""Telegram outbound message adapter.

Sends plain messages and quoted replies through the Telethon client.
Failures are logged and reported as False; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any

from telethon import errors

from core.identifiers import split_message_key

LOGGER = logging.getLogger(__name__)


class TelegramSender:
    """Sender adapter that satisfies the core SenderPort."""

    def __init__(self, client) -> None:
        self._client = client

    async def send_text(self, chat_id: str, text: str) -> bool:
        try:
            await self._client.send_message(int(chat_id), text)
        except (errors.RPCError, ConnectionError, ValueError):
            LOGGER.exception("Failed to send message to %s", chat_id)
            return False
        return True

    async def send_reply(
        self,
        chat_id: str,
        quoted_message_id: str,
        quoted_sender_id: str,
        quoted_raw: Any,
        text: str,
    ) -> bool:
        """Send ``text`` quoting the given message."""

        _, reply_to = split_message_key(quoted_message_id)
        if reply_to is None:
            reply_to = getattr(quoted_raw, "id", None)
        try:
            await self._client.send_message(int(chat_id), text, reply_to=reply_to)
        except (errors.RPCError, ConnectionError, ValueError):
            LOGGER.exception("Failed to reply to %s from %s in %s", quoted_message_id, quoted_sender_id, chat_id)
            return False
        return True
