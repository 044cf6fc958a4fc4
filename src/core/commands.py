"""Group chat command grammar.

The first space-delimited token selects the command; matching is exact and
case-sensitive. Unknown tokens are ignored silently.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List

from core.context import AppContext
from core.errors import ConfigError, InvalidArgument, StoreError
from core.models import NormalizedMessage

LOGGER = logging.getLogger(__name__)

Handler = Callable[[NormalizedMessage, List[str]], Awaitable[None]]

OWNER_ONLY = {
    "--whitelist": "Only the owner can whitelist.",
    "--reload-json": "Only the owner can reload configs.",
}


class CommandRouter:
    """Executes the command named by a message's first token."""

    def __init__(self, context: AppContext) -> None:
        self._ctx = context
        self._handlers: Dict[str, Handler] = {
            "-s": self._summarize,
            "--summarize": self._summarize,
            "-v": self._version,
            "--version": self._version,
            "-i": self._info,
            "--info": self._info,
            "--whitelist": self._whitelist,
            "--alias": self._alias,
            "--disable": self._disable,
            "--enable": self._enable,
            "--reload-json": self._reload_json,
        }

    async def handle(self, message: NormalizedMessage) -> bool:
        """Run the command in ``message``; return False when nothing ran."""

        # Commands from before startup are history being replayed.
        if message.timestamp < self._ctx.started_at:
            return False

        words = message.text.split(" ")
        handler = self._handlers.get(words[0])
        if handler is None:
            return False

        refusal = OWNER_ONLY.get(words[0])
        if refusal is not None and not await self._check_owner(message, refusal):
            return True

        LOGGER.info("Command %s from %s in %s", words[0], message.sender_id, message.chat_id)
        await handler(message, [word for word in words[1:] if word])
        return True

    async def _check_owner(self, message: NormalizedMessage, refusal: str) -> bool:
        owner_id = self._ctx.config.owner_id.strip()
        if not owner_id:
            await self._ctx.sender.send_text(message.chat_id, "Owner not configured correctly.")
            return False
        if message.sender_id != owner_id:
            LOGGER.warning("%s tried to run an owner-only command", message.sender_id)
            await self._ctx.sender.send_text(message.chat_id, refusal)
            return False
        return True

    async def _reply(self, message: NormalizedMessage, text: str) -> None:
        await self._ctx.sender.send_reply(
            message.chat_id,
            message.message_id,
            message.sender_id,
            message.raw,
            text,
        )

    async def _summarize(self, message: NormalizedMessage, args: List[str]) -> None:
        # TODO: summarize recent message_log rows once a summarizer backend exists.
        LOGGER.info("Summarize requested in %s", message.chat_id)

    async def _version(self, message: NormalizedMessage, args: List[str]) -> None:
        await self._ctx.sender.send_text(message.chat_id, self._ctx.prompts.version_string)

    async def _info(self, message: NormalizedMessage, args: List[str]) -> None:
        await self._ctx.sender.send_text(message.chat_id, self._ctx.prompts.info_string)

    async def _whitelist(self, message: NormalizedMessage, args: List[str]) -> None:
        allow_list = self._ctx.allow_list
        try:
            if allow_list.is_group_allowed(message.chat_id):
                await self._reply(message, "Group is already whitelisted.")
                return
            allow_list.allow_group(message.chat_id)
        except (StoreError, InvalidArgument):
            LOGGER.exception("Failed to whitelist %s", message.chat_id)
            await self._reply(message, "Failed to whitelist group.")
            return
        await self._reply(message, "Group has been whitelisted.")

    async def _alias(self, message: NormalizedMessage, args: List[str]) -> None:
        if not args:
            await self._ctx.sender.send_text(message.chat_id, "Usage: --alias <name>")
            return
        try:
            self._ctx.aliases.put(message.chat_id, message.sender_id, args[0])
        except (StoreError, InvalidArgument):
            LOGGER.exception("Failed to save alias for %s", message.sender_id)
            await self._reply(message, "Failed to save alias")
            return
        await self._reply(message, "Alias has been saved.")

    async def _disable(self, message: NormalizedMessage, args: List[str]) -> None:
        LOGGER.info("Disable requested in %s; not implemented", message.chat_id)

    async def _enable(self, message: NormalizedMessage, args: List[str]) -> None:
        LOGGER.info("Enable requested in %s; not implemented", message.chat_id)

    async def _reload_json(self, message: NormalizedMessage, args: List[str]) -> None:
        try:
            self._ctx.reload()
        except ConfigError as exc:
            LOGGER.error("Config reload failed: %s", exc)
            await self._ctx.sender.send_text(message.chat_id, f"Failed to reload configs: {exc}")
            return
        await self._ctx.sender.send_text(message.chat_id, "Configs reloaded successfully.")
