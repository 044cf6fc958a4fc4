"""Core message dispatch.

This module is integration-agnostic. It only relies on the application
context (ports and caches), enabling other transports without changes here.

Routing is checked in order, first match wins:
1) image -> describe via the media description cache, log, enrich
2) video -> log-only stub
3) audio -> log-only stub
4) text starting with "-" in a group chat -> command router
5) anything else -> plain-text log and mention reply
"""

from __future__ import annotations

import logging
from typing import Optional

from core.classifier import classify_event
from core.commands import CommandRouter
from core.context import AppContext
from core.errors import ClassificationError, InvalidArgument, StoreError
from core.events import InboundEvent
from core.models import MediaKind, MediaMeta, NormalizedMessage, Route

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = "Processing image..."
COMMAND_PREFIX = "-"


def select_route(message: NormalizedMessage) -> Route:
    """Pick the single handling path for a message."""

    if message.media_kind is MediaKind.IMAGE:
        return Route.IMAGE
    if message.media_kind is MediaKind.VIDEO:
        return Route.VIDEO
    if message.media_kind is MediaKind.AUDIO:
        return Route.AUDIO
    if message.text.startswith(COMMAND_PREFIX) and message.is_group:
        return Route.COMMAND
    return Route.TEXT


class Dispatcher:
    """Routes normalized messages and performs cache, store, and send side effects."""

    def __init__(self, context: AppContext, commands: Optional[CommandRouter] = None) -> None:
        self._ctx = context
        self._commands = commands or CommandRouter(context)

    async def handle(self, event: InboundEvent) -> Optional[Route]:
        """Classify one transport event and dispatch it."""

        try:
            message = classify_event(event)
        except ClassificationError as exc:
            # Malformed events are dropped without logging to the store or replying.
            LOGGER.warning("Dropping inbound event: %s", exc)
            return None
        if message is None:
            return None
        return await self.dispatch(message)

    async def dispatch(self, message: NormalizedMessage) -> Route:
        route = select_route(message)
        LOGGER.debug("Message %s routed to %s", message.message_id, route.value)

        if route is Route.IMAGE:
            self._handle_image(message)
        elif route is Route.VIDEO:
            LOGGER.info("Video message %s received; no handler yet", message.message_id)
        elif route is Route.AUDIO:
            LOGGER.info("Audio message %s received; no handler yet", message.message_id)
        elif route is Route.COMMAND:
            await self._commands.handle(message)
        else:
            await self._handle_text(message)
        return route

    def _display_name(self, message: NormalizedMessage) -> str:
        """Alias for the sender in this chat, else push name, else sender id."""

        try:
            alias = self._ctx.aliases.lookup(message.chat_id, message.sender_id)
        except StoreError:
            LOGGER.exception("Alias lookup failed for %s", message.sender_id)
            alias = None
        return alias or message.sender_name or message.sender_id

    def _log(
        self,
        message: NormalizedMessage,
        media_description: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        # Passive logging: the user did not ask for it, so failures never reach the chat.
        try:
            self._ctx.store.upsert_message_log(
                message.message_id,
                message.chat_id,
                self._display_name(message),
                media_description=media_description,
                text=text,
                sender_id=message.sender_id,
                timestamp=message.timestamp.isoformat(),
            )
        except (StoreError, InvalidArgument):
            LOGGER.exception("Failed to insert message log for %s", message.message_id)

    def _cached_description(self, content_hash: str) -> Optional[str]:
        if not content_hash:
            return None
        try:
            return self._ctx.media_descriptions.lookup(content_hash)
        except StoreError:
            LOGGER.exception("Description lookup failed for %s", content_hash)
            return None

    def _handle_image(self, message: NormalizedMessage) -> None:
        meta = message.media_meta or MediaMeta()
        content_hash = meta.content_hash

        description = self._cached_description(content_hash)
        if description == PLACEHOLDER_DESCRIPTION and not self._ctx.enrichment.in_flight(content_hash):
            # Left behind by a failed, timed-out, or cancelled job.
            LOGGER.info("Retrying enrichment for %s", content_hash)
            description = None
        cache_miss = description is None
        if cache_miss:
            description = PLACEHOLDER_DESCRIPTION
            # Written before enrichment starts so duplicates of this image
            # resolve to the placeholder instead of enriching again.
            if content_hash:
                try:
                    self._ctx.media_descriptions.put(content_hash, description)
                except StoreError:
                    LOGGER.exception("Failed to cache placeholder for %s", content_hash)

        self._log(message, media_description=description, text=message.text or None)

        # A cached placeholder is always followed by enrichment, even when the
        # log insert above failed.
        if cache_miss:
            self._ctx.enrichment.schedule(message.message_id, content_hash, meta, message.raw)

    async def _handle_text(self, message: NormalizedMessage) -> None:
        self._log(message, text=message.text)

        # History replayed on reconnect is logged but never answered.
        if message.timestamp < self._ctx.started_at:
            return
        if not self._ctx.self_id or self._ctx.self_id not in message.mentions:
            return
        await self._ctx.sender.send_text(message.chat_id, self._ctx.prompts.mention_reply)
