"""Telegram-to-core event mapping adapter.

This keeps Telethon-specific details out of the core pipeline. The mapper
only copies what Telethon exposes into the provider-neutral MessageEvent;
choosing the media kind and defaulting missing fields is the classifier's
job.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from telethon.tl.custom import Message
from telethon.tl.types import (
    MessageEntityMention,
    MessageEntityMentionName,
    MessageMediaDocument,
    MessageMediaPhoto,
)

from core.events import ExtendedText, MediaPayload, MessageBody, MessageEvent, MessageInfo
from core.identifiers import build_message_key

LOGGER = logging.getLogger(__name__)


def display_name(entity: Any) -> str:
    """Human-readable name for a user, chat, or channel entity."""

    if entity is None:
        return ""
    first = getattr(entity, "first_name", None)
    last = getattr(entity, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    title = getattr(entity, "title", None)
    if title:
        return str(title)
    username = getattr(entity, "username", None)
    if username:
        return str(username)
    return ""


def media_key(media: Any) -> bytes:
    """Stable key for a photo or document; identical media share the same id."""

    media_id = getattr(media, "id", None)
    if media_id is None:
        return b""
    return int(media_id).to_bytes(8, "big", signed=True)


def _payload(message: Message, media: Any) -> Optional[MediaPayload]:
    if media is None:
        return None
    file = getattr(message, "file", None)
    return MediaPayload(
        mime_type=getattr(file, "mime_type", None),
        file_length=getattr(file, "size", None),
        media_key=media_key(media),
        width=getattr(file, "width", None),
        height=getattr(file, "height", None),
        seconds=getattr(file, "duration", None),
    )


def _mentions(message: Message, self_id: str, self_username: Optional[str]) -> List[str]:
    mentions: List[str] = []
    own_handle = f"@{self_username.lower()}" if self_username else None
    for entity, text in message.get_entities_text():
        if isinstance(entity, MessageEntityMentionName):
            mentions.append(str(entity.user_id))
        elif isinstance(entity, MessageEntityMention):
            handle = text.lower()
            # @username mentions carry no id; resolve only our own handle.
            mentions.append(self_id if own_handle and handle == own_handle else handle)
    return mentions


def _body(message: Message, self_id: str, self_username: Optional[str]) -> MessageBody:
    text = message.raw_text or ""
    conversation = text
    extended_text = None
    if message.entities:
        conversation = ""
        extended_text = ExtendedText(
            text=text,
            mentioned_ids=tuple(_mentions(message, self_id, self_username)),
        )

    # Link previews also expose photo/document; only real attachments count.
    attached_photo = message.photo if isinstance(message.media, MessageMediaPhoto) else None
    attached_document = message.document if isinstance(message.media, MessageMediaDocument) else None

    return MessageBody(
        conversation=conversation,
        extended_text=extended_text,
        sticker=_payload(message, message.sticker),
        image=_payload(message, attached_photo),
        video=_payload(message, message.video or message.video_note),
        audio=_payload(message, message.audio or message.voice),
        document=_payload(message, attached_document),
    )


async def build_event(
    message: Message,
    self_id: str = "",
    self_username: Optional[str] = None,
) -> MessageEvent:
    """Build a core MessageEvent from a Telethon Message."""

    chat_id = str(message.chat_id) if message.chat_id is not None else None
    sender_id = str(message.sender_id) if message.sender_id is not None else None

    sender = getattr(message, "sender", None)
    if sender is None and sender_id is not None:
        try:
            sender = await message.get_sender()
        except (ValueError, ConnectionError):
            LOGGER.debug("Could not resolve sender %s", sender_id)

    info = MessageInfo(
        message_id=build_message_key(chat_id, message.id) if chat_id else None,
        chat_id=chat_id,
        sender_id=sender_id,
        timestamp=message.date,
        push_name=display_name(sender),
        is_group=bool(message.is_group),
        is_from_self=bool(message.out),
    )
    return MessageEvent(info=info, body=_body(message, self_id, self_username), raw=message)
