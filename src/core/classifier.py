"""Inbound event classification (core domain).

Turns a transport event into a NormalizedMessage without side effects.
Only missing identity fields are fatal; everything else degrades to
defaults.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from core.errors import ClassificationError
from core.events import InboundEvent, MediaPayload, MessageBody, MessageEvent, OtherEvent
from core.models import MediaKind, MediaMeta, NormalizedMessage

LOGGER = logging.getLogger(__name__)

# Checked in order; an event is assumed to carry at most one media payload.
# Stickers are image-format payloads.
MEDIA_PRIORITY: Tuple[Tuple[str, MediaKind], ...] = (
    ("sticker", MediaKind.IMAGE),
    ("image", MediaKind.IMAGE),
    ("video", MediaKind.VIDEO),
    ("audio", MediaKind.AUDIO),
    ("document", MediaKind.DOCUMENT),
)


def build_media_meta(payload: MediaPayload) -> MediaMeta:
    return MediaMeta(
        mime_type=payload.mime_type or "",
        size_bytes=int(payload.file_length or 0),
        width=int(payload.width or 0),
        height=int(payload.height or 0),
        duration=float(payload.seconds or 0),
        content_hash=payload.media_key.hex() if payload.media_key else "",
    )


def _media_of(body: MessageBody) -> Tuple[MediaKind, Optional[MediaMeta]]:
    for attribute, kind in MEDIA_PRIORITY:
        payload = getattr(body, attribute)
        if payload is not None:
            return kind, build_media_meta(payload)
    return MediaKind.TEXT, None


def _text_of(body: MessageBody) -> str:
    if body.conversation:
        return body.conversation
    if body.extended_text is not None and body.extended_text.text:
        return body.extended_text.text
    return ""


def classify(event: MessageEvent) -> NormalizedMessage:
    """Build a NormalizedMessage from a message event."""

    info = event.info
    missing = [
        name
        for name, value in (
            ("message_id", info.message_id),
            ("chat_id", info.chat_id),
            ("sender_id", info.sender_id),
        )
        if not value
    ]
    if info.timestamp is None:
        missing.append("timestamp")
    if missing:
        raise ClassificationError(f"event is missing {', '.join(missing)}")

    body = event.body
    media_kind, media_meta = _media_of(body)

    # Plain conversation bodies carry no context info, so no mentions.
    mentions: Tuple[str, ...] = ()
    if body.extended_text is not None:
        mentions = tuple(body.extended_text.mentioned_ids)

    return NormalizedMessage(
        message_id=info.message_id,
        chat_id=info.chat_id,
        sender_id=info.sender_id,
        sender_name=info.push_name or "",
        is_group=info.is_group,
        text=_text_of(body),
        media_kind=media_kind,
        media_meta=media_meta,
        timestamp=info.timestamp,
        mentions=mentions,
        is_from_self=info.is_from_self,
        raw=event.raw,
    )


def classify_event(event: InboundEvent) -> Optional[NormalizedMessage]:
    """Classify a transport event; non-message kinds yield None."""

    if isinstance(event, MessageEvent):
        return classify(event)
    if isinstance(event, OtherEvent):
        LOGGER.debug("Ignoring %s event", event.kind)
        return None
    raise TypeError(f"Unsupported inbound event: {type(event).__name__}")
