"""Inbound event union delivered by the transport adapter.

The transport hands the core one of a closed set of event kinds. Only
``MessageEvent`` is consumed; every other kind arrives as ``OtherEvent`` so
the boundary match in the classifier stays exhaustive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class MediaPayload:
    """One media variant as the provider describes it. Any field may be missing."""

    mime_type: Optional[str] = None
    file_length: Optional[int] = None
    media_key: bytes = b""
    width: Optional[int] = None
    height: Optional[int] = None
    seconds: Optional[float] = None


@dataclass(frozen=True)
class ExtendedText:
    """Text body that carries context metadata such as mentions."""

    text: Optional[str] = None
    mentioned_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MessageBody:
    conversation: str = ""
    extended_text: Optional[ExtendedText] = None
    sticker: Optional[MediaPayload] = None
    image: Optional[MediaPayload] = None
    video: Optional[MediaPayload] = None
    audio: Optional[MediaPayload] = None
    document: Optional[MediaPayload] = None


@dataclass(frozen=True)
class MessageInfo:
    message_id: Optional[str]
    chat_id: Optional[str]
    sender_id: Optional[str]
    timestamp: Optional[datetime]
    push_name: str = ""
    is_group: bool = False
    is_from_self: bool = False


@dataclass(frozen=True)
class MessageEvent:
    info: MessageInfo
    body: MessageBody = field(default_factory=MessageBody)
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class OtherEvent:
    """Any transport event kind the core does not handle."""

    kind: str


InboundEvent = Union[MessageEvent, OtherEvent]
