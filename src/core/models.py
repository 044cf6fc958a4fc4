"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to Telethon types. The only provider object that crosses the
boundary is ``NormalizedMessage.raw``, which the core never inspects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


class MediaKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class Route(str, Enum):
    """Handling path chosen by the dispatcher for a message."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    COMMAND = "command"
    TEXT = "text"


@dataclass(frozen=True)
class MediaMeta:
    """Media metadata; fields absent on the source payload stay zero/empty."""

    mime_type: str = ""
    size_bytes: int = 0
    width: int = 0
    height: int = 0
    duration: float = 0.0
    # Hex-encoded media key. Empty means "unknown" and is never used as a
    # cache key, so distinct unhashed media cannot collide.
    content_hash: str = ""


@dataclass(frozen=True)
class NormalizedMessage:
    """One classified inbound message, consumed once by the dispatcher."""

    message_id: str
    chat_id: str
    sender_id: str
    sender_name: str
    is_group: bool
    text: str
    media_kind: MediaKind
    media_meta: Optional[MediaMeta]
    timestamp: datetime
    mentions: Tuple[str, ...] = ()
    is_from_self: bool = False
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class MessageLogEntry:
    """Persisted row of the message log."""

    message_id: str
    chat_id: str
    sender_id: Optional[str]
    sender_name: str
    media_description: Optional[str]
    text: Optional[str]
    timestamp: Optional[str]
