"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, outbound messaging, and
media description so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from core.models import MediaMeta, MessageLogEntry


class StorePort(Protocol):
    """Durable per-domain operations. Every write is committed immediately."""

    def set_alias(self, chat_id: str, sender_id: str, alias: str) -> None:
        ...

    def get_alias(self, chat_id: str, sender_id: str) -> Optional[str]:
        ...

    def add_group_allowed(self, chat_id: str) -> None:
        ...

    def remove_group_allowed(self, chat_id: str) -> None:
        ...

    def is_group_allowed(self, chat_id: str) -> bool:
        ...

    def add_user_allowed(self, sender_id: str) -> None:
        ...

    def remove_user_allowed(self, sender_id: str) -> None:
        ...

    def is_user_allowed(self, sender_id: str) -> bool:
        ...

    def set_media_description(self, content_hash: str, description: str) -> None:
        ...

    def get_media_description(self, content_hash: str) -> Optional[str]:
        ...

    def upsert_message_log(
        self,
        message_id: str,
        chat_id: str,
        sender_name: str,
        media_description: Optional[str] = None,
        text: Optional[str] = None,
        sender_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> None:
        ...

    def patch_message_log_description(self, message_id: str, description: str) -> None:
        ...

    def patch_message_log_text(self, message_id: str, text: str) -> None:
        ...

    def get_message_log(self, message_id: str) -> Optional[MessageLogEntry]:
        ...


class SenderPort(Protocol):
    """Outbound messages. Failures are logged by the adapter and reported as False."""

    async def send_text(self, chat_id: str, text: str) -> bool:
        ...

    async def send_reply(
        self,
        chat_id: str,
        quoted_message_id: str,
        quoted_sender_id: str,
        quoted_raw: Any,
        text: str,
    ) -> bool:
        ...


class DescriberPort(Protocol):
    """Slow external media description (vision model, captioning service)."""

    async def describe(self, meta: MediaMeta, raw: Any) -> str:
        ...
