"""Telegram client factory for lorekeeper.

The client's lifecycle (connect/run_until_disconnected) is driven from
app.py; this module only turns .env credentials into a TelegramClient.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Tuple

from telethon import TelegramClient

import settings
from core.errors import ConfigError

LOGGER = logging.getLogger(__name__)


def api_credentials() -> Tuple[int, str]:
    """Read API_ID/API_HASH (loaded from .env by settings)."""

    api_id = (os.getenv("API_ID") or "").strip()
    api_hash = (os.getenv("API_HASH") or "").strip()
    if not api_id or not api_hash:
        raise ConfigError("API_ID and API_HASH must be set in .env")
    try:
        return int(api_id), api_hash
    except ValueError as exc:
        raise ConfigError(f"API_ID must be numeric, got {api_id!r}") from exc


def build_client(session_name: Optional[str] = None) -> TelegramClient:
    api_id, api_hash = api_credentials()
    session = session_name or settings.SESSION_NAME
    LOGGER.info("Initializing Telegram client (session %s)", session)
    return TelegramClient(session, api_id, api_hash)
