"""Application context shared by the dispatcher and command handlers.

Built once at startup and passed explicitly; configuration reloads swap the
config/prompts pair under a single lock instead of rebinding module globals.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional, Tuple

from core.cache import AliasCache, AllowListCache, MediaDescriptionCache
from core.config import BotConfig, PromptsConfig
from core.enrichment import EnrichmentScheduler
from core.errors import ConfigError, InvalidArgument, StoreError
from core.ports import SenderPort, StorePort

LOGGER = logging.getLogger(__name__)

ConfigLoader = Callable[[], Tuple[BotConfig, PromptsConfig]]


class AppContext:
    """Everything one message needs: store, caches, sender, configuration."""

    def __init__(
        self,
        *,
        store: StorePort,
        sender: SenderPort,
        aliases: AliasCache,
        allow_list: AllowListCache,
        media_descriptions: MediaDescriptionCache,
        enrichment: EnrichmentScheduler,
        config: BotConfig,
        prompts: PromptsConfig,
        self_id: str,
        started_at: datetime,
        config_loader: Optional[ConfigLoader] = None,
    ) -> None:
        self.store = store
        self.sender = sender
        self.aliases = aliases
        self.allow_list = allow_list
        self.media_descriptions = media_descriptions
        self.enrichment = enrichment
        self.self_id = self_id
        self.started_at = started_at
        self._config_loader = config_loader
        self._config_lock = threading.Lock()
        self._config = config
        self._prompts = prompts

    @property
    def config(self) -> BotConfig:
        with self._config_lock:
            return self._config

    @property
    def prompts(self) -> PromptsConfig:
        with self._config_lock:
            return self._prompts

    def seed_allow_list(self) -> None:
        """Add the static allow-lists from the current config to the store.

        Entries are only added; ids dropped from config.json stay allowed
        until removed explicitly.
        """

        config = self.config
        for chat_id in sorted(config.group_allow_list):
            try:
                self.allow_list.allow_group(chat_id)
            except (StoreError, InvalidArgument):
                LOGGER.exception("Failed to seed allowed group %s", chat_id)
        for sender_id in sorted(config.user_allow_list):
            try:
                self.allow_list.allow_user(sender_id)
            except (StoreError, InvalidArgument):
                LOGGER.exception("Failed to seed allowed user %s", sender_id)

    def reload(self) -> None:
        """Re-read both configuration documents and swap them in together.

        A ConfigError from the loader propagates and the previous pair stays
        active. Owner, prompts and allow-list additions take effect at once.
        Enrichment limits and the logging block are read only at startup.
        """

        if self._config_loader is None:
            raise ConfigError("no configuration loader is configured")
        config, prompts = self._config_loader()
        with self._config_lock:
            self._config = config
            self._prompts = prompts
        self.seed_allow_list()
        LOGGER.info("Configuration reloaded")
