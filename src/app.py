"""Application entry point for the lorekeeper bot."""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from art import tprint
from telethon import events

import settings
from adapters.media_describer import MetadataDescriber
from adapters.sqlite_store import SQLiteStore
from adapters.telegram_mapper import build_event
from adapters.telegram_sender import TelegramSender
from client import build_client
from core.cache import AliasCache, AllowListCache, MediaDescriptionCache
from core.config import BotConfig
from core.context import AppContext
from core.dispatcher import Dispatcher
from core.enrichment import EnrichmentScheduler
from core.errors import ConfigError
from get_session import authorize

NAME = "LOREKEEPER"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, always: Iterable[str] = ()) -> list[str]:
    values = [value for value in always if value]
    redact_cfg = config.get("redact", {}) if config else {}
    if redact_cfg.get("enabled", False):
        for name in redact_cfg.get("patterns", []):
            value = os.getenv(name)
            if value:
                values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(bot_config: BotConfig) -> None:
    config = bot_config.logging or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    # The bot token is masked whether or not redaction is configured.
    secrets = _collect_redaction_values(config, always=[bot_config.token])
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/lorekeeper.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _process_start() -> datetime:
    # Telegram message dates have whole-second precision.
    return datetime.now(timezone.utc).replace(microsecond=0)


def _run() -> None:
    _print_banner()
    try:
        bot_config, prompts = settings.load_configs()
    except ConfigError as exc:
        raise SystemExit(f"Failed to load configuration: {exc}") from exc
    _configure_logging(bot_config)
    logger = logging.getLogger(__name__)

    logger.info("Starting lorekeeper")

    store = SQLiteStore(settings.DB_PATH)
    store.init_db()

    aliases = AliasCache(store)
    allow_list = AllowListCache(store)
    media_descriptions = MediaDescriptionCache(store)

    try:
        client = build_client()
    except ConfigError as exc:
        raise SystemExit(f"Failed to create Telegram client: {exc}") from exc
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client, bot_config.token))
    me = client.loop.run_until_complete(client.get_me())
    self_id = str(me.id)
    self_username = getattr(me, "username", None)
    logger.info("Signed in as %s (%s)", self_username or me.id, self_id)

    enrichment_cfg = bot_config.enrichment
    enrichment = EnrichmentScheduler(
        describer=MetadataDescriber(delay_seconds=enrichment_cfg.delay_seconds),
        descriptions=media_descriptions,
        store=store,
        max_concurrency=enrichment_cfg.max_concurrency,
        timeout_seconds=enrichment_cfg.timeout_seconds,
    )
    context = AppContext(
        store=store,
        sender=TelegramSender(client),
        aliases=aliases,
        allow_list=allow_list,
        media_descriptions=media_descriptions,
        enrichment=enrichment,
        config=bot_config,
        prompts=prompts,
        self_id=self_id,
        started_at=_process_start(),
        config_loader=settings.load_configs,
    )
    context.seed_allow_list()
    dispatcher = Dispatcher(context)

    # Telethon dispatches each update in its own task, so one slow message
    # never holds up the next. All routing lives in the core dispatcher.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            inbound = await build_event(event.message, self_id, self_username)
            await dispatcher.handle(inbound)
        except Exception:
            logger.exception("Error while processing message")

    logger.info("Client connected. Listening for incoming messages...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(enrichment.shutdown())
        store.close()
        logger.info("Stopped lorekeeper")


def _login() -> None:
    _print_banner()
    try:
        bot_config = settings.load_bot_config()
    except ConfigError:
        bot_config = BotConfig()
    try:
        client = build_client()
    except ConfigError as exc:
        raise SystemExit(f"Failed to create Telegram client: {exc}") from exc

    async def _run_login() -> None:
        await client.connect()
        await authorize(client, bot_config.token)
        me = await client.get_me()
        print(f"Logged in as: {getattr(me, 'username', None) or me.id}")
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="lorekeeper")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("login", help="Authorize the Telegram session and exit")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return
    _run()


if __name__ == "__main__":
    main()
