from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Tuple

import app
from adapters.sqlite_store import SQLiteStore
from core.cache import AliasCache, AllowListCache, MediaDescriptionCache
from core.config import BotConfig, PromptsConfig
from core.context import AppContext
from core.dispatcher import Dispatcher
from core.enrichment import EnrichmentScheduler
from core.models import MediaKind, NormalizedMessage


class FakeSender:
    def __init__(self) -> None:
        self.texts: List[Tuple[str, str]] = []

    async def send_text(self, chat_id: str, text: str) -> bool:
        self.texts.append((chat_id, text))
        return True

    async def send_reply(self, chat_id: str, quoted_message_id: str, quoted_sender_id: str, quoted_raw: Any, text: str) -> bool:
        return True


def test_process_start_has_whole_second_precision() -> None:
    assert app._process_start().microsecond == 0


def test_mention_in_startup_second_is_answered(tmp_path) -> None:
    store = SQLiteStore(str(tmp_path / "lorekeeper.db"))
    store.init_db()
    descriptions = MediaDescriptionCache(store)
    started_at = app._process_start()
    ctx = AppContext(
        store=store,
        sender=FakeSender(),
        aliases=AliasCache(store),
        allow_list=AllowListCache(store),
        media_descriptions=descriptions,
        enrichment=EnrichmentScheduler(None, descriptions, store),
        config=BotConfig(),
        prompts=PromptsConfig(),
        self_id="999",
        started_at=started_at,
    )
    # Telegram reports the date of a message sent right after startup
    # truncated to the same second.
    message = NormalizedMessage(
        message_id="-100:1",
        chat_id="-100",
        sender_id="42",
        sender_name="Alice",
        is_group=True,
        text="hey",
        media_kind=MediaKind.TEXT,
        media_meta=None,
        timestamp=started_at,
        mentions=("999",),
    )

    asyncio.run(Dispatcher(ctx).dispatch(message))

    assert ctx.sender.texts == [("-100", "Soy ese")]


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["123:abc", ""], fmt="%(message)s")
    record = logging.LogRecord("lorekeeper", logging.INFO, __file__, 1, "token is %s", ("123:abc",), None)

    assert formatter.format(record) == "token is ***"


def test_collect_redaction_values_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("PHONE", "+15550100")
    config = {"redact": {"enabled": True, "patterns": ["PHONE", "UNSET_SECRET"]}}
    monkeypatch.delenv("UNSET_SECRET", raising=False)

    assert app._collect_redaction_values(config, always=["tok", ""]) == ["+15550100", "tok"]
