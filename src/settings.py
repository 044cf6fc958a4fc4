"""Static paths and configuration loading for lorekeeper.

Operational settings (owner, allow-lists, bot token, logging, enrichment)
live in config.json and canned replies in prompts.json, so both can be edited
and reloaded with --reload-json without touching Python. Secrets for the
Telegram session stay in .env.
"""

from __future__ import annotations

import json
import os
from typing import Any, Iterable, Tuple

from dotenv import load_dotenv

from core.config import BotConfig, EnrichmentConfig, PromptsConfig
from core.errors import ConfigError

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Where to store the SQLite database.
DB_PATH = os.getenv("LOREKEEPER_DB") or os.path.join(PROJECT_ROOT, "lorekeeper.db")

CONFIG_PATH = os.getenv("LOREKEEPER_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")
PROMPTS_PATH = os.getenv("LOREKEEPER_PROMPTS") or os.path.join(PROJECT_ROOT, "prompts.json")

# Telethon appends ".session"; a bare name lands in the working directory.
SESSION_NAME = os.getenv("SESSION_NAME") or "lorekeeper"


def _load_json(path: str) -> dict:
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data


def _string(data: dict, key: str, default: str = "") -> str:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, (str, int)):
        raise ConfigError(f"{key} must be a string")
    return str(value)


def _identifiers(data: dict, key: str) -> frozenset:
    value: Iterable[Any] = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    # Ids may be written as numbers in JSON; the core compares strings.
    return frozenset(str(item).strip() for item in value if str(item).strip())


def _number(data: dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    return value


def load_bot_config(path: str = CONFIG_PATH) -> BotConfig:
    """Load config.json into a BotConfig."""

    data = _load_json(path)

    enrichment = data.get("enrichment") or {}
    logging_config = data.get("logging") or {}
    if not isinstance(enrichment, dict) or not isinstance(logging_config, dict):
        raise ConfigError("enrichment and logging must be JSON objects")

    return BotConfig(
        token=_string(data, "token"),
        owner_id=_string(data, "owner_id").strip(),
        group_allow_list=_identifiers(data, "group_allow_list"),
        user_allow_list=_identifiers(data, "user_allow_list"),
        enrichment=EnrichmentConfig(
            max_concurrency=int(_number(enrichment, "max_concurrency", 4)),
            timeout_seconds=float(_number(enrichment, "timeout_seconds", 60.0)),
            delay_seconds=float(_number(enrichment, "delay_seconds", 0.0)),
        ),
        logging=logging_config,
    )


def load_prompts_config(path: str = PROMPTS_PATH) -> PromptsConfig:
    """Load prompts.json into a PromptsConfig."""

    data = _load_json(path)
    defaults = PromptsConfig()
    return PromptsConfig(
        info_string=_string(data, "info_string"),
        version_string=_string(data, "version_string"),
        personality_prompt=_string(data, "personality_prompt"),
        length_short=_string(data, "length_short"),
        length_medium=_string(data, "length_medium"),
        length_long=_string(data, "length_long"),
        mention_reply=_string(data, "mention_reply", defaults.mention_reply),
    )


def load_configs(config_path: str = CONFIG_PATH, prompts_path: str = PROMPTS_PATH) -> Tuple[BotConfig, PromptsConfig]:
    """Load both documents; either failing raises ConfigError and nothing is returned."""

    return load_bot_config(config_path), load_prompts_config(prompts_path)
