"""Core configuration dataclasses.

We keep config parsing outside the core (see settings.py), but these
dataclasses define the shape the core expects so adapters and app layers
can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet


@dataclass(frozen=True)
class EnrichmentConfig:
    """Limits for background media enrichment."""

    max_concurrency: int = 4
    timeout_seconds: float = 60.0
    # Artificial latency of the metadata describer.
    delay_seconds: float = 0.0


@dataclass(frozen=True)
class BotConfig:
    """Operational settings from config.json."""

    token: str = ""
    owner_id: str = ""
    group_allow_list: FrozenSet[str] = frozenset()
    user_allow_list: FrozenSet[str] = frozenset()
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    logging: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PromptsConfig:
    """Canned reply strings from prompts.json."""

    info_string: str = ""
    version_string: str = ""
    personality_prompt: str = ""
    length_short: str = ""
    length_medium: str = ""
    length_long: str = ""
    mention_reply: str = "Soy ese"
