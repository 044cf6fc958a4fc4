"""Metadata-based media describer.

Stands behind the core DescriberPort until a vision backend is wired in. It
waits a configurable delay to behave like a slow remote call and describes
the media from its metadata alone.
"""

from __future__ import annotations

import asyncio
from typing import Any

from core.models import MediaMeta


def _format_size(size_bytes: int) -> str:
    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes} B"


class MetadataDescriber:
    """Describe media from mime type, dimensions, duration, and size."""

    def __init__(self, delay_seconds: float = 0.0) -> None:
        self._delay = delay_seconds

    async def describe(self, meta: MediaMeta, raw: Any = None) -> str:
        if self._delay > 0:
            await asyncio.sleep(self._delay)

        parts = [meta.mime_type or "unknown media"]
        if meta.width and meta.height:
            parts.append(f"{meta.width}x{meta.height}")
        if meta.duration:
            parts.append(f"{meta.duration:g}s")
        if meta.size_bytes:
            parts.append(_format_size(meta.size_bytes))
        return ", ".join(parts)
