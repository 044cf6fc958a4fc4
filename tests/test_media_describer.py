from __future__ import annotations

import asyncio

from adapters.media_describer import MetadataDescriber
from core.models import MediaMeta


def test_describes_image_metadata() -> None:
    meta = MediaMeta(mime_type="image/jpeg", size_bytes=204800, width=800, height=600)

    assert asyncio.run(MetadataDescriber().describe(meta)) == "image/jpeg, 800x600, 200.0 KB"


def test_describes_duration_and_small_sizes() -> None:
    meta = MediaMeta(mime_type="video/mp4", size_bytes=512, duration=2.5)

    assert asyncio.run(MetadataDescriber().describe(meta)) == "video/mp4, 2.5s, 512 B"


def test_empty_metadata() -> None:
    assert asyncio.run(MetadataDescriber().describe(MediaMeta())) == "unknown media"
