"""Background media enrichment.

Image messages that miss the description cache are logged with a
placeholder and handed to this scheduler. Each job runs as its own asyncio
task so inbound processing never waits on the describer. Jobs are keyed by
(message key, content hash), bounded by a semaphore, and every describer call
is capped by a timeout. On shutdown pending jobs are cancelled; their log
rows keep the placeholder. A job that fails, times out or is cancelled leaves
the placeholder cached; the dispatcher retries such a hash the next time it
is seen.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Tuple

from core.cache import MediaDescriptionCache
from core.errors import InvalidArgument, StoreError
from core.models import MediaMeta
from core.ports import DescriberPort, StorePort

LOGGER = logging.getLogger(__name__)


class EnrichmentScheduler:
    """Runs describer jobs and writes their results back to cache and log."""

    def __init__(
        self,
        describer: DescriberPort,
        descriptions: MediaDescriptionCache,
        store: StorePort,
        max_concurrency: int = 4,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._describer = describer
        self._descriptions = descriptions
        self._store = store
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._timeout = timeout_seconds
        self._tasks: Dict[Tuple[str, str], asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def in_flight(self, content_hash: str) -> bool:
        """True while some unfinished job is describing ``content_hash``."""

        return any(key[1] == content_hash and not task.done() for key, task in self._tasks.items())

    def schedule(self, message_id: str, content_hash: str, meta: MediaMeta, raw: Any = None) -> asyncio.Task:
        """Start enrichment for one message; an in-flight job for the same key is reused."""

        key = (message_id, content_hash)
        existing = self._tasks.get(key)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.get_running_loop().create_task(
            self._run(message_id, content_hash, meta, raw),
            name=f"enrich:{message_id}",
        )
        self._tasks[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))
        return task

    def _forget(self, key: Tuple[str, str], task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    async def _run(self, message_id: str, content_hash: str, meta: MediaMeta, raw: Any) -> None:
        async with self._semaphore:
            try:
                description = await asyncio.wait_for(self._describer.describe(meta, raw), timeout=self._timeout)
            except asyncio.TimeoutError:
                LOGGER.warning("Enrichment for %s timed out after %ss", message_id, self._timeout)
                return
            except Exception:
                LOGGER.exception("Enrichment for %s failed", message_id)
                return

        if content_hash:
            try:
                self._descriptions.put(content_hash, description)
            except (StoreError, InvalidArgument):
                LOGGER.exception("Failed to cache description for %s", content_hash)

        try:
            self._store.patch_message_log_description(message_id, description)
        except (StoreError, InvalidArgument):
            LOGGER.exception("Failed to update description for %s", message_id)
            return
        LOGGER.info("Enriched %s", message_id)

    async def drain(self) -> None:
        """Wait until every scheduled job has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel pending jobs and wait for them to unwind."""

        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            LOGGER.info("Cancelled %s pending enrichment job(s)", len(tasks))
