"""Read-through/write-through caches over the persistent store.

Each cache shadows one domain of the store for the lifetime of the process.
The store stays the source of truth:

- lookup: memory first; on a miss the store is queried and memory is
  populated only when the store has the value, so a miss never turns into a
  stale positive.
- put: memory then store, under the write lock. If the store write fails the
  memory entry is rolled back to what it was before and the StoreError is
  re-raised, so memory never holds a value the store never accepted.

There is no eviction and no TTL.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from core.errors import StoreError
from core.identifiers import require
from core.locks import ReadWriteLock
from core.ports import StorePort

LOGGER = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class _ReadThroughCache(Generic[K, V]):
    """Shared lookup/put mechanics; subclasses bind keys to store calls."""

    name = "cache"

    def __init__(self, store: StorePort) -> None:
        self._store = store
        self._entries: Dict[K, V] = {}
        self._lock = ReadWriteLock()

    def _load(self, key: K) -> Optional[V]:
        raise NotImplementedError

    def _persist(self, key: K, value: V) -> None:
        raise NotImplementedError

    def _lookup(self, key: K) -> Optional[V]:
        with self._lock.read():
            if key in self._entries:
                return self._entries[key]

        with self._lock.write():
            # Another writer may have populated the key between the locks.
            if key in self._entries:
                return self._entries[key]
            value = self._load(key)
            if value is None:
                return None
            self._entries[key] = value
            return value

    def _put(self, key: K, value: V) -> None:
        with self._lock.write():
            previous = self._entries.get(key, _MISSING)
            self._entries[key] = value
            try:
                self._persist(key, value)
            except StoreError:
                self._restore(key, previous)
                LOGGER.warning("%s write for %s failed; memory entry rolled back", self.name, key)
                raise

    def _discard(self, key: K, remove: Callable[[], None]) -> None:
        with self._lock.write():
            previous = self._entries.pop(key, _MISSING)
            try:
                remove()
            except StoreError:
                self._restore(key, previous)
                LOGGER.warning("%s delete for %s failed; memory entry rolled back", self.name, key)
                raise

    def _restore(self, key: K, previous) -> None:
        if previous is _MISSING:
            self._entries.pop(key, None)
        else:
            self._entries[key] = previous

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)


class AliasCache(_ReadThroughCache[Tuple[str, str], str]):
    """(chat_id, sender_id) -> display alias. Last write wins."""

    name = "alias cache"

    def lookup(self, chat_id: str, sender_id: str) -> Optional[str]:
        key = (require(chat_id, "chat_id"), require(sender_id, "sender_id"))
        return self._lookup(key)

    def put(self, chat_id: str, sender_id: str, alias: str) -> None:
        key = (require(chat_id, "chat_id"), require(sender_id, "sender_id"))
        self._put(key, require(alias, "alias"))

    def _load(self, key: Tuple[str, str]) -> Optional[str]:
        return self._store.get_alias(*key)

    def _persist(self, key: Tuple[str, str], value: str) -> None:
        self._store.set_alias(key[0], key[1], value)


GROUP = "group"
USER = "user"


class AllowListCache(_ReadThroughCache[Tuple[str, str], bool]):
    """Allowed group chats and allowed users, keyed by (scope, identifier)."""

    name = "allow-list cache"

    def is_group_allowed(self, chat_id: str) -> bool:
        return bool(self._lookup((GROUP, require(chat_id, "chat_id"))))

    def allow_group(self, chat_id: str) -> None:
        self._put((GROUP, require(chat_id, "chat_id")), True)

    def disallow_group(self, chat_id: str) -> None:
        chat_id = require(chat_id, "chat_id")
        self._discard((GROUP, chat_id), lambda: self._store.remove_group_allowed(chat_id))

    def is_user_allowed(self, sender_id: str) -> bool:
        return bool(self._lookup((USER, require(sender_id, "sender_id"))))

    def allow_user(self, sender_id: str) -> None:
        self._put((USER, require(sender_id, "sender_id")), True)

    def disallow_user(self, sender_id: str) -> None:
        sender_id = require(sender_id, "sender_id")
        self._discard((USER, sender_id), lambda: self._store.remove_user_allowed(sender_id))

    def _load(self, key: Tuple[str, str]) -> Optional[bool]:
        scope, identifier = key
        if scope == GROUP:
            allowed = self._store.is_group_allowed(identifier)
        else:
            allowed = self._store.is_user_allowed(identifier)
        # Non-members are not cached; a later allow is seen immediately.
        return True if allowed else None

    def _persist(self, key: Tuple[str, str], value: bool) -> None:
        scope, identifier = key
        if scope == GROUP:
            self._store.add_group_allowed(identifier)
        else:
            self._store.add_user_allowed(identifier)


class MediaDescriptionCache(_ReadThroughCache[str, str]):
    """content hash -> description. A later description overwrites a placeholder."""

    name = "media description cache"

    def lookup(self, content_hash: str) -> Optional[str]:
        return self._lookup(require(content_hash, "content_hash"))

    def put(self, content_hash: str, description: str) -> None:
        self._put(require(content_hash, "content_hash"), require(description, "description"))

    def _load(self, key: str) -> Optional[str]:
        return self._store.get_media_description(key)

    def _persist(self, key: str, value: str) -> None:
        self._store.set_media_description(key, value)
