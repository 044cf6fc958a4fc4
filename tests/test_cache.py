from __future__ import annotations

import threading
from typing import Dict, Optional, Set, Tuple

import pytest

from adapters.sqlite_store import SQLiteStore
from core.cache import AliasCache, AllowListCache, MediaDescriptionCache
from core.errors import InvalidArgument, StoreError


class FakeStore:
    """In-memory store that counts reads and can be told to fail writes."""

    def __init__(self) -> None:
        self.aliases: Dict[Tuple[str, str], str] = {}
        self.groups: Set[str] = set()
        self.users: Set[str] = set()
        self.descriptions: Dict[str, str] = {}
        self.reads = 0
        self.fail_writes = False

    def _check(self) -> None:
        if self.fail_writes:
            raise StoreError("disk I/O error")

    def set_alias(self, chat_id: str, sender_id: str, alias: str) -> None:
        self._check()
        self.aliases[(chat_id, sender_id)] = alias

    def get_alias(self, chat_id: str, sender_id: str) -> Optional[str]:
        self.reads += 1
        return self.aliases.get((chat_id, sender_id))

    def add_group_allowed(self, chat_id: str) -> None:
        self._check()
        self.groups.add(chat_id)

    def remove_group_allowed(self, chat_id: str) -> None:
        self._check()
        self.groups.discard(chat_id)

    def is_group_allowed(self, chat_id: str) -> bool:
        self.reads += 1
        return chat_id in self.groups

    def add_user_allowed(self, sender_id: str) -> None:
        self._check()
        self.users.add(sender_id)

    def remove_user_allowed(self, sender_id: str) -> None:
        self._check()
        self.users.discard(sender_id)

    def is_user_allowed(self, sender_id: str) -> bool:
        self.reads += 1
        return sender_id in self.users

    def set_media_description(self, content_hash: str, description: str) -> None:
        self._check()
        self.descriptions[content_hash] = description

    def get_media_description(self, content_hash: str) -> Optional[str]:
        self.reads += 1
        return self.descriptions.get(content_hash)


def test_alias_put_then_lookup_hits_memory() -> None:
    store = FakeStore()
    cache = AliasCache(store)

    cache.put("chat", "sender", "bob")

    assert cache.lookup("chat", "sender") == "bob"
    assert store.aliases[("chat", "sender")] == "bob"
    assert store.reads == 0


def test_alias_survives_restart(tmp_path) -> None:
    db_path = str(tmp_path / "lorekeeper.db")
    store = SQLiteStore(db_path)
    store.init_db()
    AliasCache(store).put("chat", "sender", "bob")
    store.close()

    restarted = SQLiteStore(db_path)
    restarted.init_db()
    assert AliasCache(restarted).lookup("chat", "sender") == "bob"


def test_lookup_populates_memory_only_on_store_hit() -> None:
    store = FakeStore()
    store.descriptions["h1"] = "a cat"
    cache = MediaDescriptionCache(store)

    assert cache.lookup("h1") == "a cat"
    assert cache.lookup("h1") == "a cat"
    assert store.reads == 1

    # Misses are not remembered, so every miss asks the store again.
    assert cache.lookup("h2") is None
    assert cache.lookup("h2") is None
    assert store.reads == 3
    assert len(cache) == 1


def test_miss_then_external_write_is_observed() -> None:
    store = FakeStore()
    cache = MediaDescriptionCache(store)

    assert cache.lookup("h1") is None
    store.descriptions["h1"] = "written elsewhere"
    assert cache.lookup("h1") == "written elsewhere"


def test_cold_start_miss_then_last_write_wins(tmp_path) -> None:
    store = SQLiteStore(str(tmp_path / "lorekeeper.db"))
    store.init_db()
    cache = MediaDescriptionCache(store)

    assert cache.lookup("h1") is None
    cache.put("h1", "Processing image...")
    cache.put("h1", "a cat")
    assert cache.lookup("h1") == "a cat"
    assert store.get_media_description("h1") == "a cat"


def test_failed_put_rolls_back_new_entry() -> None:
    store = FakeStore()
    store.fail_writes = True
    cache = AliasCache(store)

    with pytest.raises(StoreError):
        cache.put("chat", "sender", "bob")

    store.fail_writes = False
    assert cache.lookup("chat", "sender") is None
    assert len(cache) == 0


def test_failed_put_restores_previous_value() -> None:
    store = FakeStore()
    cache = MediaDescriptionCache(store)
    cache.put("h1", "Processing image...")

    store.fail_writes = True
    with pytest.raises(StoreError):
        cache.put("h1", "a cat")

    assert cache.lookup("h1") == "Processing image..."
    assert store.descriptions["h1"] == "Processing image..."


def test_invalid_key_rejected_before_memory_changes() -> None:
    store = FakeStore()
    cache = MediaDescriptionCache(store)

    with pytest.raises(InvalidArgument):
        cache.put("", "a cat")
    with pytest.raises(InvalidArgument):
        cache.lookup("  ")
    assert len(cache) == 0
    assert store.reads == 0


def test_allow_list_membership_and_removal() -> None:
    store = FakeStore()
    cache = AllowListCache(store)

    assert not cache.is_group_allowed("-100")
    cache.allow_group("-100")
    cache.allow_group("-100")
    assert cache.is_group_allowed("-100")
    assert not cache.is_user_allowed("-100")

    cache.allow_user("42")
    cache.disallow_user("42")
    assert not cache.is_user_allowed("42")
    assert "42" not in store.users


def test_allow_list_failed_remove_keeps_membership() -> None:
    store = FakeStore()
    cache = AllowListCache(store)
    cache.allow_group("-100")

    store.fail_writes = True
    with pytest.raises(StoreError):
        cache.disallow_group("-100")

    store.fail_writes = False
    reads_before = store.reads
    assert cache.is_group_allowed("-100")
    assert store.reads == reads_before


def test_concurrent_puts_of_distinct_hashes_do_not_lose_updates() -> None:
    store = FakeStore()
    cache = MediaDescriptionCache(store)
    hashes = [f"hash-{i}" for i in range(200)]
    start = threading.Barrier(8)

    def worker(offset: int) -> None:
        start.wait()
        for content_hash in hashes[offset::8]:
            cache.put(content_hash, f"description of {content_hash}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == len(hashes)
    for content_hash in hashes:
        assert cache.lookup(content_hash) == f"description of {content_hash}"
        assert store.descriptions[content_hash] == f"description of {content_hash}"
