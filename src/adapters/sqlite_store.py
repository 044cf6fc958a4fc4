"""SQLite storage adapter.

Implements the core StorePort using a single SQLite connection. All calls are
serialized through one lock, so callers never observe a half-applied write.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from core.errors import StoreError
from core.identifiers import require
from core.models import MessageLogEntry

LOGGER = logging.getLogger(__name__)

SCHEMA = """
-- aliases: one display alias per (chat, sender); last write wins.
CREATE TABLE IF NOT EXISTS aliases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id TEXT NOT NULL,
    sender_id TEXT NOT NULL,
    alias TEXT NOT NULL,
    UNIQUE(chat_id, sender_id)
);
CREATE INDEX IF NOT EXISTS idx_aliases_chat_id ON aliases(chat_id);
CREATE INDEX IF NOT EXISTS idx_aliases_sender_id ON aliases(sender_id);

-- group_allow_list / user_allow_list: plain membership sets.
CREATE TABLE IF NOT EXISTS group_allow_list (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS user_allow_list (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sender_id TEXT NOT NULL UNIQUE
);

-- media_descriptions: content hash -> description (placeholder until enriched).
CREATE TABLE IF NOT EXISTS media_descriptions (
    content_hash TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

-- message_log: one row per message key; later writes patch the same row.
CREATE TABLE IF NOT EXISTS message_log (
    message_id TEXT PRIMARY KEY NOT NULL,
    chat_id TEXT NOT NULL,
    sender_id TEXT,
    sender_name TEXT NOT NULL,
    media_description TEXT,
    text TEXT,
    timestamp TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_message_log_chat_id ON message_log(chat_id);
"""


class SQLiteStore:
    """Thin SQLite wrapper that satisfies the StorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Open the single shared connection (idempotent)."""

        with self._lock:
            self._connection()

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, timeout=5.0, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open database {self._db_path}: {exc}") from exc
        LOGGER.debug("Opened database %s", self._db_path)
        return conn

    def _connection(self) -> sqlite3.Connection:
        # Caller holds self._lock.
        if self._conn is None:
            self._conn = self._open()
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def init_db(self) -> None:
        """Create tables if they do not exist."""

        with self._lock:
            try:
                self._connection().executescript(SCHEMA)
            except sqlite3.Error as exc:
                raise StoreError(f"cannot create schema: {exc}") from exc

    def _write(self, query: str, params: Sequence[Any]) -> int:
        """Run one statement in its own transaction and return the rowcount."""

        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    cur = conn.execute(query, params)
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc
            return cur.rowcount

    def _fetch_one(self, query: str, params: Sequence[Any]) -> Optional[sqlite3.Row]:
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute(query, params).fetchone()
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    # --- aliases ---

    def set_alias(self, chat_id: str, sender_id: str, alias: str) -> None:
        """Upsert the alias for (chat_id, sender_id)."""

        self._write(
            """
            INSERT INTO aliases (chat_id, sender_id, alias)
            VALUES (?, ?, ?)
            ON CONFLICT(chat_id, sender_id) DO UPDATE SET alias = excluded.alias
            """,
            (require(chat_id, "chat_id"), require(sender_id, "sender_id"), require(alias, "alias")),
        )

    def get_alias(self, chat_id: str, sender_id: str) -> Optional[str]:
        row = self._fetch_one(
            "SELECT alias FROM aliases WHERE chat_id = ? AND sender_id = ?",
            (require(chat_id, "chat_id"), require(sender_id, "sender_id")),
        )
        return row["alias"] if row else None

    # --- allow-lists ---

    def add_group_allowed(self, chat_id: str) -> None:
        self._write(
            "INSERT INTO group_allow_list (chat_id) VALUES (?) ON CONFLICT(chat_id) DO NOTHING",
            (require(chat_id, "chat_id"),),
        )

    def remove_group_allowed(self, chat_id: str) -> None:
        self._write("DELETE FROM group_allow_list WHERE chat_id = ?", (require(chat_id, "chat_id"),))

    def is_group_allowed(self, chat_id: str) -> bool:
        row = self._fetch_one(
            "SELECT 1 FROM group_allow_list WHERE chat_id = ?",
            (require(chat_id, "chat_id"),),
        )
        return row is not None

    def add_user_allowed(self, sender_id: str) -> None:
        self._write(
            "INSERT INTO user_allow_list (sender_id) VALUES (?) ON CONFLICT(sender_id) DO NOTHING",
            (require(sender_id, "sender_id"),),
        )

    def remove_user_allowed(self, sender_id: str) -> None:
        self._write("DELETE FROM user_allow_list WHERE sender_id = ?", (require(sender_id, "sender_id"),))

    def is_user_allowed(self, sender_id: str) -> bool:
        row = self._fetch_one(
            "SELECT 1 FROM user_allow_list WHERE sender_id = ?",
            (require(sender_id, "sender_id"),),
        )
        return row is not None

    # --- media descriptions ---

    def set_media_description(self, content_hash: str, description: str) -> None:
        """Upsert a description; a later value overwrites a placeholder."""

        now = datetime.now(timezone.utc)
        self._write(
            """
            INSERT INTO media_descriptions (content_hash, description, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(content_hash) DO UPDATE SET
                description = excluded.description,
                updated_at = excluded.updated_at
            """,
            (require(content_hash, "content_hash"), require(description, "description"), now.isoformat()),
        )

    def get_media_description(self, content_hash: str) -> Optional[str]:
        row = self._fetch_one(
            "SELECT description FROM media_descriptions WHERE content_hash = ?",
            (require(content_hash, "content_hash"),),
        )
        return row["description"] if row else None

    # --- message log ---

    def upsert_message_log(
        self,
        message_id: str,
        chat_id: str,
        sender_name: str,
        media_description: Optional[str] = None,
        text: Optional[str] = None,
        sender_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> None:
        """Insert a log row, or overwrite the provided fields of an existing one.

        Optional fields passed as None keep their stored value.
        """

        self._write(
            """
            INSERT INTO message_log (
                message_id,
                chat_id,
                sender_id,
                sender_name,
                media_description,
                text,
                timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(message_id) DO UPDATE SET
                chat_id = excluded.chat_id,
                sender_name = excluded.sender_name,
                sender_id = COALESCE(excluded.sender_id, message_log.sender_id),
                media_description = COALESCE(excluded.media_description, message_log.media_description),
                text = COALESCE(excluded.text, message_log.text),
                timestamp = COALESCE(excluded.timestamp, message_log.timestamp)
            """,
            (
                require(message_id, "message_id"),
                require(chat_id, "chat_id"),
                sender_id,
                require(sender_name, "sender_name"),
                media_description,
                text,
                timestamp,
            ),
        )

    def patch_message_log_description(self, message_id: str, description: str) -> None:
        self._patch("media_description", message_id, description)

    def patch_message_log_text(self, message_id: str, text: str) -> None:
        self._patch("text", message_id, text)

    def _patch(self, column: str, message_id: str, value: str) -> None:
        # column is always one of the two literals above.
        message_id = require(message_id, "message_id")
        updated = self._write(
            f"UPDATE message_log SET {column} = ? WHERE message_id = ?",
            (value, message_id),
        )
        if updated == 0:
            raise StoreError(f"no message log row for {message_id}")

    def get_message_log(self, message_id: str) -> Optional[MessageLogEntry]:
        row = self._fetch_one(
            """
            SELECT message_id, chat_id, sender_id, sender_name, media_description, text, timestamp
            FROM message_log WHERE message_id = ?
            """,
            (require(message_id, "message_id"),),
        )
        if row is None:
            return None
        return MessageLogEntry(
            message_id=row["message_id"],
            chat_id=row["chat_id"],
            sender_id=row["sender_id"],
            sender_name=row["sender_name"],
            media_description=row["media_description"],
            text=row["text"],
            timestamp=row["timestamp"],
        )
