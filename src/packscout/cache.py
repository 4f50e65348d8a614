"""SQLite persistent cache for registry metadata.

Records are JSON values stored under ``(namespace, key)`` with a fixed expiry.
Expired rows read as a miss; they are physically removed by
``cleanup_expired`` once they are more than 7 days past expiry.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures, including rows that no longer decode, return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (fetched content is still returned).
Infrastructure errors never cross the Cache class boundary.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import aiosqlite
import structlog

log = structlog.get_logger()

_CREATE_ENTRY_TABLE = """
CREATE TABLE IF NOT EXISTS cache_entry (
    namespace   TEXT NOT NULL,
    key         TEXT NOT NULL,
    value       TEXT NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
)
"""

_CREATE_METADATA_TABLE = """
CREATE TABLE IF NOT EXISTS cache_metadata (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
)
"""

_CREATE_ENTRY_INDEX = "CREATE INDEX IF NOT EXISTS idx_entry_expires ON cache_entry(expires_at)"


class Cache:
    """SQLite-backed namespaced key/value cache implementing CacheProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_ENTRY_TABLE)
        await self._db.execute(_CREATE_METADATA_TABLE)
        await self._db.execute(_CREATE_ENTRY_INDEX)
        await self._db.commit()

    async def get(self, namespace: str, key: str) -> Any | None:
        """Read a live entry. Returns ``None`` on miss, expiry or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT value, expires_at FROM cache_entry WHERE namespace = ? AND key = ?",
                (namespace, key),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            if datetime.now(UTC) > datetime.fromisoformat(row[1]):
                return None
            return json.loads(row[0])
        except (aiosqlite.Error, ValueError):
            log.warning("cache_read_error", namespace=namespace, key=key, exc_info=True)
            return None

    async def set(self, namespace: str, key: str, value: Any, ttl_minutes: int) -> None:
        """Write an entry. Non-fatal on failure."""
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(minutes=ttl_minutes)
            await self._db.execute(
                "INSERT OR REPLACE INTO cache_entry "
                "(namespace, key, value, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (namespace, key, json.dumps(value), now.isoformat(), expires_at.isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", namespace=namespace, key=key, exc_info=True)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup_expired(self) -> None:
        """Delete entries expired more than 7 days ago. Non-fatal on failure."""
        try:
            cutoff = (datetime.now(UTC) - timedelta(days=7)).isoformat()
            cursor = await self._db.execute(
                "DELETE FROM cache_entry WHERE expires_at < ?", (cutoff,)
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", deleted=deleted)
        except aiosqlite.Error:
            log.warning("cache_cleanup_error", exc_info=True)

    async def cleanup_if_due(self, interval_hours: int) -> None:
        """Run ``cleanup_expired`` unless it already ran within ``interval_hours``.

        A failure reading the last-run timestamp falls through to a cleanup.
        """
        now = datetime.now(UTC)
        try:
            cursor = await self._db.execute(
                "SELECT value FROM cache_metadata WHERE key = 'last_cleanup_at'"
            )
            row = await cursor.fetchone()
            if row is not None:
                last_run = datetime.fromisoformat(row[0])
                if now - last_run < timedelta(hours=interval_hours):
                    return
        except aiosqlite.Error:
            log.warning("cache_metadata_read_error", exc_info=True)

        await self.cleanup_expired()
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO cache_metadata (key, value) VALUES ('last_cleanup_at', ?)",
                (now.isoformat(),),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_metadata_write_error", exc_info=True)
