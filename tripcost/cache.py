"""TTL cache for quotes and live price lookups.

Entries expire by wall-clock age only; there is no size-based eviction.
Concurrent misses on the same key may each recompute the value and the
last ``put`` wins.  Values must be JSON-compatible so that both backends
can hold them.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Protocol

from . import db
from .config import get_settings
from .models import CacheEntry, PriceSource

DEFAULT_TTL = timedelta(hours=24)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_key(prefix: str, *parts: Any) -> str:
    """Build a ``prefix:part1:part2`` key; ``None`` parts become ``-``."""
    rendered = []
    for part in parts:
        if part is None:
            rendered.append("-")
        elif hasattr(part, "value"):
            rendered.append(str(part.value))
        else:
            rendered.append(str(part).strip().replace(":", "_"))
    return ":".join([prefix, *rendered])


class Cache(Protocol):
    """Lookups never raise: a backend failure reads as a miss and a failed
    write is skipped."""

    def get(self, key: str) -> Optional[CacheEntry]:
        ...

    def put(self, key: str, value: Any, source: PriceSource | str) -> CacheEntry:
        ...


class MemoryCache:
    """In-process cache guarded by a lock."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock = utc_now) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.cached_at + self.ttl:
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return None
            return entry

    def put(self, key: str, value: Any, source: PriceSource | str) -> CacheEntry:
        entry = CacheEntry(
            key=key, value=value, cached_at=self._clock(), source=PriceSource(source)
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of entries that have not expired yet."""
        with self._lock:
            now = self._clock()
            return sum(
                1 for e in self._entries.values() if now < e.cached_at + self.ttl
            )


class SQLiteCache:
    """Cache persisted in the ``cache_entries`` table.

    A locked or corrupt database never fails a lookup: read errors are
    treated as a miss and write errors drop the write.
    """

    def __init__(
        self,
        db_path: str | None = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utc_now,
        *,
        auto_migrate: bool = True,
        timeout: float = db.LOCK_TIMEOUT_S,
    ) -> None:
        self.db_path = db_path or get_settings().db_path
        self.ttl = ttl
        self.timeout = timeout
        self._clock = clock
        if auto_migrate:
            db.migrate(db_path=self.db_path)

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            row = db.fetch_entry(key, db_path=self.db_path, timeout=self.timeout)
            if row is None:
                return None
            value_json, source, cached_raw = row
            cached_at = datetime.fromisoformat(cached_raw)
            value = json.loads(value_json)
            source = PriceSource(source)
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Cache read for %s failed, treating as miss: %s", key, exc)
            return None
        if self._clock() >= cached_at + self.ttl:
            logger.debug("Cache expired: %s", key)
            return None
        return CacheEntry(key=key, value=value, cached_at=cached_at, source=source)

    def put(self, key: str, value: Any, source: PriceSource | str) -> CacheEntry:
        source = PriceSource(source)
        cached_at = self._clock()
        try:
            db.upsert_entry(
                key,
                json.dumps(value),
                source.value,
                cached_at,
                db_path=self.db_path,
                timeout=self.timeout,
            )
        except sqlite3.Error as exc:
            logger.warning("Cache write for %s skipped: %s", key, exc)
        return CacheEntry(key=key, value=value, cached_at=cached_at, source=source)

    def prune(self) -> int:
        """Delete expired rows and return their count."""
        return db.delete_older_than(self._clock() - self.ttl, db_path=self.db_path)


__all__ = [
    "Cache",
    "DEFAULT_TTL",
    "MemoryCache",
    "SQLiteCache",
    "make_key",
    "utc_now",
]
