from __future__ import annotations

import logging
import pathlib
import sqlite3
from datetime import datetime
from typing import Optional, Tuple

# Default paths – the schema ships inside the package
PACKAGE_DIR = pathlib.Path(__file__).resolve().parent
DB_FILE = "tripcost_cache.db"
SCHEMA_FILE = str(PACKAGE_DIR / "schema.sql")
SCHEMA_VERSION = 1
# Seconds a connection waits on a locked database before failing
LOCK_TIMEOUT_S = 5.0

logger = logging.getLogger(__name__)


def migrate(db_path: str = DB_FILE, schema_path: str = SCHEMA_FILE) -> None:
    """Run pending migrations on the database."""
    logger.info("Running migrations for %s", db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version "
            "(version INTEGER NOT NULL)"
        )
        cur = conn.execute("SELECT version FROM schema_version")
        row = cur.fetchone()
        current = row[0] if row else 0
        if current < SCHEMA_VERSION:
            logger.info("Applying schema version %s", SCHEMA_VERSION)
            with open(schema_path, "r", encoding="utf-8") as fh:
                conn.executescript(fh.read())
            if row:
                conn.execute(
                    "UPDATE schema_version SET version=?", (SCHEMA_VERSION,)
                )
            else:
                conn.execute(
                    "INSERT INTO schema_version(version) VALUES (?)",
                    (SCHEMA_VERSION,),
                )
            conn.commit()


def upsert_entry(
    key: str,
    value_json: str,
    source: str,
    cached_at: datetime,
    db_path: str = DB_FILE,
    timeout: float = LOCK_TIMEOUT_S,
) -> None:
    """Insert or replace the cache row stored under *key*."""
    logger.debug("Upserting cache entry %s (%s)", key, source)
    with sqlite3.connect(db_path, timeout=timeout) as conn:
        conn.execute(
            """
            INSERT INTO cache_entries (key, value, source, cached_at)
            VALUES (?,?,?,?)
            ON CONFLICT(key)
            DO UPDATE SET value=excluded.value,
                          source=excluded.source,
                          cached_at=excluded.cached_at
            """,
            (key, value_json, source, cached_at.isoformat(timespec="microseconds")),
        )
        conn.commit()


def fetch_entry(
    key: str, db_path: str = DB_FILE, timeout: float = LOCK_TIMEOUT_S
) -> Optional[Tuple[str, str, str]]:
    """Return ``(value_json, source, cached_at_iso)`` for *key* or ``None``."""
    with sqlite3.connect(db_path, timeout=timeout) as conn:
        cur = conn.execute(
            "SELECT value, source, cached_at FROM cache_entries WHERE key=?",
            (key,),
        )
        return cur.fetchone()


def delete_older_than(cutoff: datetime, db_path: str = DB_FILE) -> int:
    """Delete rows cached before *cutoff*; return how many were removed."""
    logger.info("Pruning cache entries older than %s", cutoff.isoformat())
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM cache_entries WHERE cached_at < ?",
            (cutoff.isoformat(timespec="microseconds"),),
        )
        conn.commit()
        return cur.rowcount


__all__ = [
    "DB_FILE",
    "delete_older_than",
    "fetch_entry",
    "migrate",
    "upsert_entry",
]
