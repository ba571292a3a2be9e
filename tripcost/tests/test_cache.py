import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from tripcost import db
from tripcost.cache import MemoryCache, SQLiteCache, make_key
from tripcost.models import PriceSource, TransportType


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def test_make_key():
    assert make_key("tp_hotels", "RIO") == "tp_hotels:RIO"
    assert make_key("t", "a:b", None, TransportType.BUS, 3) == "t:a_b:-:bus:3"


def test_memory_cache_ttl():
    clock = FakeClock()
    cache = MemoryCache(ttl=timedelta(hours=24), clock=clock)
    cache.put("k", {"accommodation": 200}, "api")

    clock.advance(hours=23, minutes=59)
    entry = cache.get("k")
    assert entry.value == {"accommodation": 200}
    assert entry.source is PriceSource.API

    clock.advance(minutes=1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_memory_cache_last_put_wins():
    cache = MemoryCache()
    cache.put("k", 1, PriceSource.ESTIMATED)
    cache.put("k", 2, PriceSource.API)
    entry = cache.get("k")
    assert entry.value == 2
    assert entry.source is PriceSource.API


def test_memory_cache_rejects_unknown_source():
    with pytest.raises(ValueError):
        MemoryCache().put("k", 1, "guessed")


def test_sqlite_cache_persists(tmp_path):
    db_file = str(tmp_path / "cache.db")
    clock = FakeClock()
    cache = SQLiteCache(db_file, ttl=timedelta(hours=24), clock=clock)
    cache.put("tp_hotels:RIO", {"accommodation": 310}, PriceSource.API)

    # a second instance sees the same row
    other = SQLiteCache(db_file, clock=clock)
    entry = other.get("tp_hotels:RIO")
    assert entry.value == {"accommodation": 310}
    assert entry.source is PriceSource.API
    assert entry.cached_at == clock.now

    clock.advance(hours=24)
    assert other.get("tp_hotels:RIO") is None
    assert other.get("missing") is None


def test_sqlite_cache_prune(tmp_path):
    db_file = str(tmp_path / "cache.db")
    clock = FakeClock()
    cache = SQLiteCache(db_file, clock=clock)
    cache.put("old", {"price": 1}, "estimated")
    clock.advance(hours=25)
    cache.put("new", {"price": 2}, "estimated")

    assert cache.prune() == 1
    conn = sqlite3.connect(db_file)
    keys = [row[0] for row in conn.execute("SELECT key FROM cache_entries")]
    conn.close()
    assert keys == ["new"]


def test_migrate_is_idempotent(tmp_path):
    db_file = str(tmp_path / "cache.db")
    db.migrate(db_path=db_file)
    db.migrate(db_path=db_file)
    conn = sqlite3.connect(db_file)
    version = conn.execute("SELECT version FROM schema_version").fetchall()
    conn.close()
    assert version == [(db.SCHEMA_VERSION,)]


def test_schema_rejects_unknown_source(tmp_path):
    db_file = str(tmp_path / "cache.db")
    db.migrate(db_path=db_file)
    with pytest.raises(sqlite3.IntegrityError):
        db.upsert_entry(
            "k", "1", "guessed", datetime.now(timezone.utc), db_path=db_file
        )


def test_memory_cache_len_skips_expired():
    clock = FakeClock()
    cache = MemoryCache(ttl=timedelta(hours=1), clock=clock)
    cache.put("a", 1, "api")
    clock.advance(minutes=30)
    cache.put("b", 2, "api")
    assert len(cache) == 2
    clock.advance(minutes=30)
    assert len(cache) == 1


def locked(db_file):
    conn = sqlite3.connect(db_file, isolation_level=None)
    conn.execute("BEGIN EXCLUSIVE")
    return conn


def test_sqlite_cache_locked_database_reads_as_miss(tmp_path):
    db_file = str(tmp_path / "cache.db")
    cache = SQLiteCache(db_file, timeout=0.05)
    cache.put("tp_hotels:RIO", {"accommodation": 310}, PriceSource.API)

    conn = locked(db_file)
    try:
        assert cache.get("tp_hotels:RIO") is None
        entry = cache.put("tp_hotels:SSA", {"accommodation": 250}, "estimated")
        assert entry.value == {"accommodation": 250}
    finally:
        conn.rollback()
        conn.close()

    # the skipped write left nothing behind, the old row is intact
    assert cache.get("tp_hotels:SSA") is None
    assert cache.get("tp_hotels:RIO").value == {"accommodation": 310}


def test_sqlite_cache_corrupt_row_reads_as_miss(tmp_path):
    db_file = str(tmp_path / "cache.db")
    cache = SQLiteCache(db_file)
    db.upsert_entry(
        "broken", "{not json", "api", datetime.now(timezone.utc), db_path=db_file
    )
    conn = sqlite3.connect(db_file)
    conn.execute(
        "INSERT INTO cache_entries (key, value, source, cached_at) "
        "VALUES ('bad-date', '1', 'api', 'yesterday')"
    )
    conn.commit()
    conn.close()

    assert cache.get("broken") is None
    assert cache.get("bad-date") is None


def hammer(cache, worker):
    shared = "shared"
    own = f"own:{worker}"
    for i in range(25):
        cache.put(shared, {"worker": worker, "i": i}, "estimated")
        cache.put(own, {"i": i}, "api")
        entry = cache.get(shared)
        assert entry is not None
        assert set(entry.value) == {"worker", "i"}
        assert cache.get(own).value == {"i": i}
    return worker


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_concurrent_puts_and_gets(backend, tmp_path):
    if backend == "memory":
        cache = MemoryCache()
    else:
        cache = SQLiteCache(str(tmp_path / "cache.db"), timeout=30)

    with ThreadPoolExecutor(max_workers=8) as pool:
        done = list(pool.map(lambda w: hammer(cache, w), range(8)))

    assert done == list(range(8))
    for worker in range(8):
        assert cache.get(f"own:{worker}").value == {"i": 24}
    last = cache.get("shared").value
    assert last["worker"] in range(8)
    assert last["i"] == 24
