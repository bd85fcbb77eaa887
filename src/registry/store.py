"""Key-value persistence for registry tables.

Registry state lives in named tables of keyed values. Keys are tuples
(a bare int or str is treated as a 1-tuple), values are JSON-compatible.

Two backends:
- MemoryStore: dict-backed, for tests and ephemeral registries
- SQLiteStore: single-file database, survives restarts

Both support transaction(): writes inside the block become visible
together when it exits normally and are discarded when it raises.
Nested transactions join the outermost one.

Usage:
    store = MemoryStore()
    with store.transaction():
        store.put("owner", 1, "admin")
        store.put("description", 1, "3 bed house")
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar, Union

from ..config import get_validated_config
from ..config_schema import StoreConfig, TimeoutsConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

Key = tuple[Union[int, str], ...]


def _as_key(key: int | str | Key) -> Key:
    if isinstance(key, tuple):
        return key
    return (key,)


class KeyValueStore(ABC):
    """Table-oriented key-value substrate used by the registry."""

    @abstractmethod
    def get(self, table: str, key: int | str | Key, default: Any = None) -> Any:
        """Return the value stored under key, or default."""

    @abstractmethod
    def put(self, table: str, key: int | str | Key, value: Any) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def items(self, table: str, prefix: Key = ()) -> list[tuple[Key, Any]]:
        """Return (key, value) pairs whose key starts with prefix, ordered by key."""

    @abstractmethod
    def transaction(self) -> Any:
        """Context manager grouping writes into one failure-atomic unit."""

    def contains(self, table: str, key: int | str | Key) -> bool:
        """Check whether key has a value in table."""
        sentinel = object()
        return self.get(table, key, sentinel) is not sentinel

    def count(self, table: str) -> int:
        """Number of keys in table."""
        return len(self.items(table))


class MemoryStore(KeyValueStore):
    """Dict-backed store.

    Writes made inside a transaction are staged and only merged into the
    tables on successful exit. Reads see staged values.

    Thread-safety: NOT thread-safe. Callers serialize access externally.
    """

    _tables: dict[str, dict[Key, Any]]
    _staged: dict[str, dict[Key, Any]] | None

    def __init__(self) -> None:
        self._tables = {}
        self._staged = None

    def get(self, table: str, key: int | str | Key, default: Any = None) -> Any:
        k = _as_key(key)
        if self._staged is not None and k in self._staged.get(table, {}):
            return copy.deepcopy(self._staged[table][k])
        if k in self._tables.get(table, {}):
            return copy.deepcopy(self._tables[table][k])
        return default

    def put(self, table: str, key: int | str | Key, value: Any) -> None:
        target = self._staged if self._staged is not None else self._tables
        target.setdefault(table, {})[_as_key(key)] = copy.deepcopy(value)

    def items(self, table: str, prefix: Key = ()) -> list[tuple[Key, Any]]:
        merged = dict(self._tables.get(table, {}))
        if self._staged is not None:
            merged.update(self._staged.get(table, {}))
        n = len(prefix)
        return sorted(
            (k, copy.deepcopy(v)) for k, v in merged.items() if k[:n] == prefix
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._staged is not None:
            yield
            return

        self._staged = {}
        try:
            yield
        except BaseException:
            logger.debug("Transaction rolled back, discarding staged writes")
            self._staged = None
            raise

        staged, self._staged = self._staged, None
        for table, entries in staged.items():
            self._tables.setdefault(table, {}).update(entries)


def _with_retry(
    func: Callable[[], T],
    max_retries: int,
    base_delay: float,
    max_delay: float,
) -> T:
    """Execute a function with retry logic for SQLite lock errors.

    Uses exponential backoff to handle transient 'database is locked'
    errors when another process holds the write lock.

    Raises:
        sqlite3.OperationalError: If func raises a non-lock error or
            exceeds max_retries with lock errors
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except sqlite3.OperationalError as e:
            if "database is locked" not in str(e):
                raise

            if attempt >= max_retries:
                logger.warning(
                    "SQLite lock error after %d attempts, giving up: %s",
                    attempt,
                    e,
                )
                raise

            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            logger.warning(
                "SQLite lock error (attempt %d/%d), retrying in %.2fs: %s",
                attempt,
                max_retries,
                delay,
                e,
            )
            time.sleep(delay)


class SQLiteStore(KeyValueStore):
    """SQLite-backed store.

    One table kv(tbl, key, value) with JSON-encoded keys and values.
    Uses WAL mode; write connections use IMMEDIATE isolation so the write
    lock is taken up front. Outside a transaction each put commits on
    its own. Inside a transaction all statements share one connection
    that commits on exit or rolls back on error.

    Thread safety: each thread/process should create its own SQLiteStore
    pointing to the same database file.
    """

    db_path: Path
    timeouts: TimeoutsConfig
    _conn: sqlite3.Connection | None

    def __init__(self, db_path: Path | str, timeouts: TimeoutsConfig | None = None) -> None:
        """
        Args:
            db_path: Path to SQLite database file
            timeouts: Lock timeout and retry settings (uses global config if not provided)
        """
        self.db_path = Path(db_path)
        self.timeouts = timeouts or get_validated_config().timeouts
        self._conn = None
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and table if they don't exist."""
        with self._connect_write() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    tbl TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (tbl, key)
                )
            """)
            conn.commit()

    def _open(self, isolation_level: str | None) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeouts.store_lock,
            isolation_level=isolation_level,
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connect_read(self) -> Iterator[sqlite3.Connection]:
        """Read connection; the open transaction's connection when inside one."""
        if self._conn is not None:
            yield self._conn
            return
        conn = self._open("DEFERRED")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _connect_write(self) -> Iterator[sqlite3.Connection]:
        """Write connection using IMMEDIATE isolation."""
        conn = self._open("IMMEDIATE")
        try:
            yield conn
        finally:
            conn.close()

    def _retry(self, func: Callable[[], T]) -> T:
        if self._conn is not None:
            # Inside a transaction the lock is already held
            return func()
        return _with_retry(
            func,
            max_retries=self.timeouts.store_retry_max,
            base_delay=self.timeouts.store_retry_base,
            max_delay=self.timeouts.store_retry_max_delay,
        )

    def get(self, table: str, key: int | str | Key, default: Any = None) -> Any:
        encoded = json.dumps(list(_as_key(key)))

        def do_get() -> tuple[str] | None:
            with self._connect_read() as conn:
                cursor = conn.execute(
                    "SELECT value FROM kv WHERE tbl = ? AND key = ?",
                    (table, encoded),
                )
                row: tuple[str] | None = cursor.fetchone()
                return row

        row = self._retry(do_get)
        if row is None:
            return default
        return json.loads(row[0])

    def put(self, table: str, key: int | str | Key, value: Any) -> None:
        params = (table, json.dumps(list(_as_key(key))), json.dumps(value))
        sql = "INSERT OR REPLACE INTO kv (tbl, key, value) VALUES (?, ?, ?)"

        if self._conn is not None:
            self._conn.execute(sql, params)
            return

        def do_put() -> None:
            with self._connect_write() as conn:
                conn.execute(sql, params)
                conn.commit()

        self._retry(do_put)

    def items(self, table: str, prefix: Key = ()) -> list[tuple[Key, Any]]:
        def do_items() -> list[tuple[str, str]]:
            with self._connect_read() as conn:
                cursor = conn.execute(
                    "SELECT key, value FROM kv WHERE tbl = ?", (table,)
                )
                return cursor.fetchall()

        n = len(prefix)
        decoded = [
            (tuple(json.loads(k)), json.loads(v)) for k, v in self._retry(do_items)
        ]
        return sorted((k, v) for k, v in decoded if k[:n] == prefix)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._conn is not None:
            yield
            return

        conn = self._open("IMMEDIATE")
        self._conn = conn
        try:
            yield
            conn.commit()
        except BaseException:
            logger.debug("Transaction rolled back on %s", self.db_path)
            conn.rollback()
            raise
        finally:
            self._conn = None
            conn.close()


def create_store(
    store_config: StoreConfig | None = None,
    timeouts: TimeoutsConfig | None = None,
) -> KeyValueStore:
    """Build the backend named in config (uses global config if not provided)."""
    cfg = store_config or get_validated_config().store
    if cfg.backend == "sqlite":
        logger.info("Opening SQLite registry store at %s", cfg.path)
        return SQLiteStore(cfg.path, timeouts=timeouts)
    return MemoryStore()
