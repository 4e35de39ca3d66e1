"""
nft_registry.storage: key/value stores backing a registry.

Design goals
------------
- Simple default: in-process memory backend for local runs & tests.
- Durable option: single-table SQLite backend for the CLI.
- Pluggable: a tiny backend protocol so a host can swap in its own state DB.
- All-or-nothing: every backend offers ``transaction()``; writes made inside
  it are either all visible afterwards or none are.
- Strict byte-length caps read from nft_registry.config.

Backend API
-----------
- get(key: bytes) -> Optional[bytes]
- set(key: bytes, value: bytes) -> None
- delete(key: bytes) -> None
- exists(key: bytes) -> bool
- transaction() -> context manager
"""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from pathlib import Path
from typing import ContextManager, Dict, Iterator, Optional, Protocol, Union, runtime_checkable

from .config import load_config
from .errors import StorageError
from .logging import get_logger

log = get_logger(__name__)


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for registry storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def transaction(self) -> ContextManager[None]: ...


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise StorageError("storage key must be bytes")
    if len(key) == 0:
        raise StorageError("storage key must be non-empty")
    cap = load_config().max_key_bytes
    if len(key) > cap:
        raise StorageError(f"storage key too long (>{cap} bytes)", context={"len": len(key)})
    return bytes(key)


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise StorageError("storage value must be bytes")
    cap = load_config().max_value_bytes
    if len(value) > cap:
        raise StorageError(f"storage value too large (>{cap} bytes)", context={"len": len(value)})
    return bytes(value)


# ------------------------------ Memory ------------------------------ #


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()
        self._depth = 0

    def get(self, key: bytes) -> Optional[bytes]:
        key = _check_key(key)
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        key, value = _check_key(key), _check_value(value)
        with self._lock:
            self._store[key] = value

    def delete(self, key: bytes) -> None:
        key = _check_key(key)
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        key = _check_key(key)
        with self._lock:
            return key in self._store

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Snapshot on entry, restore on exception. Nested scopes join the
        outermost one.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return
            snapshot = dict(self._store)
            self._depth = 1
            try:
                yield
            except BaseException:
                self._store = snapshot
                raise
            finally:
                self._depth = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# ------------------------------ SQLite ------------------------------ #


class SqliteBackend:
    """
    Single-table SQLite store.

    Thread-safe for simple concurrent access via an internal RLock. The
    connection runs in autocommit mode; ``transaction()`` issues
    BEGIN IMMEDIATE / COMMIT / ROLLBACK itself.
    """

    SCHEMA_VERSION = 1

    def __init__(self, path: Union[str, Path]) -> None:
        p = str(path)
        uri = p.startswith("file:")
        if not uri and p != ":memory:":
            Path(p).expanduser().parent.mkdir(parents=True, exist_ok=True)
        self.path = p
        self._lock = threading.RLock()
        self._depth = 0
        with self._errors("open"):
            self._db = sqlite3.connect(
                p,
                uri=uri,
                check_same_thread=False,
                isolation_level=None,
            )
        try:
            with self._errors("open"):
                self._apply_pragmas()
            with self.transaction(), self._errors("migrate"):
                self._migrate()
        except StorageError:
            self._db.close()
            raise

    # -- lifecycle ------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "SqliteBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @contextlib.contextmanager
    def _errors(self, op: str) -> Iterator[None]:
        """Re-raise driver errors as StorageError."""
        try:
            yield
        except sqlite3.Error as e:
            raise StorageError(f"sqlite {op} failed: {e}", context={"path": self.path, "op": op}) from e

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Usage:
            with db.transaction():
                db.set(...)
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return
            self._depth = 1
            try:
                with self._errors("begin"):
                    self._db.execute("BEGIN IMMEDIATE")
                try:
                    yield
                    with self._errors("commit"):
                        self._db.execute("COMMIT")
                except BaseException:
                    if self._db.in_transaction:
                        with self._errors("rollback"):
                            self._db.execute("ROLLBACK")
                    raise
            finally:
                self._depth = 0

    def _apply_pragmas(self) -> None:
        cur = self._db.cursor()
        cur.execute(f"PRAGMA journal_mode={load_config().sqlite_journal_mode}")
        cur.execute("PRAGMA synchronous=NORMAL")
        cur.close()

    def _migrate(self) -> None:
        cur = self._db.cursor()
        cur.execute("CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        cur.execute("CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)")
        cur.execute("SELECT value FROM meta WHERE key='schema_version'")
        row = cur.fetchone()
        if row is None:
            cur.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?)",
                (str(self.SCHEMA_VERSION),),
            )
        elif int(row[0]) != self.SCHEMA_VERSION:
            raise StorageError(
                "unsupported schema version",
                context={"found": row[0], "expected": self.SCHEMA_VERSION},
            )
        cur.close()

    # -- kv ---------------------------------------------------------------------

    def get(self, key: bytes) -> Optional[bytes]:
        key = _check_key(key)
        with self._lock, self._errors("get"):
            row = self._db.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        return bytes(row[0]) if row is not None else None

    def set(self, key: bytes, value: bytes) -> None:
        key, value = _check_key(key), _check_value(value)
        with self._lock, self._errors("set"):
            self._db.execute(
                "INSERT INTO kv(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, value),
            )

    def delete(self, key: bytes) -> None:
        key = _check_key(key)
        with self._lock, self._errors("delete"):
            self._db.execute("DELETE FROM kv WHERE key=?", (key,))

    def exists(self, key: bytes) -> bool:
        key = _check_key(key)
        with self._lock, self._errors("exists"):
            row = self._db.execute("SELECT 1 FROM kv WHERE key=?", (key,)).fetchone()
        return row is not None


def open_backend(path: Union[str, Path, None] = None) -> StorageBackend:
    """SQLite at `path` (or NFT_REGISTRY_DB), else a fresh memory store."""
    target = path if path is not None else load_config().db_path
    if target is None:
        return MemoryBackend()
    log.debug("opening sqlite store", extra={"path": str(target)})
    return SqliteBackend(target)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "SqliteBackend",
    "open_backend",
]
