"""
Default store: one ``sqlite3`` database behind the Connection protocol.

Several chronicle processes may share one database file (a long-running
``scheduler run`` next to an operator's ``jobs trigger``), and the ledger's
compare-and-swap is what keeps them from running a job twice. That needs
two things from the adapter:

- a busy timeout, so a write blocked by another process waits instead of
  failing with ``database is locked``;
- a lock around the single cursor, because the thread backend ticks on its
  own thread while the CLI may still hold the same connection.

File databases use WAL so readers don't block the nightly writes.
"""

from __future__ import annotations

import sqlite3
import threading
from typing import Any

MEMORY = ":memory:"


def path_from_url(url: str) -> str:
    """``sqlite:///relative.db``, ``sqlite:////abs/path.db`` or ``sqlite://`` (in-memory)."""
    scheme, sep, rest = url.partition("://")
    if not sep or scheme.split("+", 1)[0] != "sqlite":
        raise ValueError(f"Not a sqlite URL: {url}")
    path = rest[1:] if rest.startswith("/") else rest
    return path or MEMORY


class SqliteConnection:
    """``sqlite3`` adapter with a shared cursor for ``execute``/``fetch*``."""

    def __init__(self, path: str = MEMORY, *, busy_timeout: float = 5.0) -> None:
        self.path = path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(path, timeout=busy_timeout, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if path != MEMORY:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._cursor = self._conn.cursor()

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> SqliteConnection:
        return cls(path_from_url(url), **kwargs)

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._cursor.execute(sql, params)

    def executemany(self, sql: str, params: list[tuple]) -> sqlite3.Cursor:
        with self._lock:
            return self._cursor.executemany(sql, params)

    def fetchone(self) -> Any:
        with self._lock:
            return self._cursor.fetchone()

    def fetchall(self) -> list[Any]:
        with self._lock:
            return self._cursor.fetchall()

    def commit(self) -> None:
        with self._lock:
            self._conn.commit()

    def rollback(self) -> None:
        with self._lock:
            self._conn.rollback()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __repr__(self) -> str:
        return f"SqliteConnection({self.path!r})"


__all__ = ["SqliteConnection", "path_from_url"]
