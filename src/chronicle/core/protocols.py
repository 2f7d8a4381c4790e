"""
Structural protocols shared across Chronicle.

Architecture:
    ::

        protocols.py
        ├── Connection   — sync DB protocol (sqlite3 adapter, SQLAlchemy bridge)
        └── Cursor       — what ``Connection.execute`` hands back

    Consumers:
        core/repository.py, core/schema.py, scheduling/repository.py,
        every repository in core/repositories/

Guardrails:
    ❌ DON'T: Add async methods to the Connection protocol
    ✅ DO: Keep domain code sync; the scheduler runs in one thread
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Result handle returned by ``Connection.execute``."""

    rowcount: int

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list[Any]: ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Placeholders are always ``?``. ``execute`` returns an object exposing
    ``rowcount`` so compare-and-swap updates can tell whether they won.

    Implementations:
        - :class:`chronicle.core.sqlite_conn.SqliteConnection`
        - :class:`chronicle.core.orm.session.SAConnectionBridge`
    """

    def execute(self, sql: str, params: tuple = ()) -> Any: ...

    def executemany(self, sql: str, params: list[tuple]) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list[Any]: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...

__all__ = ["Connection", "Cursor"]
