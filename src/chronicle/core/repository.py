"""Base repository for raw-SQL data access.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from chronicle.core.protocols │
    │                                                                    │
    │   execute(sql, params)     → cursor (with rowcount)                │
    │   query(sql, params)       → list[dict]                            │
    │   query_one(sql, params)   → dict | None                           │
    │   insert(table, data)      → new row id                            │
    │   update(table, id, data)  → rows changed                          │
    └────────────────────────────────────────────────────────────────────┘

Placeholders are always ``?``; the SQLAlchemy bridge rewrites them.

Usage:
    >>> class MyRepo(BaseRepository):
    ...     def get_by_id(self, id: int):
    ...         return self.query_one(
    ...             f"SELECT * FROM my_table WHERE id = {self.ph(1)}",
    ...             (id,),
    ...         )
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, TypeVar

from chronicle.core.errors import RecordNotFoundError
from chronicle.core.protocols import Connection

T = TypeVar("T")


def dump_json(value: Any) -> str | None:
    """Encode a JSON column value (``None`` stays NULL)."""
    if value is None:
        return None
    return json.dumps(value, sort_keys=True, default=str)


def load_json(value: Any) -> Any:
    """Decode a JSON column value; drivers with native JSON return objects already."""
    if value is None or not isinstance(value, (str, bytes)):
        return value
    if not value:
        return None
    return json.loads(value)


def row_to_model(cls: type[T], row: dict[str, Any], *, json_fields: tuple[str, ...] = ()) -> T:
    """Build dataclass *cls* from a row dict, ignoring unknown columns.

    ``bool`` fields stored as 0/1 are coerced back to ``bool``.
    """
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        if f.name not in row:
            continue
        value = row[f.name]
        if f.name in json_fields:
            value = load_json(value)
            if value is None and f.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
                value = f.default_factory()  # type: ignore[misc]
        elif f.type in ("bool", bool) and value is not None:
            value = bool(value)
        kwargs[f.name] = value
    return cls(**kwargs)


class BaseRepository:
    """Base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
    """

    TABLE: str = ""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    # -- Convenience shortcuts ---------------------------------------------

    @staticmethod
    def ph(count: int) -> str:
        """Comma-separated ``?`` placeholders for f-string SQL."""
        return ", ".join("?" for _ in range(count))

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts."""
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            pass
        if getattr(cursor, "description", None):
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]
        return [{i: v for i, v in enumerate(row)} for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    # -- Write helpers -----------------------------------------------------

    def insert(self, table: str, data: dict[str, Any]) -> int:
        """Insert a single row from a dict and return its ``id``."""
        columns = list(data.keys())
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({self.ph(len(columns))}) RETURNING id"
        )
        cursor = self.conn.execute(sql, tuple(data.values()))
        # fetchall drains the statement so the following commit is not blocked
        rows = cursor.fetchall()
        row = rows[0]
        return int(row["id"] if isinstance(row, dict) or hasattr(row, "keys") else row[0])

    def update(self, table: str, row_id: int, data: dict[str, Any]) -> int:
        """Update columns on one row; returns the number of rows changed."""
        if not data:
            return 0
        sets = ", ".join(f"{col} = ?" for col in data)
        cursor = self.conn.execute(
            f"UPDATE {table} SET {sets} WHERE id = ?",
            (*data.values(), row_id),
        )
        return cursor.rowcount

    def delete(self, table: str, row_id: int) -> int:
        """Delete one row by id; returns the number of rows removed."""
        cursor = self.conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cursor.rowcount

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Discard the current transaction."""
        self.conn.rollback()

    def _require(self, value: T | None, key: Any) -> T:
        """Return *value* or raise :class:`RecordNotFoundError` for *key*."""
        if value is None:
            raise RecordNotFoundError(self.TABLE, key)
        return value


def in_clause(values: list[Any]) -> str:
    """``(?, ?, …)`` for an ``IN`` filter."""
    return "(" + ", ".join("?" for _ in values) + ")"


__all__ = [
    "BaseRepository",
    "dump_json",
    "load_json",
    "row_to_model",
    "in_clause",
]
